# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

""" AWS Signature Version 4 request signing for the Product Advertising API

Signing is a fixed pipeline of pure functions:

    canonical request -> string to sign -> signing key -> signature -> Authorization header

Nothing here reads the environment or the clock implicitly. The caller passes a
SigningCredential (loaded once by the credentials module) and a SigningContext
(created per request with SigningContext.now()).
"""

import hashlib
import hmac
import pytz

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Tuple, Union
from gift_error import ConfigurationError

ALGORITHM = 'AWS4-HMAC-SHA256'
KEY_PREFIX = 'AWS4'
SCOPE_TERMINATOR = 'aws4_request'

AMZ_DATE_FORMAT = '%Y%m%dT%H%M%SZ'
DATE_STAMP_FORMAT = '%Y%m%d'

@dataclass(frozen=True)
class SigningCredential:
    access_key_id: str
    secret_key: str = field(repr=False)
    region: str
    service: str
    host: str

    def validate(self):
        """ Fails fast if any field is missing so a request is never signed with empty values """
        missing = [name for name in ('access_key_id', 'secret_key', 'region', 'service', 'host') if not getattr(self, name)]
        if missing:
            raise ConfigurationError('MissingSigningCredential', f'Signing credential is missing required fields: {", ".join(missing)}')

@dataclass(frozen=True)
class SigningContext:
    amz_date: str
    date_stamp: str

    @classmethod
    def from_datetime(cls, moment: datetime) -> 'SigningContext':
        if moment.tzinfo is None:
            moment = pytz.utc.localize(moment)
        moment = moment.astimezone(pytz.utc)
        return cls(moment.strftime(AMZ_DATE_FORMAT), moment.strftime(DATE_STAMP_FORMAT))

    @classmethod
    def now(cls) -> 'SigningContext':
        return cls.from_datetime(datetime.now(pytz.utc))

@dataclass
class SignableRequest:
    method: str
    path: str
    headers: Dict[str, str]
    payload: Union[bytes, str] = b''
    query_string: str = ''

    def payload_bytes(self) -> bytes:
        if isinstance(self.payload, str):
            return self.payload.encode('utf-8')
        return self.payload or b''

@dataclass(frozen=True)
class SigningResult:
    authorization: str
    signed_headers: List[str]
    signature: str
    canonical_request: str

def sha256_hex(data: Union[bytes, str]) -> str:
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).hexdigest()

def _hmac(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode('utf-8'), hashlib.sha256).digest()

def canonical_headers(headers: Dict[str, str]) -> Tuple[str, List[str]]:
    """ Returns the canonical header block and the ordered signed header names.

    Both are derived from the same sorted list so their orderings always agree.
    Names differing only in case are combined into one comma-joined value.
    """
    merged: Dict[str, str] = {}
    for name, value in headers.items():
        key = name.strip().lower()
        value = str(value).strip()
        if key in merged:
            merged[key] = f'{merged[key]},{value}'
        else:
            merged[key] = value

    names = sorted(merged)
    block = ''.join(f'{name}:{merged[name]}\n' for name in names)
    return block, names

def credential_scope(context: SigningContext, credential: SigningCredential) -> str:
    return f'{context.date_stamp}/{credential.region}/{credential.service}/{SCOPE_TERMINATOR}'

def build_canonical_request(request: SignableRequest) -> str:
    header_block, signed_names = canonical_headers(request.headers)
    return '\n'.join([
        request.method.upper(),
        request.path,
        request.query_string,  # must already be percent-encoded
        header_block,
        ';'.join(signed_names),
        sha256_hex(request.payload_bytes())
    ])

def build_string_to_sign(context: SigningContext, credential: SigningCredential, canonical_request: str) -> str:
    return '\n'.join([
        ALGORITHM,
        context.amz_date,
        credential_scope(context, credential),
        sha256_hex(canonical_request)
    ])

def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    k_date = _hmac((KEY_PREFIX + secret_key).encode('utf-8'), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, SCOPE_TERMINATOR)

def sign(credential: SigningCredential, context: SigningContext, request: SignableRequest) -> SigningResult:
    """ Signs a fully finalized request.

    The payload must not change after this call; the signature covers its exact bytes.
    """
    credential.validate()

    canonical_request = build_canonical_request(request)
    string_to_sign = build_string_to_sign(context, credential, canonical_request)
    signing_key = derive_signing_key(credential.secret_key, context.date_stamp, credential.region, credential.service)
    signature = hmac.new(signing_key, string_to_sign.encode('utf-8'), hashlib.sha256).hexdigest()

    _, signed_names = canonical_headers(request.headers)
    signed_headers = ';'.join(signed_names)
    authorization = (f'{ALGORITHM} Credential={credential.access_key_id}/{credential_scope(context, credential)}, '
                     f'SignedHeaders={signed_headers}, Signature={signature}')

    return SigningResult(
        authorization = authorization,
        signed_headers = signed_names,
        signature = signature,
        canonical_request = canonical_request
    )
