# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

""" Loads provider credentials from the function environment """

import os

from typing import Mapping
from gift_error import ConfigurationError
from gift_constants import AMAZON_PA_REGION, AMAZON_PA_HOST, AMAZON_PA_SERVICE
from request_signer import SigningCredential

def _require(environ: Mapping[str, str], names) -> dict:
    values = {name: (environ.get(name) or '').strip() for name in names}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError('MissingEnvironmentVariables', f'Missing required environment variables: {", ".join(missing)}')
    return values

def load_signing_credential(environ: Mapping[str, str] = None) -> SigningCredential:
    environ = os.environ if environ is None else environ
    values = _require(environ, ['AMAZON_PA_ACCESS_KEY', 'AMAZON_PA_SECRET_KEY'])

    return SigningCredential(
        access_key_id = values['AMAZON_PA_ACCESS_KEY'],
        secret_key = values['AMAZON_PA_SECRET_KEY'],
        region = environ.get('AMAZON_PA_REGION') or AMAZON_PA_REGION,
        service = AMAZON_PA_SERVICE,
        host = environ.get('AMAZON_PA_HOST') or AMAZON_PA_HOST
    )

def load_partner_tag(environ: Mapping[str, str] = None) -> str:
    environ = os.environ if environ is None else environ
    return _require(environ, ['AMAZON_PARTNER_TAG'])['AMAZON_PARTNER_TAG']

def load_gemini_api_key(environ: Mapping[str, str] = None) -> str:
    environ = os.environ if environ is None else environ
    return _require(environ, ['GEMINI_API_KEY'])['GEMINI_API_KEY']
