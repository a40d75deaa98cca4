# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

"""
Error abstractions
"""

import json
from http import HTTPStatus
from botocore.exceptions import ClientError

class GiftApiError(Exception):
    def __init__(
        self,
        type: str,
        status_code: int,
        error_code: str,
        error_message: str,
        provider_status_code: int = None
    ):
        super().__init__(error_message)
        self.type = type
        self.status_code = status_code
        self.error_code = error_code
        self.error_message = error_message
        self.provider_status_code = provider_status_code

class ValidationError(GiftApiError):
    def __init__(
        self,
        error_code: str,
        error_message: str,
    ):
        super().__init__('Validation', HTTPStatus.BAD_REQUEST, error_code, error_message)

class JSONDecodeValidationError(ValidationError):
    def __init__(
        self,
        error_code: str,
        error_message: str
    ):
        super().__init__(error_code, error_message)

    @classmethod
    def from_json_decoder_error(cls, error_code: str, e: json.decoder.JSONDecodeError):
        return cls(error_code, f"{e.msg}: line {e.lineno} column {e.colno} (char {e.pos})")

class ConfigurationError(GiftApiError):
    """ The system cannot function at all (e.g. missing credentials); never retried """
    def __init__(
        self,
        error_code: str,
        error_message: str,
        status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    ):
        super().__init__('Configuration', status_code, error_code, error_message)

class TransientProviderError(GiftApiError):
    """ Rate limiting, transport failure or an empty completion; retried with backoff """
    def __init__(
        self,
        error_code: str,
        error_message: str,
        provider_status_code: int = None
    ):
        status_code = HTTPStatus.TOO_MANY_REQUESTS if provider_status_code == HTTPStatus.TOO_MANY_REQUESTS else HTTPStatus.SERVICE_UNAVAILABLE
        super().__init__('Provider', status_code, error_code, error_message, provider_status_code)

    @property
    def is_rate_limited(self) -> bool:
        return self.provider_status_code == HTTPStatus.TOO_MANY_REQUESTS

class MalformedResponseError(GiftApiError):
    """ Completion could not be repaired/parsed or produced no valid ideas; retried with backoff """
    def __init__(
        self,
        error_code: str,
        error_message: str
    ):
        super().__init__('Provider', HTTPStatus.BAD_GATEWAY, error_code, error_message)

class SafetyBlockedError(GiftApiError):
    """ Provider refused the prompt on content-safety grounds; retrying cannot change the verdict """
    def __init__(
        self,
        block_reason: str,
        error_message: str = None
    ):
        super().__init__('Provider', HTTPStatus.UNPROCESSABLE_ENTITY, 'SafetyBlocked', error_message or f'Completion blocked by provider ({block_reason})')
        self.block_reason = block_reason

class ProviderRejectedError(GiftApiError):
    """ Explicit error envelope returned by the product search provider """
    def __init__(
        self,
        error_code: str,
        error_message: str,
        provider_status_code: int = None
    ):
        super().__init__('ProductSearch', HTTPStatus.BAD_GATEWAY, error_code, error_message, provider_status_code)

    @classmethod
    def from_errors_envelope(cls, errors: list, provider_status_code: int = None):
        first = errors[0] if isinstance(errors, list) and errors and isinstance(errors[0], dict) else {}
        return cls(first.get('Code', 'SearchItemsError'), first.get('Message', 'Product search provider returned an error'), provider_status_code)

class DynamoDbError(GiftApiError):
    def __init__(
        self,
        status_code: int,
        error_code: str,
        error_message: str,
        provider_status_code: int = None
    ):
        super().__init__('DynamoDB', status_code, error_code, error_message, provider_status_code)

    @classmethod
    def from_client_error(cls, e: ClientError):
        error_code = e.response['Error']['Code']
        if error_code in ['ThrottlingException', 'ProvisionedThroughputExceededException']:
            return cls(HTTPStatus.TOO_MANY_REQUESTS, error_code, e.response['Error']['Message'], e.response['ResponseMetadata']['HTTPStatusCode'])

        return cls(HTTPStatus.INTERNAL_SERVER_ERROR, error_code, e.response['Error']['Message'], e.response['ResponseMetadata']['HTTPStatusCode'])
