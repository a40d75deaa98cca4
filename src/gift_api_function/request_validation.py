# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

""" Validation and sanitizing of API request inputs """

import jsonschema

from typing import Any, Dict, Tuple
from gift_error import ValidationError
from gift_constants import MAX_QUERY_LENGTH, MAX_CONTEXT_FIELD_LENGTH, MAX_INTERESTS

SUGGESTION_REQUEST_SCHEMA = {
    'type': 'object',
    'properties': {
        'query': {'type': 'string', 'maxLength': MAX_QUERY_LENGTH, 'pattern': r'\S'},
        'recipient': {'type': 'string'},
        'occasion': {'type': 'string'},
        'budget': {'type': 'string'},
        'interests': {
            'type': 'array',
            'maxItems': MAX_INTERESTS,
            'items': {'type': 'string'}
        }
    },
    'anyOf': [
        {'required': ['query']},
        {'required': ['occasion'], 'properties': {'occasion': {'pattern': r'\S'}}},
        {'required': ['recipient'], 'properties': {'recipient': {'pattern': r'\S'}}}
    ]
}

CONTEXT_FIELDS = ['recipient', 'occasion', 'budget']
MISSING_DETAILS_MESSAGE = "Must provide either 'query' or gift details (occasion, recipient, etc.)"

def sanitize_string(value: str, max_length: int = MAX_QUERY_LENGTH) -> str:
    return value.strip()[:max_length].replace('<', '').replace('>', '')

def validate_suggestion_request(body: Any) -> Tuple[str, Dict]:
    """ Validates a suggestion request body and returns the sanitized (query, context) """
    try:
        jsonschema.validate(instance = body, schema = SUGGESTION_REQUEST_SCHEMA)
    except jsonschema.exceptions.ValidationError as e:
        if e.validator == 'anyOf' and not e.path:
            raise ValidationError('MissingGiftDetails', MISSING_DETAILS_MESSAGE)
        field = '.'.join(str(element) for element in e.path) or 'body'
        raise ValidationError('InvalidRequestPayload', f'Invalid value for "{field}": {e.message}')

    query = (sanitize_string(body['query']) if body.get('query') else '') or None

    context = {}
    for field in CONTEXT_FIELDS:
        value = sanitize_string(body[field], MAX_CONTEXT_FIELD_LENGTH) if body.get(field) is not None else ''
        if value:
            context[field] = value
    if body.get('interests') is not None:
        interests = [sanitize_string(interest, MAX_CONTEXT_FIELD_LENGTH) for interest in body['interests']]
        context['interests'] = [interest for interest in interests if interest]

    if not query and not context.get('occasion') and not context.get('recipient'):
        raise ValidationError('MissingGiftDetails', MISSING_DETAILS_MESSAGE)

    return query, context
