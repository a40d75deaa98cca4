# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

""" Google Gemini resolver that generates a text completion for a prompt """

import requests

from typing import Dict
from http import HTTPStatus
from aws_lambda_powertools import Logger, Tracer, Metrics
from aws_lambda_powertools.metrics import MetricUnit
from gift_error import ConfigurationError, TransientProviderError, MalformedResponseError, SafetyBlockedError
from gift_constants import GEMINI_MODEL, GEMINI_TIMEOUT_SECONDS, GEMINI_TEMPERATURE, GEMINI_MAX_OUTPUT_TOKENS

tracer = Tracer()
logger = Logger(child=True)
metrics = Metrics()

GEMINI_API_URL = 'https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent'
SAFETY_FINISH_REASONS = ['SAFETY', 'PROHIBITED_CONTENT', 'BLOCKLIST', 'SPII']

class GeminiResolver():
    def __init__(
        self,
        api_key: str,
        model: str = GEMINI_MODEL,
        timeout: float = GEMINI_TIMEOUT_SECONDS,
        temperature: float = GEMINI_TEMPERATURE,
        max_output_tokens: int = GEMINI_MAX_OUTPUT_TOKENS,
        session: requests.Session = None
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.session = session or requests.Session()

    def _build_body(self, prompt: str) -> Dict:
        return {
            'contents': [
                {
                    'parts': [
                        {
                            'text': prompt
                        }
                    ]
                }
            ],
            'generationConfig': {
                'temperature': self.temperature,
                'maxOutputTokens': self.max_output_tokens
            }
        }

    @tracer.capture_method(capture_response=False)
    def generate(self, prompt: str) -> str:
        """ Returns the completion text for prompt.

        Raises TransientProviderError for rate limiting, transport failures, failed
        requests and empty completions, MalformedResponseError when the body does not
        have the generateContent shape, and SafetyBlockedError when the provider
        blocks the prompt or the candidate.
        """
        if not self.api_key:
            raise ConfigurationError('GeminiApiKeyNotConfigured', 'Gemini API key has not been configured')

        logger.debug('Calling Gemini model %s', self.model)

        try:
            response = self.session.post(
                GEMINI_API_URL.format(model = self.model),
                params = {'key': self.api_key},
                json = self._build_body(prompt),
                timeout = self.timeout
            )
        except requests.RequestException as e:
            raise TransientProviderError('TransportFailure', f'Gemini request failed: {type(e).__name__}')

        if response.status_code == HTTPStatus.TOO_MANY_REQUESTS:
            metrics.add_metric(name="GeminiThrottledRequests", unit=MetricUnit.Count, value=1)
            raise TransientProviderError('RateLimited', 'Gemini rate limit exceeded', response.status_code)

        if response.status_code != HTTPStatus.OK:
            logger.warning('Gemini returned HTTP %s', response.status_code)
            raise TransientProviderError('ProviderRequestFailed', f'Gemini returned HTTP {response.status_code}', response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise TransientProviderError('EmptyCompletion', 'Gemini response body is not JSON', response.status_code)

        if not isinstance(data, dict):
            raise MalformedResponseError('UnexpectedResponseShape', 'Gemini response body is not a JSON object')

        prompt_feedback = data.get('promptFeedback')
        block_reason = prompt_feedback.get('blockReason') if isinstance(prompt_feedback, dict) else None
        if block_reason:
            raise SafetyBlockedError(block_reason)

        candidates = data.get('candidates')
        candidate = candidates[0] if isinstance(candidates, list) and candidates else {}
        if not isinstance(candidate, dict):
            raise MalformedResponseError('UnexpectedResponseShape', 'Gemini candidate is not a JSON object')
        if candidate.get('finishReason') in SAFETY_FINISH_REASONS:
            raise SafetyBlockedError(candidate['finishReason'])

        content = candidate.get('content')
        parts = content.get('parts') if isinstance(content, dict) else None
        if not isinstance(parts, list):
            parts = []
        text = ''.join(str(part.get('text') or '') for part in parts if isinstance(part, dict))
        if not text.strip():
            raise TransientProviderError('EmptyCompletion', 'Gemini returned no completion text', response.status_code)

        return text
