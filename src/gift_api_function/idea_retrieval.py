# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

""" Retrieves gift ideas from the generative model with retry, backoff and fallback

The retry loop is an explicit state machine:

    ATTEMPT --success--> DONE
    ATTEMPT --transient failure--> BACKOFF --> ATTEMPT
    ATTEMPT --safety block or attempts exhausted--> FALLBACK --> DONE

Whatever path is taken, the caller receives a non-empty list of validated
ideas capped at max_ideas, which itself never exceeds MAX_SUGGESTIONS.
"""

import random
import time

from enum import Enum
from typing import Callable, Dict, List
from aws_lambda_powertools import Logger, Tracer, Metrics
from aws_lambda_powertools.metrics import MetricUnit
from gift_error import TransientProviderError, MalformedResponseError, SafetyBlockedError
from gift_constants import GEMINI_MAX_RETRIES, GEMINI_BASE_DELAY_SECONDS, MAX_SUGGESTIONS
from completion_repair import parse_completion
from idea_validator import GiftIdea, validate_ideas

tracer = Tracer()
logger = Logger(child=True)
metrics = Metrics()

FALLBACK_IDEAS = [
    GiftIdea('Personalised Photo Book', 'A keepsake of shared memories that suits almost anyone.', ['personalised photo book']),
    GiftIdea('Luxury Chocolate Hamper', 'An indulgent treat that works for nearly every occasion.', ['luxury chocolate hamper']),
    GiftIdea('Scented Candle Gift Set', 'Adds a relaxing, cosy touch to any home.', ['scented candle gift set']),
    GiftIdea('Experience Day Voucher', 'Lets them choose an activity they will remember.', ['experience day voucher']),
    GiftIdea('Premium Coffee Selection', 'A daily pick-me-up for coffee lovers.', ['premium coffee gift set']),
    GiftIdea('Cosy Blanket Throw', 'A practical comfort gift for relaxing evenings.', ['soft fleece blanket throw'])
]

PROMPT_TEMPLATE = '''Return {count} short gift ideas as a pure JSON array.
Each item must be: {{ "title": string, "reason": string, "keywords": string[] }}.
Keywords should be short product search phrases for finding the gift on Amazon UK.
No commentary, no code fences. {subject}'''

class RetrievalState(Enum):
    ATTEMPT = 'ATTEMPT'
    BACKOFF = 'BACKOFF'
    FALLBACK = 'FALLBACK'
    DONE = 'DONE'

def build_prompt(query: str = None, context: Dict = None, count: int = MAX_SUGGESTIONS) -> str:
    context = context or {}
    if query:
        subject = f'Query: "{query}"'
    else:
        interests = context.get('interests') or []
        subject = '\n'.join([
            'Gift details:',
            f'- Recipient: {context.get("recipient") or "someone special"}',
            f'- Occasion: {context.get("occasion") or "general gift"}',
            f'- Budget: {context.get("budget") or "flexible"}',
            f'- Interests: {", ".join(interests) or "various"}'
        ])

    return PROMPT_TEMPLATE.format(count = count, subject = subject)

def fallback_ideas(max_ideas: int = MAX_SUGGESTIONS) -> List[GiftIdea]:
    return list(FALLBACK_IDEAS[:max_ideas])

class IdeaRetriever():
    def __init__(
        self,
        provider,
        max_retries: int = GEMINI_MAX_RETRIES,
        base_delay: float = GEMINI_BASE_DELAY_SECONDS,
        max_ideas: int = MAX_SUGGESTIONS,
        jitter: bool = False,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.provider = provider
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.max_ideas = max(1, min(max_ideas, MAX_SUGGESTIONS))
        self.jitter = jitter
        self.sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        delay = self.base_delay * (2 ** attempt)
        if self.jitter:
            delay = random.uniform(0, delay)
        return delay

    def _attempt(self, prompt: str) -> List[GiftIdea]:
        text = self.provider.generate(prompt)

        result = parse_completion(text)
        if not result.success:
            raise MalformedResponseError('UnparseableCompletion', result.error)

        if not isinstance(result.value, list):
            raise MalformedResponseError('CompletionNotArray', f'Completion decoded to {type(result.value).__name__}, expected a list')

        ideas = validate_ideas(result.value, self.max_ideas)
        if not ideas:
            raise MalformedResponseError('NoValidIdeas', 'No ideas in the completion passed validation')

        return ideas

    @tracer.capture_method(capture_response=False)
    def retrieve(self, query: str = None, context: Dict = None) -> List[GiftIdea]:
        prompt = build_prompt(query, context, self.max_ideas)

        state = RetrievalState.ATTEMPT
        attempt = 0
        ideas: List[GiftIdea] = []

        while state != RetrievalState.DONE:
            if state == RetrievalState.ATTEMPT:
                try:
                    ideas = self._attempt(prompt)
                    logger.info('Retrieved %d gift ideas on attempt %d', len(ideas), attempt + 1)
                    state = RetrievalState.DONE
                except SafetyBlockedError as e:
                    logger.warning('Gift idea generation blocked by provider: %s', e.block_reason)
                    state = RetrievalState.FALLBACK
                except (TransientProviderError, MalformedResponseError) as e:
                    logger.warning('Gift idea attempt %d of %d failed: %s (%s)', attempt + 1, self.max_retries, e.error_code, e.error_message)
                    state = RetrievalState.BACKOFF

            elif state == RetrievalState.BACKOFF:
                if attempt + 1 >= self.max_retries:
                    state = RetrievalState.FALLBACK
                else:
                    delay = self.backoff_delay(attempt)
                    logger.debug('Backing off %0.2fs before next attempt', delay)
                    self.sleep(delay)
                    attempt += 1
                    state = RetrievalState.ATTEMPT

            elif state == RetrievalState.FALLBACK:
                metrics.add_metric(name="GiftIdeaFallbacks", unit=MetricUnit.Count, value=1)
                logger.info('Using fallback gift ideas after %d attempt(s)', attempt + 1)
                ideas = fallback_ideas(self.max_ideas)
                state = RetrievalState.DONE

        return ideas[:self.max_ideas]
