# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

""" Gift suggestions: generated ideas enriched with matching products """

from typing import Dict, List
from concurrent.futures import ThreadPoolExecutor
from aws_lambda_powertools import Logger, Tracer
from gift_constants import MAX_PRODUCTS_PER_SUGGESTION
from idea_retrieval import IdeaRetriever
from idea_validator import GiftIdea
from product_search import ProductSearchClient

tracer = Tracer()
logger = Logger(child=True)

MAX_ENRICHMENT_WORKERS = 6

class SuggestionService():
    def __init__(
        self,
        retriever: IdeaRetriever,
        search_client: ProductSearchClient,
        products_per_suggestion: int = MAX_PRODUCTS_PER_SUGGESTION
    ):
        self.retriever = retriever
        self.search_client = search_client
        self.products_per_suggestion = products_per_suggestion

    def _enrich(self, idea: GiftIdea, interest_hints: List[str]) -> Dict:
        products = self.search_client.search(idea.keywords, self.products_per_suggestion, interest_hints)
        suggestion = idea.to_dict()
        suggestion['products'] = [product.to_dict() for product in products]
        return suggestion

    @tracer.capture_method(capture_response=False)
    def suggest(self, query: str = None, context: Dict = None) -> List[Dict]:
        """ Returns one suggestion per idea, in the order the ideas were generated.

        Product searches run concurrently, one per idea. A failed search leaves
        that idea without products; only configuration errors propagate.
        """
        context = context or {}
        ideas = self.retriever.retrieve(query, context)
        interest_hints = context.get('interests') or []

        logger.debug('Enriching %d ideas with products', len(ideas))

        with ThreadPoolExecutor(max_workers = max(1, min(MAX_ENRICHMENT_WORKERS, len(ideas)))) as executor:
            return list(executor.map(lambda idea: self._enrich(idea, interest_hints), ideas))
