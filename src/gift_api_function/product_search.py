# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

""" Amazon Product Advertising API (PA-API 5) product search for gift ideas """

import json
import re
import requests

from dataclasses import dataclass, asdict
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union
from http import HTTPStatus
from aws_lambda_powertools import Logger, Tracer, Metrics
from aws_lambda_powertools.metrics import MetricUnit
from gift_error import ConfigurationError, ProviderRejectedError, TransientProviderError
from gift_constants import AMAZON_MARKETPLACE, AMAZON_ITEMS_TO_FETCH, MAX_PRODUCTS_PER_SUGGESTION, AMAZON_REQUEST_TIMEOUT_SECONDS
from request_signer import SignableRequest, SigningContext, SigningCredential, sign
from search_payload import build_search_items_payload, with_partner_fields

tracer = Tracer()
logger = Logger(child=True)
metrics = Metrics()

SEARCH_ITEMS_PATH = '/paapi5/searchitems'
SEARCH_ITEMS_TARGET = 'com.amazon.paapi5.v1.ProductAdvertisingAPIv1.SearchItems'
CONTENT_ENCODING = 'amz-1.0'
CONTENT_TYPE = 'application/json; charset=UTF-8'

# Keyword scoring weights; tunable, not invariants.
KEYWORD_BOOSTS = [
    (re.compile(r'\b(?:personali[sz]ed|custom)', re.IGNORECASE), 3),
    (re.compile(r'\b(?:premium|luxury)', re.IGNORECASE), 2),
    (re.compile(r'\b(?:set|kit)s?\b', re.IGNORECASE), 2),
    (re.compile(r'\bgifts?\b', re.IGNORECASE), -1)
]
IDEAL_WORD_COUNT = (2, 4)
IDEAL_WORD_COUNT_BOOST = 2
MAX_WORD_COUNT = 5
LONG_KEYWORD_PENALTY = -1

# Interest word prefix -> PA-API search index. First matching hint wins.
CATEGORY_HINTS = [
    ('golf', 'SportsAndOutdoors'),
    ('sport', 'SportsAndOutdoors'),
    ('fitness', 'SportsAndOutdoors'),
    ('outdoor', 'SportsAndOutdoors'),
    ('camping', 'SportsAndOutdoors'),
    ('cook', 'HomeAndKitchen'),
    ('baking', 'HomeAndKitchen'),
    ('kitchen', 'HomeAndKitchen'),
    ('book', 'Books'),
    ('reading', 'Books'),
    ('music', 'MusicalInstruments'),
    ('gaming', 'VideoGames'),
    ('game', 'ToysAndGames'),
    ('toy', 'ToysAndGames'),
    ('tech', 'Electronics'),
    ('gadget', 'Electronics'),
    ('photo', 'Electronics'),
    ('beauty', 'Beauty'),
    ('skincare', 'Beauty'),
    ('fashion', 'Fashion'),
    ('jewel', 'Fashion'),
    ('garden', 'GardenAndOutdoors'),
    ('art', 'ArtsAndCrafts'),
    ('craft', 'ArtsAndCrafts'),
    ('pet', 'PetSupplies')
]
DEFAULT_SEARCH_INDEX = 'All'

CONDITION_BLOCKLIST_PATTERN = re.compile(r'\b(?:used|renewed|refurbished|damaged|parts only|for parts)\b', re.IGNORECASE)
RELEVANCE_MIN_WORD_LENGTH = 3  # only words longer than this count towards relevance
WORD_PATTERN = re.compile(r'[a-z0-9]+')

MAX_TITLE_LENGTH = 100
ELLIPSIS = '...'
CURRENCY_SYMBOL_PATTERN = re.compile(r'[£$€¥₹]')

@dataclass(frozen=True)
class Product:
    id: str
    title: str
    url: str
    image: Optional[str] = None
    price: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)

def score_keyword(keyword: str) -> int:
    score = sum(weight for pattern, weight in KEYWORD_BOOSTS if pattern.search(keyword))

    word_count = len(keyword.split())
    if IDEAL_WORD_COUNT[0] <= word_count <= IDEAL_WORD_COUNT[1]:
        score += IDEAL_WORD_COUNT_BOOST
    elif word_count > MAX_WORD_COUNT:
        score += LONG_KEYWORD_PENALTY

    return score

def select_keyword(candidates: Union[str, Sequence[str]]) -> str:
    """ Picks the highest scoring keyword; ties keep the first seen """
    if isinstance(candidates, str):
        return candidates.strip()

    best, best_score = '', None
    for candidate in candidates or []:
        candidate = (candidate or '').strip()
        if not candidate:
            continue
        score = score_keyword(candidate)
        if best_score is None or score > best_score:
            best, best_score = candidate, score

    return best

def resolve_search_index(interest_hints: Sequence[str] = None) -> str:
    for hint in interest_hints or []:
        hint = str(hint).lower()
        for term, search_index in CATEGORY_HINTS:
            if re.search(rf'\b{term}', hint):
                return search_index

    return DEFAULT_SEARCH_INDEX

def _significant_words(text: str) -> set:
    return {word for word in WORD_PATTERN.findall(text.lower()) if len(word) > RELEVANCE_MIN_WORD_LENGTH}

def is_relevant(title: str, keyword: str) -> bool:
    keyword_words = _significant_words(keyword)
    if not keyword_words:
        return True
    return bool(keyword_words & _significant_words(title))

def is_blocked_condition(title: str) -> bool:
    return bool(CONDITION_BLOCKLIST_PATTERN.search(title))

def truncate_title(title: str, max_length: int = MAX_TITLE_LENGTH) -> str:
    if len(title) <= max_length:
        return title
    return title[:max_length - len(ELLIPSIS)].rstrip() + ELLIPSIS

def normalize_price(display_amount: Optional[str]) -> Optional[str]:
    if not display_amount:
        return None
    price = CURRENCY_SYMBOL_PATTERN.sub('', str(display_amount)).strip()
    return price or None

def _lookup(value, *path):
    """ Walks nested dicts; None as soon as a step is missing or not a dict """
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value

def normalize_item(item: Dict) -> Optional[Product]:
    """ Maps a SearchItems result item to a Product; None when title or detail URL is missing """
    if not isinstance(item, dict):
        return None

    title = str(_lookup(item, 'ItemInfo', 'Title', 'DisplayValue') or '').strip()
    url = str(item.get('DetailPageURL') or '').strip()
    if not title or not url:
        return None

    image = _lookup(item, 'Images', 'Primary', 'Medium', 'URL')
    listings = _lookup(item, 'Offers', 'Listings')
    price = _lookup(listings[0], 'Price', 'DisplayAmount') if isinstance(listings, list) and listings else None

    return Product(
        id = str(item.get('ASIN') or ''),
        title = title,
        url = url,
        image = image if isinstance(image, str) and image else None,
        price = normalize_price(price)
    )

def filter_products(items: List[Dict], keyword: str) -> List[Product]:
    products = []
    for item in items:
        product = normalize_item(item)
        if not product:
            continue
        if is_blocked_condition(product.title):
            logger.debug('Dropping non-new product %s', product.id)
            continue
        if not is_relevant(product.title, keyword):
            logger.debug('Dropping off-topic product %s for keyword "%s"', product.id, keyword)
            continue
        products.append(Product(product.id, truncate_title(product.title), product.url, product.image, product.price))

    return products

class ProductSearchClient():
    def __init__(
        self,
        credential: SigningCredential,
        partner_tag: str,
        marketplace: str = AMAZON_MARKETPLACE,
        item_count: int = AMAZON_ITEMS_TO_FETCH,
        timeout: float = AMAZON_REQUEST_TIMEOUT_SECONDS,
        session: requests.Session = None,
        clock: Callable[[], SigningContext] = SigningContext.now
    ):
        self.credential = credential
        self.partner_tag = partner_tag
        self.marketplace = marketplace
        self.item_count = item_count
        self.timeout = timeout
        self.session = session or requests.Session()
        self.clock = clock

    def prepare_request(self, payload: Dict) -> Tuple[str, Dict[str, str], bytes]:
        """ Returns the URL, signed headers and exact body bytes for a SearchItems call """
        if not self.partner_tag:
            raise ConfigurationError('PartnerTagNotConfigured', 'Amazon partner tag has not been configured')

        body = json.dumps(with_partner_fields(payload, self.partner_tag, self.marketplace)).encode('utf-8')
        context = self.clock()

        headers = {
            'content-encoding': CONTENT_ENCODING,
            'content-type': CONTENT_TYPE,
            'host': self.credential.host,
            'x-amz-date': context.amz_date,
            'x-amz-target': SEARCH_ITEMS_TARGET
        }

        result = sign(self.credential, context, SignableRequest('POST', SEARCH_ITEMS_PATH, headers, body))
        headers['Authorization'] = result.authorization

        return f'https://{self.credential.host}{SEARCH_ITEMS_PATH}', headers, body

    @tracer.capture_method(capture_response=False)
    def search_items(self, keyword: str, search_index: str = DEFAULT_SEARCH_INDEX) -> List[Dict]:
        """ Calls SearchItems and returns the raw result items.

        Raises ProviderRejectedError for an error envelope and TransientProviderError
        for transport or HTTP failures without one.
        """
        payload = build_search_items_payload(keyword, self.item_count, search_index = search_index)
        url, headers, body = self.prepare_request(payload)

        logger.debug('Calling SearchItems for keyword "%s" in %s', keyword, search_index)

        try:
            response = self.session.post(url, data = body, headers = headers, timeout = self.timeout)
        except requests.RequestException as e:
            raise TransientProviderError('TransportFailure', f'Product search request failed: {type(e).__name__}')

        try:
            data = response.json()
        except ValueError:
            raise TransientProviderError('InvalidSearchResponse', f'Product search returned HTTP {response.status_code} without a JSON body', response.status_code)

        if not isinstance(data, dict):
            raise TransientProviderError('InvalidSearchResponse', 'Product search response is not a JSON object', response.status_code)

        if data.get('Errors'):
            raise ProviderRejectedError.from_errors_envelope(data['Errors'], response.status_code)

        if response.status_code != HTTPStatus.OK:
            raise TransientProviderError('ProviderRequestFailed', f'Product search returned HTTP {response.status_code}', response.status_code)

        items = _lookup(data, 'SearchResult', 'Items')
        return items if isinstance(items, list) else []

    def search(self, keywords: Union[str, Sequence[str]], desired_count: int = MAX_PRODUCTS_PER_SUGGESTION, interest_hints: Sequence[str] = None) -> List[Product]:
        keyword = select_keyword(keywords)
        if not keyword:
            return []

        search_index = resolve_search_index(interest_hints)

        try:
            items = self.search_items(keyword, search_index)
        except (ProviderRejectedError, TransientProviderError) as e:
            metrics.add_metric(name="ProductSearchErrors", unit=MetricUnit.Count, value=1)
            logger.warning('Product search for "%s" failed: %s (%s)', keyword, e.error_code, e.error_message)
            return []

        return filter_products(items, keyword)[:desired_count]
