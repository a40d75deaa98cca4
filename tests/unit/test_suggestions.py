import json

from pytest import fixture
from unittest.mock import MagicMock

from idea_retrieval import IdeaRetriever
from idea_validator import GiftIdea
from product_search import Product, ProductSearchClient
from request_signer import SigningContext, SigningCredential
from suggestions import SuggestionService

GOLF_KEYWORDS = [
    'golf rangefinder',
    'personalised golf balls',
    'golf umbrella',
    'golf putting mat',
    'golf towel',
    'golf travel bag'
]

def golf_completion():
    return json.dumps([
        {'title': keyword.title(), 'reason': f'For a dad who loves golf: {keyword}', 'keywords': [keyword]}
        for keyword in GOLF_KEYWORDS
    ])

def search_response(*args, **kwargs):
    keyword = json.loads(kwargs['data'])['Keywords']
    asin = f'B{GOLF_KEYWORDS.index(keyword):03d}'
    resp = MagicMock()
    resp.status_code = 200
    resp.json.return_value = {
        'SearchResult': {
            'Items': [
                {
                    'ASIN': asin,
                    'DetailPageURL': f'https://www.amazon.co.uk/dp/{asin}',
                    'ItemInfo': {'Title': {'DisplayValue': f'{keyword.title()} Deluxe Edition'}},
                    'Offers': {'Listings': [{'Price': {'DisplayAmount': '£19.99'}}]}
                },
                {
                    'ASIN': f'{asin}U',
                    'DetailPageURL': f'https://www.amazon.co.uk/dp/{asin}U',
                    'ItemInfo': {'Title': {'DisplayValue': f'Used {keyword.title()}'}}
                }
            ]
        }
    }
    return resp

@fixture
def provider():
    provider = MagicMock()
    provider.generate.return_value = golf_completion()
    return provider

@fixture
def session():
    session = MagicMock()
    session.post.side_effect = search_response
    return session

@fixture
def service(provider, session):
    credential = SigningCredential('AKIAEXAMPLE', 'secret', 'eu-west-1', 'ProductAdvertisingAPI', 'webservices.amazon.co.uk')
    client = ProductSearchClient(credential, 'giftsite-21', session = session, clock = lambda: SigningContext('20251026T152035Z', '20251026'))
    return SuggestionService(IdeaRetriever(provider, sleep = MagicMock()), client)

def test_golf_suggestions(service, session):
    suggestions = service.suggest('gift for dad who loves golf')

    assert len(suggestions) == 6
    assert [suggestion['keywords'][0] for suggestion in suggestions] == GOLF_KEYWORDS
    assert session.post.call_count == 6

    for n, suggestion in enumerate(suggestions):
        assert len(suggestion['products']) == 1
        product = suggestion['products'][0]
        assert product['id'] == f'B{n:03d}'
        assert product['price'] == '19.99'
        assert product['title'].startswith(suggestion['title'])

def test_failed_search_leaves_idea_without_products():
    ideas = [GiftIdea('Golf Towel', 'Handy', ['golf towel']), GiftIdea('Golf Umbrella', 'Dry rounds', ['golf umbrella'])]
    retriever = MagicMock()
    retriever.retrieve.return_value = ideas

    search_client = MagicMock()
    search_client.search.side_effect = lambda keywords, count, hints: [] if keywords == ['golf towel'] else [
        Product('B001', 'Golf Umbrella Windproof', 'https://www.amazon.co.uk/dp/B001')
    ]

    suggestions = SuggestionService(retriever, search_client).suggest(context = {'recipient': 'Dad', 'interests': ['golf']})

    assert [suggestion['title'] for suggestion in suggestions] == ['Golf Towel', 'Golf Umbrella']
    assert suggestions[0]['products'] == []
    assert suggestions[1]['products'][0]['id'] == 'B001'
    retriever.retrieve.assert_called_once_with(None, {'recipient': 'Dad', 'interests': ['golf']})
    search_client.search.assert_any_call(['golf towel'], 1, ['golf'])

def test_products_per_suggestion():
    retriever = MagicMock()
    retriever.retrieve.return_value = [GiftIdea('Golf Towel', 'Handy', ['golf towel'])]
    search_client = MagicMock()
    search_client.search.return_value = []

    SuggestionService(retriever, search_client, products_per_suggestion = 3).suggest('golf')

    search_client.search.assert_called_once_with(['golf towel'], 3, [])
