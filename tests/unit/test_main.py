import json

from pytest import fixture

import main

class LambdaContext:
    function_name = 'gift-api'
    memory_limit_in_mb = 256
    invoked_function_arn = 'arn:aws:lambda:eu-west-1:123456789012:function:gift-api'
    aws_request_id = '52fdfc07-2182-154f-163f-5f0f9a621d72'

def rest_event(method, path, query = None, body = None):
    return {
        'resource': path,
        'path': path,
        'httpMethod': method,
        'headers': {'Content-Type': 'application/json'},
        'multiValueHeaders': {'Content-Type': ['application/json']},
        'queryStringParameters': query,
        'multiValueQueryStringParameters': {name: [value] for name, value in query.items()} if query else None,
        'requestContext': {'requestId': 'c6af9ac6-7b61-11e6-9a41-93e8deadbeef', 'stage': 'prod'},
        'body': body,
        'isBase64Encoded': False
    }

def header(result, name):
    headers = result.get('multiValueHeaders') or result.get('headers') or {}
    value = headers.get(name)
    return value[0] if isinstance(value, list) else value

@fixture
def context():
    return LambdaContext()

def test_health(context):
    result = main.lambda_handler(rest_event('GET', '/health'), context)
    assert result['statusCode'] == 200
    assert json.loads(result['body'])['status'] == 'ok'

def test_redirect_adds_affiliate_tag(context, monkeypatch):
    monkeypatch.setenv('AMAZON_PARTNER_TAG', 'giftsite-21')
    event = rest_event('GET', '/go', {'url': 'https://www.amazon.co.uk/dp/B001', 'name': 'Golf Towel'})

    result = main.lambda_handler(event, context)

    assert result['statusCode'] == 302
    assert header(result, 'Location') == 'https://www.amazon.co.uk/dp/B001?tag=giftsite-21'

def test_redirect_rejects_other_domains(context):
    result = main.lambda_handler(rest_event('GET', '/go', {'url': 'https://www.example.com/dp/B001'}), context)
    assert result['statusCode'] == 400
    assert json.loads(result['body'])['code'] == 'InvalidUrlDomain'

def test_suggestions_requires_body(context):
    result = main.lambda_handler(rest_event('POST', '/suggestions'), context)
    assert result['statusCode'] == 400
    assert json.loads(result['body'])['code'] == 'MissingRequestBody'

def test_suggestions_invalid_json(context):
    result = main.lambda_handler(rest_event('POST', '/suggestions', body = '{"query": '), context)
    assert result['statusCode'] == 400
    assert json.loads(result['body'])['code'] == 'InvalidJSONRequestPayload'

def test_suggestions_missing_details(context):
    result = main.lambda_handler(rest_event('POST', '/suggestions', body = json.dumps({'budget': '£20'})), context)
    assert result['statusCode'] == 400
    assert json.loads(result['body'])['code'] == 'MissingGiftDetails'

def test_product_search_requires_query(context):
    result = main.lambda_handler(rest_event('GET', '/products/search'), context)
    assert result['statusCode'] == 400
    assert json.loads(result['body'])['code'] == 'MissingQuery'

def test_missing_credentials_is_configuration_error(context, monkeypatch):
    for name in ['AMAZON_PA_ACCESS_KEY', 'AMAZON_PA_SECRET_KEY']:
        monkeypatch.delenv(name, raising = False)

    result = main.lambda_handler(rest_event('GET', '/products/search', {'q': 'golf balls'}), context)

    assert result['statusCode'] == 500
    body = json.loads(result['body'])
    assert body['type'] == 'Configuration'
    assert body['code'] == 'MissingEnvironmentVariables'
