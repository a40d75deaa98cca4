# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

"""Lambda function that provides the gift suggestion API

This file contains the request routing for gift suggestions, direct product
searches and affiliate link redirects. The idea retrieval and product search
pipeline itself lives in the suggestions, idea_retrieval and product_search
modules.
"""

import os
import json
import traceback
import pytz
import requests

from datetime import datetime
from typing import Dict
from http import HTTPStatus
from aws_lambda_powertools import Logger, Tracer, Metrics
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.event_handler.api_gateway import ApiGatewayResolver, ProxyEventType, CORSConfig, Response
from gift_config import GiftApiConfig
from gift_error import GiftApiError, ValidationError, JSONDecodeValidationError
from credentials import load_signing_credential, load_partner_tag, load_gemini_api_key
from gemini_resolver import GeminiResolver
from idea_retrieval import IdeaRetriever
from product_search import ProductSearchClient
from suggestions import SuggestionService
from interaction_store import InteractionStore
from request_validation import validate_suggestion_request, sanitize_string
from affiliate import validate_amazon_url, tag_affiliate_url

DEFAULT_AFFILIATE_TAG = 'purelivingp08-21'

tracer = Tracer()
logger = Logger()
metrics = Metrics()

cors_config = CORSConfig(max_age=500)
api_type = os.environ.get('ApiType', 'REST')
compress_responses = False  # Local compression
if api_type == 'HTTP':
    app = ApiGatewayResolver(proxy_type=ProxyEventType.APIGatewayProxyEventV2, cors=cors_config)
    compress_responses = True
elif api_type == 'ALB':
    app = ApiGatewayResolver(proxy_type=ProxyEventType.ALBEvent, cors=cors_config)
    compress_responses = True
else:
    app = ApiGatewayResolver(cors=cors_config)
    # Compression is off-loaded to API Gateway for REST API

config = GiftApiConfig.get_instance(os.environ.get('ConfigType', 'Environment'))
store = InteractionStore.from_environment()
http_session = requests.Session()

def build_search_client(search_config: Dict) -> ProductSearchClient:
    """ Creates the product search client; raises ConfigurationError when PA-API credentials are missing """
    return ProductSearchClient(
        credential = load_signing_credential(),
        partner_tag = load_partner_tag(),
        marketplace = search_config['marketplace'],
        item_count = search_config['itemCount'],
        timeout = search_config['timeoutSeconds'],
        session = http_session
    )

def build_suggestion_service() -> SuggestionService:
    retrieval_config = config.get_retrieval_config()
    search_config = config.get_search_config()

    provider = GeminiResolver(
        api_key = load_gemini_api_key(),
        model = retrieval_config['model'],
        timeout = retrieval_config['timeoutSeconds'],
        temperature = retrieval_config['temperature'],
        max_output_tokens = retrieval_config['maxOutputTokens'],
        session = http_session
    )

    retriever = IdeaRetriever(
        provider,
        max_retries = retrieval_config['maxRetries'],
        base_delay = retrieval_config['baseDelaySeconds'],
        max_ideas = retrieval_config['maxIdeas']
    )

    return SuggestionService(retriever, build_search_client(search_config), search_config['productsPerSuggestion'])

def no_store_headers() -> Dict[str, str]:
    headers = { 'Cache-Control': 'no-store' }
    if config.get_version():
        headers['X-Gift-Config-Version'] = config.get_version()
    return headers

@app.post("/suggestions", cors=True, compress=compress_responses)
@tracer.capture_method(capture_response=False)
def post_suggestions() -> Response:
    """ API entry point for generating gift suggestions with matching products """
    tracer.put_annotation(key = 'EntryPoint', value = 'suggestions')

    if not app.current_event.body:
        raise ValidationError('MissingRequestBody', 'Request body required')

    try:
        body = app.current_event.json_body
    except json.decoder.JSONDecodeError as e:
        raise JSONDecodeValidationError.from_json_decoder_error('InvalidJSONRequestPayload', e)

    query, context = validate_suggestion_request(body)

    service = build_suggestion_service()
    suggestions = service.suggest(query, context)
    saved = store.save_suggestions(query, context, suggestions)

    return Response(status_code=HTTPStatus.OK,
                    content_type="application/json",
                    body=json.dumps({ 'suggestions': suggestions, 'saved': saved }),
                    headers=no_store_headers()
    )

@app.get("/products/search", cors=True, compress=compress_responses)
@tracer.capture_method(capture_response=False)
def get_product_search() -> Response:
    """ API entry point for searching products directly by keyword """
    tracer.put_annotation(key = 'EntryPoint', value = 'products-search')

    query = sanitize_string(str(app.current_event.get_query_string_value(name="q", default_value="")))
    if not query:
        raise ValidationError('MissingQuery', 'Missing ?q= parameter')

    search_config = config.get_search_config()
    client = build_search_client(search_config)
    products = client.search(query, search_config['itemCount'])
    items = [product.to_dict() for product in products]

    return Response(status_code=HTTPStatus.OK,
                    content_type="application/json",
                    body=json.dumps({ 'query': query, 'count': len(items), 'items': items }),
                    headers=no_store_headers()
    )

@app.get("/go", cors=True)
@tracer.capture_method(capture_response=False)
def get_affiliate_redirect() -> Response:
    """ API entry point that tags an Amazon product URL, records the click and redirects to it """
    tracer.put_annotation(key = 'EntryPoint', value = 'affiliate-redirect')

    url = validate_amazon_url(app.current_event.get_query_string_value(name="url", default_value=""))
    name = app.current_event.get_query_string_value(name="name", default_value=None)

    affiliate_tag = os.environ.get('AMAZON_PARTNER_TAG') or DEFAULT_AFFILIATE_TAG
    final_url = tag_affiliate_url(url, affiliate_tag)
    store.log_click(final_url, name, affiliate_tag)

    return Response(status_code=HTTPStatus.FOUND,
                    content_type="text/plain",
                    body='',
                    headers={ 'Location': final_url, 'Cache-Control': 'no-store' }
    )

@app.get("/health", cors=True)
def get_health() -> Response:
    return Response(status_code=HTTPStatus.OK,
                    content_type="application/json",
                    body=json.dumps({ 'status': 'ok', 'timestamp': datetime.now(pytz.utc).isoformat() }),
                    headers={ 'Cache-Control': 'no-store' }
    )

@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@tracer.capture_lambda_handler(capture_response=False)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event, context):
    """ Main function entry point that delegates to request router """
    try:
        return app.resolve(event, context)
    except GiftApiError as e:
        logger.exception(e)
        return {
            'statusCode': e.status_code,
            'headers': {
                "Content-Type" : "application/json"
            },
            'body': json.dumps({
                'type': e.type,
                'code': e.error_code,
                'message': e.error_message
            })
        }
    except Exception as e:
        logger.exception(e)
        formatted_lines = traceback.format_exc().splitlines()
        return {
            'statusCode': HTTPStatus.INTERNAL_SERVER_ERROR,
            'headers': {
                "Content-Type" : "application/json"
            },
            'body': json.dumps({
                'type': 'Unhandled',
                'code': 'InternalError',
                'message': str(e),
                'details': formatted_lines
            }, indent = 2)
        }
