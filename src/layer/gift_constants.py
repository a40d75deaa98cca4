# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

MAX_SUGGESTIONS = 6
MAX_PRODUCTS_PER_SUGGESTION = 1
AMAZON_ITEMS_TO_FETCH = 6

GEMINI_MODEL = 'gemini-1.5-flash'
GEMINI_MAX_RETRIES = 3
GEMINI_BASE_DELAY_SECONDS = 1.0
GEMINI_TIMEOUT_SECONDS = 10
GEMINI_TEMPERATURE = 0.7
GEMINI_MAX_OUTPUT_TOKENS = 2048

AMAZON_REQUEST_TIMEOUT_SECONDS = 5
AMAZON_MARKETPLACE = 'www.amazon.co.uk'
AMAZON_PA_REGION = 'eu-west-1'
AMAZON_PA_HOST = 'webservices.amazon.co.uk'
AMAZON_PA_SERVICE = 'ProductAdvertisingAPI'

MAX_QUERY_LENGTH = 500
MAX_CONTEXT_FIELD_LENGTH = 50
MAX_INTERESTS = 20
