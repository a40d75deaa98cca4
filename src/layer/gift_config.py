# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import json
import os
import urllib.request
import copy

from typing import Any, Dict, Mapping
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from aws_lambda_powertools import Logger, Tracer
from gift_constants import (
    GEMINI_MODEL, GEMINI_MAX_RETRIES, GEMINI_BASE_DELAY_SECONDS, GEMINI_TIMEOUT_SECONDS,
    GEMINI_TEMPERATURE, GEMINI_MAX_OUTPUT_TOKENS, MAX_SUGGESTIONS, AMAZON_MARKETPLACE,
    AMAZON_ITEMS_TO_FETCH, MAX_PRODUCTS_PER_SUGGESTION, AMAZON_REQUEST_TIMEOUT_SECONDS
)

logger = Logger(child=True)
tracer = Tracer()

DEFAULT_RETRIEVAL_CONFIG = {
    'model': GEMINI_MODEL,
    'maxRetries': GEMINI_MAX_RETRIES,
    'baseDelaySeconds': GEMINI_BASE_DELAY_SECONDS,
    'maxIdeas': MAX_SUGGESTIONS,
    'timeoutSeconds': GEMINI_TIMEOUT_SECONDS,
    'temperature': GEMINI_TEMPERATURE,
    'maxOutputTokens': GEMINI_MAX_OUTPUT_TOKENS
}

DEFAULT_SEARCH_CONFIG = {
    'marketplace': AMAZON_MARKETPLACE,
    'itemCount': AMAZON_ITEMS_TO_FETCH,
    'productsPerSuggestion': MAX_PRODUCTS_PER_SUGGESTION,
    'timeoutSeconds': AMAZON_REQUEST_TIMEOUT_SECONDS
}

# Environment variable name -> (config section, field, type)
ENVIRONMENT_OVERRIDES = {
    'GEMINI_MODEL': ('retrieval', 'model', str),
    'GEMINI_MAX_RETRIES': ('retrieval', 'maxRetries', int),
    'GEMINI_BASE_DELAY_SECONDS': ('retrieval', 'baseDelaySeconds', float),
    'GEMINI_TIMEOUT_SECONDS': ('retrieval', 'timeoutSeconds', float),
    'MAX_SUGGESTIONS': ('retrieval', 'maxIdeas', int),
    'AMAZON_MARKETPLACE': ('search', 'marketplace', str),
    'AMAZON_ITEMS_TO_FETCH': ('search', 'itemCount', int),
    'MAX_PRODUCTS_PER_SUGGESTION': ('search', 'productsPerSuggestion', int),
    'AMAZON_REQUEST_TIMEOUT_SECONDS': ('search', 'timeoutSeconds', float)
}

class GiftApiConfig(ABC):
    def __init__(self):
        pass

    def get_retrieval_config(self) -> Dict:
        return self.inherit_config(DEFAULT_RETRIEVAL_CONFIG, self.get_config().get('retrieval'))

    def get_search_config(self) -> Dict:
        return self.inherit_config(DEFAULT_SEARCH_CONFIG, self.get_config().get('search'))

    def get_version(self, default: str = None) -> str:
        return self.get_config().get('version', default)

    def inherit_config(self, parent: Dict, config: Dict) -> Dict:
        """ Returns a copy of parent with any non-null values in config layered on top """
        inherited = copy.copy(parent)
        if config:
            for key, value in config.items():
                if value is not None:
                    inherited[key] = value

        return inherited

    @abstractmethod
    def get_config(self, max_age: int = 60) -> Dict:
        pass

    @staticmethod
    def get_instance(type: str = 'Environment') -> Any:
        """ Creates a config based on the type """
        if type == 'Environment':
            return EnvironmentGiftApiConfig()
        if type == 'AppConfig':
            return AppConfigGiftApiConfig()
        raise ValueError('Invalid gift API config type')

class EnvironmentGiftApiConfig(GiftApiConfig):
    def __init__(self, environ: Mapping[str, str] = None):
        super().__init__()
        self.environ = os.environ if environ is None else environ
        self.config = None

    def get_config(self, max_age: int = 60) -> Dict:
        if self.config is None:
            self.config = self._from_environment()
        return self.config

    def _from_environment(self) -> Dict:
        config = {}
        for env_name, (section, field, cast) in ENVIRONMENT_OVERRIDES.items():
            value = self.environ.get(env_name)
            if value is None or value.strip() == '':
                continue
            try:
                config.setdefault(section, {})[field] = cast(value)
            except ValueError:
                logger.warning('Ignoring environment variable %s; "%s" is not a valid %s', env_name, value, cast.__name__)

        if self.environ.get('CONFIG_VERSION'):
            config['version'] = self.environ['CONFIG_VERSION']

        return config

class AppConfigGiftApiConfig(GiftApiConfig):
    def __init__(self):
        super().__init__()
        self.config = None
        self.ttl = 0

    def get_config(self, max_age: int = 10) -> Dict:
        if self.config and self.ttl > datetime.now():
            return self.config

        return self._get_from_app_config(max_age)

    @tracer.capture_method(capture_response=False)
    def _get_from_app_config(self, max_age: int = 10) -> Dict:
        logger.debug('Fetching configuration from AppConfig Lambda extension')

        url = f'http://localhost:2772{os.environ["AWS_APPCONFIG_EXTENSION_PREFETCH_LIST"]}'
        resp = urllib.request.urlopen(url).read()
        self.ttl = datetime.now() + timedelta(seconds=max_age)
        self.config = json.loads(resp) if resp else {}
        return self.config
