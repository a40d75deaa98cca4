# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

""" DynamoDB persistence for suggestion runs and affiliate clicks """

import boto3
import os
import pytz
import uuid

from datetime import datetime
from typing import Dict, List, Mapping
from botocore.exceptions import BotoCoreError, ClientError
from aws_lambda_powertools import Logger, Tracer, Metrics
from aws_lambda_powertools.metrics import MetricUnit
from gift_error import DynamoDbError

tracer = Tracer()
logger = Logger(child=True)
metrics = Metrics()

class InteractionStore():
    def __init__(
        self,
        suggestions_table_name: str = None,
        clicks_table_name: str = None,
        dynamodb = None
    ):
        self.suggestions_table_name = suggestions_table_name
        self.clicks_table_name = clicks_table_name
        self._dynamodb = dynamodb

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] = None) -> 'InteractionStore':
        environ = os.environ if environ is None else environ
        return cls(environ.get('SuggestionsTableName'), environ.get('AffiliateClicksTableName'))

    @property
    def dynamodb(self):
        if self._dynamodb is None:
            self._dynamodb = boto3.resource('dynamodb')
        return self._dynamodb

    def _put_item(self, table_name: str, item: Dict) -> bool:
        if not table_name:
            logger.debug('Table not configured; skipping write of %s', item['id'])
            return False

        try:
            response = self.dynamodb.Table(table_name).put_item(Item = item)
            logger.debug(response)
        except ClientError as e:
            error = DynamoDbError.from_client_error(e)
            metrics.add_metric(name="InteractionWriteErrors", unit=MetricUnit.Count, value=1)
            logger.error('Failed to write %s to %s: %s (%s)', item['id'], table_name, error.error_code, error.error_message)
            return False
        except BotoCoreError as e:
            metrics.add_metric(name="InteractionWriteErrors", unit=MetricUnit.Count, value=1)
            logger.error('Failed to write %s to %s: %s', item['id'], table_name, e)
            return False

        return True

    @staticmethod
    def _new_item() -> Dict:
        return {
            'id': str(uuid.uuid4()),
            'createdAt': datetime.now(pytz.utc).isoformat()
        }

    @tracer.capture_method(capture_response=False)
    def save_suggestions(self, query: str, context: Dict, suggestions: List[Dict]) -> bool:
        item = self._new_item()
        item['query'] = query or ''
        item['context'] = context or {}
        item['suggestions'] = suggestions
        return self._put_item(self.suggestions_table_name, item)

    @tracer.capture_method(capture_response=False)
    def log_click(self, product_url: str, product_name: str = None, affiliate_tag: str = None) -> bool:
        item = self._new_item()
        item['productUrl'] = product_url
        item['productName'] = product_name
        item['affiliateTag'] = affiliate_tag
        return self._put_item(self.clicks_table_name, item)
