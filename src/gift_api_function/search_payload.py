# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

""" Product Advertising API SearchItems request bodies """

from typing import Dict, List

DEFAULT_RESOURCES = [
    'Images.Primary.Medium',
    'ItemInfo.Title',
    'Offers.Listings.Price'
]
DEFAULT_SEARCH_INDEX = 'All'
PARTNER_TYPE = 'Associates'

def build_search_items_payload(keywords: str, item_count: int = 10, resources: List[str] = None, search_index: str = None) -> Dict:
    return {
        'Keywords': keywords,
        'ItemCount': item_count,
        'Resources': list(resources) if resources else list(DEFAULT_RESOURCES),
        'SearchIndex': search_index or DEFAULT_SEARCH_INDEX
    }

def with_partner_fields(payload: Dict, partner_tag: str, marketplace: str) -> Dict:
    """ Adds the associate fields every PA-API operation requires; explicit payload values win """
    return {
        'PartnerTag': partner_tag,
        'PartnerType': PARTNER_TYPE,
        'Marketplace': marketplace,
        **payload
    }
