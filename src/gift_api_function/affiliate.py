# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

""" Affiliate tagging for outbound product links """

from urllib.parse import urlparse, parse_qsl, urlencode, urlunparse
from gift_error import ValidationError

AFFILIATE_HOST_MARKERS = ['amazon.', 'amzn.']

def validate_amazon_url(url: str) -> str:
    if not isinstance(url, str) or not url.strip():
        raise ValidationError('MissingUrl', 'Parameter "url" is required')

    parsed = urlparse(url.strip())
    if parsed.scheme not in ['http', 'https'] or not parsed.hostname:
        raise ValidationError('InvalidUrl', 'Parameter "url" is not a valid URL')

    if not any(marker in parsed.hostname for marker in AFFILIATE_HOST_MARKERS):
        raise ValidationError('InvalidUrlDomain', 'URL must be an Amazon domain')

    return url.strip()

def tag_affiliate_url(url: str, affiliate_tag: str) -> str:
    """ Adds the affiliate tag unless the URL already carries one; other parameters (e.g. utm_*) are kept """
    parsed = urlparse(url)
    params = parse_qsl(parsed.query, keep_blank_values=True)
    if affiliate_tag and not any(name == 'tag' for name, _ in params):
        params.append(('tag', affiliate_tag))
    return urlunparse(parsed._replace(query=urlencode(params)))
