# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import jsonschema

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional
from gift_constants import MAX_SUGGESTIONS

IDEA_SCHEMA = {
    'type': 'object',
    'required': ['title', 'reason', 'keywords'],
    'properties': {
        'title': {'type': 'string', 'pattern': r'\S'},
        'reason': {'type': 'string', 'pattern': r'\S'},
        'keywords': {
            'type': 'array',
            'minItems': 1,
            'items': {'type': 'string'}
        }
    }
}

_idea_validator = jsonschema.Draft7Validator(IDEA_SCHEMA)

@dataclass(frozen=True)
class GiftIdea:
    title: str
    reason: str
    keywords: List[str]

    def to_dict(self) -> Dict:
        return asdict(self)

def to_gift_idea(element: Any) -> Optional[GiftIdea]:
    """ Returns a trimmed GiftIdea for a structurally valid element, otherwise None """
    if not _idea_validator.is_valid(element):
        return None

    keywords = [keyword.strip() for keyword in element['keywords'] if keyword.strip()]
    if not keywords:
        return None

    return GiftIdea(element['title'].strip(), element['reason'].strip(), keywords)

def validate_ideas(parsed_value: Any, max_ideas: int = MAX_SUGGESTIONS) -> List[GiftIdea]:
    """ Filters a parsed completion down to at most max_ideas valid ideas.

    Anything other than a list yields no ideas. Invalid elements are dropped
    without being reported individually.
    """
    if not isinstance(parsed_value, list):
        return []

    ideas = []
    for element in parsed_value:
        idea = to_gift_idea(element)
        if idea:
            ideas.append(idea)
            if len(ideas) >= max_ideas:
                break

    return ideas
