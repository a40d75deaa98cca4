# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

""" Best-effort repair of model completions into decodable JSON

This is heuristic text surgery, not a JSON5 parser. When repair does not
produce valid JSON the parse result reports failure and the caller's retry
policy decides what happens next.
"""

import json
import re

from dataclasses import dataclass
from typing import Any, Callable

FENCE_PATTERN = re.compile(r'```[A-Za-z0-9_+-]*')
ARRAY_OF_OBJECTS_PATTERN = re.compile(r'\[\s*\{.*\}\s*,?\s*\]', re.DOTALL)
STRING_LITERAL_PATTERN = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)
TRAILING_COMMA_PATTERN = re.compile(r',(\s*[\]}])')
BARE_KEY_PATTERN = re.compile(r'([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)')

@dataclass(frozen=True)
class ParseResult:
    success: bool
    value: Any = None
    error: str = None
    text: str = ''

def _outside_strings(text: str, fn: Callable[[str], str]) -> str:
    """ Applies fn only to the parts of text that are not inside double-quoted string literals """
    parts = []
    last = 0
    for match in STRING_LITERAL_PATTERN.finditer(text):
        parts.append(fn(text[last:match.start()]))
        parts.append(match.group(0))
        last = match.end()
    parts.append(fn(text[last:]))
    return ''.join(parts)

def strip_fences(text: str) -> str:
    return FENCE_PATTERN.sub('', text)

def extract_array(text: str) -> str:
    """ Pulls the first-[ to last-] array of objects out of surrounding prose """
    if text.startswith('[') and text.endswith(']'):
        return text
    match = ARRAY_OF_OBJECTS_PATTERN.search(text)
    return match.group(0) if match else text

def remove_trailing_commas(text: str) -> str:
    return _outside_strings(text, lambda chunk: TRAILING_COMMA_PATTERN.sub(r'\1', chunk))

def quote_bare_keys(text: str) -> str:
    return _outside_strings(text, lambda chunk: BARE_KEY_PATTERN.sub(r'\1"\2"\3', chunk))

def repair(raw_text: str) -> str:
    text = strip_fences(raw_text or '').strip()
    text = extract_array(text)
    text = remove_trailing_commas(text)
    return quote_bare_keys(text)

def parse_completion(raw_text: str) -> ParseResult:
    if not raw_text or not raw_text.strip():
        return ParseResult(success=False, error='Completion text is empty')

    candidate = repair(raw_text)
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as e:
        return ParseResult(success=False, error=f'{e.msg}: line {e.lineno} column {e.colno} (char {e.pos})', text=candidate)

    return ParseResult(success=True, value=value, text=candidate)
