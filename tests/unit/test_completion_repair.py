import json

from completion_repair import (
    extract_array, parse_completion, quote_bare_keys, remove_trailing_commas, repair, strip_fences
)

VALID_ARRAY = '[{"title": "Golf Balls", "reason": "For the course", "keywords": ["premium golf balls"]}]'

def test_strip_fences():
    assert strip_fences('```json\n[1]\n```').strip() == '[1]'
    assert strip_fences('```\n[1]\n```').strip() == '[1]'

def test_fenced_completion():
    result = parse_completion(f'```json\n{VALID_ARRAY}\n```')
    assert result.success
    assert result.value[0]['title'] == 'Golf Balls'

def test_trailing_commas():
    assert remove_trailing_commas('[{"a": 1,},]') == '[{"a": 1}]'

    result = parse_completion('[{"title": "Mug", "reason": "Tea", "keywords": ["mug",],},]')
    assert result.success
    assert result.value == [{'title': 'Mug', 'reason': 'Tea', 'keywords': ['mug']}]

def test_bare_keys():
    assert quote_bare_keys('{title: "x", reason: "y"}') == '{"title": "x", "reason": "y"}'

    result = parse_completion('[{title: "Mug", reason: "Tea", keywords: ["mug"]}]')
    assert result.success
    assert result.value[0]['keywords'] == ['mug']

def test_string_contents_untouched():
    text = '[{"title": "Rings, }", "reason": "key: value,]", "keywords": ["a"]}]'
    assert repair(text) == text
    assert parse_completion(text).value[0]['reason'] == 'key: value,]'

def test_array_extracted_from_prose():
    result = parse_completion(f'Sure! Here are some ideas:\n{VALID_ARRAY}\nLet me know if you need more.')
    assert result.success
    assert len(result.value) == 1

def test_extract_leaves_bracketed_text_alone():
    assert extract_array('[1, 2]') == '[1, 2]'
    assert extract_array('no array here') == 'no array here'

def test_valid_json_unchanged():
    assert repair(VALID_ARRAY) == VALID_ARRAY
    assert parse_completion(VALID_ARRAY).value == json.loads(VALID_ARRAY)

def test_empty_completion():
    for text in [None, '', '   \n']:
        result = parse_completion(text)
        assert not result.success
        assert result.error == 'Completion text is empty'

def test_unrepairable_completion():
    result = parse_completion('I am unable to help with that request.')
    assert not result.success
    assert result.error
    assert result.value is None

def test_non_array_json_still_parses():
    result = parse_completion('{"title": "Mug"}')
    assert result.success
    assert result.value == {'title': 'Mug'}
