from __future__ import annotations

import allure

from vault_scout.orchestrator.output_parsing import Malformed, Parsed, parse_json_response

pytestmark = [
    allure.epic("LLM Runtime"),
    allure.feature("Output Parsing"),
]


def test_parses_plain_json_object() -> None:
    result = parse_json_response('{"relevant": true, "confidence": 0.8}')

    assert result == Parsed({"relevant": True, "confidence": 0.8})


def test_parses_json_wrapped_in_code_fence() -> None:
    result = parse_json_response('```json\n{"summary": "ok"}\n```')

    assert isinstance(result, Parsed)
    assert result.payload == {"summary": "ok"}


def test_extracts_fenced_block_surrounded_by_prose() -> None:
    text = 'Here is my answer:\n```json\n{"relevant": false}\n```\nHope this helps.'

    result = parse_json_response(text)

    assert isinstance(result, Parsed)
    assert result.payload == {"relevant": False}


def test_extracts_outermost_object_from_prose() -> None:
    text = 'Sure! {"relevant": true, "nested": {"a": 1}} Let me know.'

    result = parse_json_response(text)

    assert isinstance(result, Parsed)
    assert result.payload == {"relevant": True, "nested": {"a": 1}}


def test_non_object_json_is_malformed() -> None:
    result = parse_json_response('["not", "an", "object"]')

    assert isinstance(result, Malformed)
    assert result.reason == "expected JSON object, got list"


def test_empty_and_garbage_responses_are_malformed() -> None:
    empty = parse_json_response("   ")
    garbage = parse_json_response("I could not decide, sorry.")

    assert isinstance(empty, Malformed)
    assert empty.reason == "empty response"
    assert isinstance(garbage, Malformed)
    assert garbage.reason == "no JSON object found"
    assert garbage.raw == "I could not decide, sorry."
