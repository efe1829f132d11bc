import json

from sage_core.providers.extract import extract_message_content, extract_token


def _chunk(**choice):
    return json.dumps({"choices": [choice]})


def test_delta_content_string():
    assert extract_token(_chunk(delta={"content": "hi"})) == "hi"


def test_delta_content_parts_are_concatenated():
    payload = _chunk(delta={"content": [
        {"type": "text", "text": "a"},
        {"type": "image_url", "image_url": {"url": "x"}},
        {"type": "text", "text": "b"},
    ]})
    assert extract_token(payload) == "ab"


def test_empty_parts_fall_through_to_delta_text():
    payload = _chunk(delta={"content": [{"type": "reasoning", "text": "hidden"}], "text": "visible"})
    assert extract_token(payload) == "visible"


def test_delta_text():
    assert extract_token(_chunk(delta={"text": "legacy"})) == "legacy"


def test_message_content_inside_stream():
    assert extract_token(_chunk(message={"role": "assistant", "content": "whole"})) == "whole"


def test_delta_content_wins_over_message():
    payload = _chunk(delta={"content": "d"}, message={"content": "m"})
    assert extract_token(payload) == "d"


def test_role_only_delta_yields_nothing():
    assert extract_token(_chunk(delta={"role": "assistant"})) is None
    assert extract_token(_chunk(delta={"content": None})) is None


def test_invalid_payloads_return_none():
    assert extract_token("not json") is None
    assert extract_token("{") is None
    assert extract_token("[]") is None
    assert extract_token('{"choices": []}') is None
    assert extract_token('{"choices": ["x"]}') is None
    assert extract_token('{"error": {"message": "boom"}}') is None


def test_extract_message_content_only_reads_message():
    assert extract_message_content(_chunk(message={"content": "done"})) == "done"
    assert extract_message_content(_chunk(delta={"content": "hi"})) is None
    assert extract_message_content("not json") is None
