import json

import pytest

from ecotrip.llm.errors import ResponseParseError
from ecotrip.llm.parser import SNIPPET_LENGTH, parse_json, strip_code_fence


@pytest.mark.parametrize(
    "raw",
    [
        '```json\n{"days": []}\n```',
        '```JSON\n{"days": []}\n```',
        '```\n{"days": []}\n```',
        '  {"days": []}  ',
    ],
)
def test_fenced_and_bare_json_parse_the_same(raw):
    assert parse_json(raw) == {"days": []}


@pytest.mark.parametrize(
    "value",
    [
        0,
        -12.5,
        True,
        None,
        "plain",
        "line one\nline two",
        "use ``` to fence code",
        [],
        [1, "two", None, {"three": 3}],
        {},
        {"days": [{"places": [{"name": "Kawah Putih", "coordinates": {"lat": -7.166, "lng": 107.402}}]}]},
        {"note": "ends with a fence ```", "nested": {"list": ["a\nb", "```json"]}},
    ],
)
@pytest.mark.parametrize("indent", [None, 2])
def test_fenced_json_round_trips(value, indent):
    text = json.dumps(value, indent=indent)
    assert parse_json(f"```json\n{text}\n```") == value
    assert parse_json(f"```\n{text}\n```") == value


def test_strip_code_fence_leaves_unfenced_text_alone():
    assert strip_code_fence("[1, 2]") == "[1, 2]"


def test_fence_inside_body_is_not_stripped():
    text = '{"note": "use ``` for code"}'
    assert parse_json(text) == {"note": "use ``` for code"}


def test_not_json_raises_parse_error():
    with pytest.raises(ResponseParseError) as excinfo:
        parse_json("not json")
    assert excinfo.value.snippet == "not json"


def test_truncated_output_reports_snippet_and_reason():
    body = '{"days": [{"places": [{"name": "' + "x" * 400
    with pytest.raises(ResponseParseError) as excinfo:
        parse_json(f"```json\n{body}")
    assert len(excinfo.value.snippet) == SNIPPET_LENGTH
    assert excinfo.value.snippet == body[:SNIPPET_LENGTH]
    assert "Unterminated string" in excinfo.value.reason


def test_no_repair_of_trailing_commas():
    with pytest.raises(ResponseParseError):
        parse_json('{"dos": ["a", "b",]}')


def test_empty_output_is_a_parse_error():
    with pytest.raises(ResponseParseError):
        parse_json("")
