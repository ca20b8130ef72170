import json

from graph_mcp.sanitize import parse_body, repair_json


def test_repairs_single_quoted_messages():
    raw = "{'messages': [{'role': 'user', 'content': 'hi'}]}"
    repaired = repair_json(raw)
    assert json.loads(repaired) == {"messages": [{"role": "user", "content": "hi"}]}


def test_valid_json_is_returned_unchanged():
    raw = '{"endpoint": "/users", "queryParams": {"$top": 5}}'
    assert repair_json(raw) == raw
    assert repair_json(repair_json(raw)) == raw


def test_quotes_bare_keys():
    repaired = repair_json("{endpoint: '/users', allData: true, $top: 3}")
    assert json.loads(repaired) == {"endpoint": "/users", "allData": True, "$top": 3}


def test_strips_wrapping_single_quotes():
    assert json.loads(repair_json("'{\"a\": 1}'")) == {"a": 1}


def test_single_quotes_inside_double_quoted_strings_are_kept():
    raw = "{'filter': \"department eq 'Sales'\"}"
    assert json.loads(repair_json(raw)) == {"filter": "department eq 'Sales'"}


def test_colon_inside_value_is_left_alone():
    repaired = repair_json("{'link': 'https://graph.microsoft.com/beta/users'}")
    assert json.loads(repaired) == {"link": "https://graph.microsoft.com/beta/users"}


def test_irreparable_input_is_returned_unchanged():
    raw = "{'messages': [{'role': 'user'"
    assert repair_json(raw) == raw


def test_trailing_comma_is_not_repaired():
    raw = "{'a': 1,}"
    assert repair_json(raw) == raw


def test_non_string_passes_through():
    assert repair_json(None) is None


def test_parse_body_strict_json():
    result = parse_body(b'{"endpoint": "/users"}')
    assert result.ok
    assert result.value == {"endpoint": "/users"}


def test_parse_body_repairs():
    result = parse_body("{endpoint: '/groups'}")
    assert result.ok
    assert result.value == {"endpoint": "/groups"}


def test_parse_body_empty_is_empty_object():
    assert parse_body(b"  ").value == {}


def test_parse_body_failure_is_400():
    result = parse_body("{'endpoint': ")
    assert not result.ok
    assert result.error.status_code == 400
    assert "Invalid JSON" in result.error.message
