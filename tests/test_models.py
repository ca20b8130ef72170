import pytest

from graph_mcp.models import GraphRequest, parse_graph_request


def test_endpoint_is_normalized_with_leading_slash():
    result = parse_graph_request({"endpoint": "users"})
    assert result.ok
    assert result.value.endpoint == "/users"


def test_defaults():
    request = parse_graph_request({"endpoint": "/groups"}).value
    assert request.method == "GET"
    assert request.version == "beta"
    assert request.headers == {}
    assert request.query_params == {}
    assert request.all_data is False
    assert request.body is None


def test_camel_case_fields_and_lowercase_method():
    request = parse_graph_request({
        "endpoint": "/users",
        "method": "patch",
        "version": "v1.0",
        "queryParams": {"$top": 5},
        "allData": True,
    }).value
    assert request.method == "PATCH"
    assert request.version == "v1.0"
    assert request.query_params == {"$top": 5}
    assert request.all_data is True
    assert request.is_write


def test_null_optional_fields_take_defaults():
    request = parse_graph_request({
        "endpoint": "/users", "method": None, "version": None,
        "queryParams": None, "allData": None,
    }).value
    assert (request.method, request.version, request.all_data) == ("GET", "beta", False)


@pytest.mark.parametrize("payload", [{}, {"endpoint": ""}, None, ["/users"]])
def test_missing_endpoint(payload):
    result = parse_graph_request(payload)
    assert not result.ok
    assert result.error.status_code == 400
    assert '"endpoint" is required' in result.error.message


def test_invalid_method():
    result = parse_graph_request({"endpoint": "/users", "method": "DELETE"})
    assert not result.ok
    assert result.error.status_code == 400
    assert result.error.message.startswith("Invalid HTTP method: DELETE")


def test_invalid_version():
    result = parse_graph_request({"endpoint": "/users", "version": "v2.0"})
    assert not result.ok
    assert "Invalid API version: v2.0" in result.error.message


def test_unknown_field_rejected():
    result = parse_graph_request({"endpoint": "/users", "verb": "GET"})
    assert not result.ok
    assert result.error.status_code == 400


def test_model_accepts_python_names():
    request = GraphRequest(endpoint="me", query_params={"$select": "id"}, all_data=True)
    assert request.endpoint == "/me"
    assert request.model_dump(by_alias=True)["queryParams"] == {"$select": "id"}
