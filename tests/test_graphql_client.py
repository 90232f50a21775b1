"""Tests for vendure_sdk.graphql_client.VendureGraphQLClient.

All tests use a MagicMock session so no real HTTP calls are made.
"""

from unittest.mock import MagicMock

import pytest
import requests

from vendure_sdk.errors import (
    DecodingError,
    GraphQLRequestError,
    HTTPStatusError,
    InitializationError,
    NetworkError,
)
from vendure_sdk.graphql_client import GraphQLResponse, VendureGraphQLClient
from vendure_sdk.token_manager import TokenManager

ENDPOINT = "https://shop.example.com/shop-api"


def _mock_response(body=None, status_code=200, headers=None):
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    mock_resp.json.return_value = body if body is not None else {"data": {}}
    mock_resp.headers = headers or {}
    mock_resp.text = "error body"
    return mock_resp


def _client(response=None, **kwargs):
    session = MagicMock()
    session.post.return_value = response or _mock_response()
    return VendureGraphQLClient(ENDPOINT, session=session, **kwargs), session


# ---------------------------------------------------------------------------
# Initialisation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("endpoint", ["", "not a url", "ftp://shop.example.com", "https://"])
def test_invalid_endpoint(endpoint):
    with pytest.raises(InitializationError):
        VendureGraphQLClient(endpoint)


def test_defaults():
    client = VendureGraphQLClient(ENDPOINT)
    assert client.timeout == 10.0
    assert client.token is None


# ---------------------------------------------------------------------------
# Headers and URL
# ---------------------------------------------------------------------------

def test_headers_with_static_token():
    client, _ = _client(token="abc", language_code="fr", channel_token="eu")
    headers = client.default_headers()
    assert headers["Content-Type"] == "application/json"
    assert headers["Authorization"] == "Bearer abc"
    assert headers["Accept-Language"] == "fr"
    assert headers["vendure-token"] == "eu"


def test_guest_session_sends_no_authorization():
    client, _ = _client(token="abc", use_guest_session=True)
    assert "Authorization" not in client.default_headers()


def test_minimal_headers():
    client, _ = _client()
    assert client.default_headers() == {"Content-Type": "application/json"}


def test_endpoint_url_language():
    client, _ = _client()
    assert client.endpoint_url() == ENDPOINT
    client.set_language_code("fr")
    assert client.endpoint_url() == ENDPOINT + "?languageCode=fr"


def test_endpoint_url_keeps_existing_query():
    client = VendureGraphQLClient(ENDPOINT + "?channel=eu", language_code="de")
    assert client.endpoint_url() == ENDPOINT + "?channel=eu&languageCode=de"


def test_runtime_setters():
    client, _ = _client()
    client.set_token("t")
    client.set_channel_token("c")
    headers = client.default_headers()
    assert headers["Authorization"] == "Bearer t"
    assert headers["vendure-token"] == "c"


def test_token_manager_supplies_token():
    fetcher = MagicMock(return_value="managed")
    client, session = _client(token_manager=TokenManager(fetcher, {}))
    client.execute("query { __typename }")
    client.execute("query { __typename }")
    assert session.post.call_args[1]["headers"]["Authorization"] == "Bearer managed"
    assert fetcher.call_count == 1
    assert client.token == "managed"


def test_refresh_token_without_manager():
    client, _ = _client()
    with pytest.raises(InitializationError):
        client.refresh_token()


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

def test_execute_posts_payload():
    client, session = _client(_mock_response({"data": {"product": {"id": "1"}}}), timeout=5)
    response = client.execute("query product($id: ID!) { product(id: $id) { id } }", {"id": "1"})

    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args[0] == ENDPOINT
    assert kwargs["json"] == {
        "query": "query product($id: ID!) { product(id: $id) { id } }",
        "variables": {"id": "1"},
    }
    assert kwargs["timeout"] == 5
    assert response.data == {"product": {"id": "1"}}
    assert not response.has_errors


def test_execute_omits_empty_variables():
    client, session = _client()
    client.execute("query { __typename }")
    assert "variables" not in session.post.call_args[1]["json"]


def test_extra_headers_override():
    client, session = _client(language_code="en")
    client.execute_query("query { __typename }", headers={"Accept-Language": "fr"})
    assert session.post.call_args[1]["headers"]["Accept-Language"] == "fr"


def test_graphql_errors_returned_not_raised():
    body = {"data": None, "errors": [{"message": "Forbidden"}, {"message": "Bad input"}]}
    client, _ = _client(_mock_response(body))
    response = client.execute_mutation("mutation { logout { success } }")
    assert response.has_errors
    assert response.error_messages == ["Forbidden", "Bad input"]
    with pytest.raises(GraphQLRequestError) as excinfo:
        response.raise_for_errors()
    assert excinfo.value.messages == ["Forbidden", "Bad input"]


def test_http_error_status():
    client, _ = _client(_mock_response(status_code=500))
    with pytest.raises(HTTPStatusError) as excinfo:
        client.execute("query { __typename }")
    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "error body"


def test_network_error():
    client, session = _client()
    session.post.side_effect = requests.ConnectionError("connection refused")
    with pytest.raises(NetworkError):
        client.execute("query { __typename }")


def test_invalid_json():
    response = _mock_response()
    response.json.side_effect = ValueError("Expecting value")
    client, _ = _client(response)
    with pytest.raises(DecodingError):
        client.execute("query { __typename }")


def test_non_object_json():
    client, _ = _client(_mock_response(["not", "an", "object"]))
    with pytest.raises(DecodingError):
        client.execute("query { __typename }")


def test_response_headers_exposed():
    client, _ = _client(_mock_response(headers={"vendure-auth-token": "xyz"}))
    assert client.execute("query { __typename }").headers["vendure-auth-token"] == "xyz"


def test_check_connection():
    client, session = _client(_mock_response({"data": {"__typename": "Query"}}))
    assert client.check_connection() is True
    assert session.post.call_args[1]["json"]["query"] == "query { __typename }"


def test_check_connection_raises_on_errors():
    client, _ = _client(_mock_response({"errors": [{"message": "down"}]}))
    with pytest.raises(GraphQLRequestError):
        client.check_connection()


def test_graphql_response_defaults():
    response = GraphQLResponse()
    assert response.data is None
    assert response.raise_for_errors() is response


# ---------------------------------------------------------------------------
# Per-request language
# ---------------------------------------------------------------------------

def test_per_request_language_overrides_client_language():
    client, session = _client(language_code="fr")
    client.execute("query { __typename }", language_code="de")
    args, kwargs = session.post.call_args
    assert args[0] == ENDPOINT + "?languageCode=de"
    assert kwargs["headers"]["Accept-Language"] == "de"


def test_per_request_language_without_client_language():
    client, session = _client()
    client.execute_query("query { __typename }", language_code="nl")
    args, kwargs = session.post.call_args
    assert args[0] == ENDPOINT + "?languageCode=nl"
    assert kwargs["headers"]["Accept-Language"] == "nl"


def test_client_language_used_when_no_override():
    client, session = _client(language_code="fr")
    client.execute("query { __typename }")
    assert session.post.call_args[0][0] == ENDPOINT + "?languageCode=fr"
