"""Tests for vendure_sdk.operations.

Documents are built for real; the transport session is a MagicMock.
"""

from unittest.mock import MagicMock

import pytest

from vendure_sdk.custom_fields import FieldDeclaration
from vendure_sdk.errors import DecodingError, ErrorResultError, GraphQLRequestError
from vendure_sdk.field_registry import FieldRegistry
from vendure_sdk.graphql_client import VendureGraphQLClient
from vendure_sdk.operations import (
    AuthOperations,
    CatalogOperations,
    CustomerOperations,
    OrderOperations,
    raise_for_error_result,
)
from vendure_sdk.query_builder import QueryBuilder

ENDPOINT = "https://shop.example.com/shop-api"


def _mock_response(body, headers=None):
    mock_resp = MagicMock()
    mock_resp.status_code = 200
    mock_resp.json.return_value = body
    mock_resp.headers = headers or {}
    return mock_resp


@pytest.fixture
def registry():
    return FieldRegistry()


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return VendureGraphQLClient(ENDPOINT, token="abc", session=session)


def _posted(session):
    return session.post.call_args[1]["json"]


# ---------------------------------------------------------------------------
# ErrorResult handling
# ---------------------------------------------------------------------------

def test_raise_for_error_result():
    raise_for_error_result({"id": "1"})
    raise_for_error_result(None)
    with pytest.raises(ErrorResultError) as excinfo:
        raise_for_error_result({
            "__typename": "InsufficientStockError",
            "errorCode": "INSUFFICIENT_STOCK_ERROR",
            "message": "Only 2 items available",
        })
    assert excinfo.value.error_code == "INSUFFICIENT_STOCK_ERROR"
    assert excinfo.value.typename == "InsufficientStockError"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

def test_get_product_by_slug(client, session, registry):
    registry.add(FieldDeclaration.extended_asset("mainUsdzAsset", ["Product"]))
    session.post.return_value = _mock_response({"data": {"product": {"id": "1", "slug": "laptop"}}})
    catalog = CatalogOperations(client, QueryBuilder(registry))

    product = catalog.get_product_by_slug("laptop")

    assert product == {"id": "1", "slug": "laptop"}
    payload = _posted(session)
    assert payload["variables"] == {"slug": "laptop"}
    assert payload["query"].startswith("query product($slug: String!)")
    assert "mainUsdzAsset { id name type mimeType source preview }" in payload["query"]


def test_get_product_custom_fields_opt_out(client, session, registry):
    registry.add(FieldDeclaration.extended_scalar("averageRating", ["Product"]))
    session.post.return_value = _mock_response({"data": {"product": None}})
    catalog = CatalogOperations(client, QueryBuilder(registry))

    assert catalog.get_product_by_id("1", include_custom_fields=False) is None
    assert "averageRating" not in _posted(session)["query"]


def test_get_products_passes_options(client, session, registry):
    session.post.return_value = _mock_response({"data": {"products": {"items": [], "totalItems": 0}}})
    catalog = CatalogOperations(client, QueryBuilder(registry))
    result = catalog.get_products(options={"take": 10})
    assert result["totalItems"] == 0
    assert _posted(session)["variables"] == {"options": {"take": 10}}


def test_language_code_per_call(client, session, registry):
    session.post.return_value = _mock_response({"data": {"collection": {"id": "2"}}})
    catalog = CatalogOperations(client, QueryBuilder(registry))
    catalog.get_collection_by_slug("electronics", language_code="de")
    assert session.post.call_args[1]["headers"]["Accept-Language"] == "de"


def test_search_catalog(client, session, registry):
    registry.add(FieldDeclaration.extended_scalar("averageRating", ["Product"]))
    session.post.return_value = _mock_response({"data": {"search": {"items": [], "totalItems": 0}}})
    catalog = CatalogOperations(client, QueryBuilder(registry))
    catalog.search_catalog({"term": "shoe"})
    payload = _posted(session)
    assert payload["variables"] == {"input": {"term": "shoe"}}
    assert "averageRating" not in payload["query"]


def test_graphql_errors_raise(client, session, registry):
    session.post.return_value = _mock_response({"errors": [{"message": "Forbidden"}]})
    catalog = CatalogOperations(client, QueryBuilder(registry))
    with pytest.raises(GraphQLRequestError, match="Forbidden"):
        catalog.get_facets()


def test_missing_root_field(client, session, registry):
    session.post.return_value = _mock_response({"data": {}})
    catalog = CatalogOperations(client, QueryBuilder(registry))
    with pytest.raises(DecodingError):
        catalog.get_facet_by_id("1")


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

def test_add_item_to_order(client, session, registry):
    registry.add(FieldDeclaration.native_custom_field("engraving", ["OrderLine"]))
    session.post.return_value = _mock_response(
        {"data": {"addItemToOrder": {"__typename": "Order", "id": "9", "code": "ABC"}}}
    )
    orders = OrderOperations(client, QueryBuilder(registry))

    order = orders.add_item_to_order("42", 2)

    assert order["code"] == "ABC"
    payload = _posted(session)
    assert payload["variables"] == {"productVariantId": "42", "quantity": 2}
    assert "customFields { engraving }" in payload["query"]


def test_add_item_error_result(client, session, registry):
    session.post.return_value = _mock_response({"data": {"addItemToOrder": {
        "__typename": "OrderLimitError",
        "errorCode": "ORDER_LIMIT_ERROR",
        "message": "Order limit reached",
    }}})
    orders = OrderOperations(client, QueryBuilder(registry))
    with pytest.raises(ErrorResultError) as excinfo:
        orders.add_item_to_order("42", 1000)
    assert excinfo.value.error_code == "ORDER_LIMIT_ERROR"


def test_active_order_none(client, session, registry):
    session.post.return_value = _mock_response({"data": {"activeOrder": None}})
    orders = OrderOperations(client, QueryBuilder(registry))
    assert orders.get_active_order() is None


def test_get_order_by_code(client, session, registry):
    session.post.return_value = _mock_response({"data": {"orderByCode": {"code": "ABC"}}})
    orders = OrderOperations(client, QueryBuilder(registry))
    assert orders.get_order_by_code("ABC") == {"code": "ABC"}
    assert _posted(session)["variables"] == {"code": "ABC"}


def test_adjust_and_address(client, session, registry):
    orders = OrderOperations(client, QueryBuilder(registry))
    session.post.return_value = _mock_response({"data": {"adjustOrderLine": {"id": "9"}}})
    orders.adjust_order_line("line-1", 3)
    assert _posted(session)["variables"] == {"orderLineId": "line-1", "quantity": 3}

    session.post.return_value = _mock_response({"data": {"setOrderShippingAddress": {"id": "9"}}})
    orders.set_order_shipping_address({"streetLine1": "1 Main St", "countryCode": "GB"})
    assert "setOrderShippingAddress(input: $input)" in _posted(session)["query"]

    session.post.return_value = _mock_response({"data": {"setOrderBillingAddress": {"id": "9"}}})
    orders.set_order_billing_address({"streetLine1": "1 Main St", "countryCode": "GB"})
    assert "setOrderBillingAddress(input: $input)" in _posted(session)["query"]


# ---------------------------------------------------------------------------
# Customers and channel
# ---------------------------------------------------------------------------

def test_active_customer(client, session, registry):
    registry.add(FieldDeclaration.extended_relation("loyaltyTier", ["Customer"], fields=["level"]))
    session.post.return_value = _mock_response({"data": {"activeCustomer": {"id": "5"}}})
    customers = CustomerOperations(client, QueryBuilder(registry))

    assert customers.get_active_customer() == {"id": "5"}
    query = _posted(session)["query"]
    assert "customFields" in query
    assert "loyaltyTier { level }" in query


def test_update_customer(client, session, registry):
    session.post.return_value = _mock_response({"data": {"updateCustomer": {"id": "5"}}})
    customers = CustomerOperations(client, QueryBuilder(registry))
    customers.update_customer({"firstName": "Ada"})
    assert _posted(session)["variables"] == {"input": {"firstName": "Ada"}}


def test_active_channel(client, session, registry):
    session.post.return_value = _mock_response({"data": {"activeChannel": {"code": "default"}}})
    customers = CustomerOperations(client, QueryBuilder(registry))
    assert customers.get_active_channel()["code"] == "default"


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def test_authenticate_returns_header_token(client, session):
    session.post.return_value = _mock_response(
        {"data": {"authenticate": {"__typename": "CurrentUser", "id": "1"}}},
        headers={"vendure-auth-token": "session-token"},
    )
    auth = AuthOperations(client)
    assert auth.authenticate("alice", "secret") == "session-token"
    assert _posted(session)["variables"] == {"username": "alice", "password": "secret"}


def test_authenticate_invalid_credentials(client, session):
    session.post.return_value = _mock_response({"data": {"authenticate": {
        "__typename": "InvalidCredentialsError",
        "errorCode": "INVALID_CREDENTIALS_ERROR",
        "message": "The provided credentials are invalid",
    }}})
    with pytest.raises(ErrorResultError):
        AuthOperations(client).authenticate("alice", "wrong")


def test_login_and_logout_update_client_token(client, session):
    auth = AuthOperations(client)
    session.post.return_value = _mock_response(
        {"data": {"login": {"__typename": "CurrentUser", "id": "1"}}},
        headers={"vendure-auth-token": "new-token"},
    )
    result = auth.login("alice", "secret", remember_me=True)
    assert result["id"] == "1"
    assert client.token == "new-token"
    assert _posted(session)["variables"]["rememberMe"] is True

    session.post.return_value = _mock_response({"data": {"logout": {"success": True}}})
    assert auth.logout() is True
    assert client.token is None


# ---------------------------------------------------------------------------
# Per-call language, order edits and checkout
# ---------------------------------------------------------------------------

def test_language_code_sets_url_parameter(session, registry):
    client = VendureGraphQLClient(ENDPOINT, token="abc", language_code="fr", session=session)
    session.post.return_value = _mock_response({"data": {"products": {"items": [], "totalItems": 0}}})
    CatalogOperations(client, QueryBuilder(registry)).get_products(language_code="de")

    args, kwargs = session.post.call_args
    assert args[0] == ENDPOINT + "?languageCode=de"
    assert kwargs["headers"]["Accept-Language"] == "de"


def test_remove_order_line(client, session, registry):
    registry.add(FieldDeclaration.native_custom_field("engraving", ["OrderLine"]))
    session.post.return_value = _mock_response({"data": {"removeOrderLine": {"__typename": "Order", "id": "9"}}})
    orders = OrderOperations(client, QueryBuilder(registry))

    assert orders.remove_order_line("line-1")["id"] == "9"
    payload = _posted(session)
    assert payload["variables"] == {"orderLineId": "line-1"}
    assert "customFields { engraving }" in payload["query"]


def test_remove_order_line_error_result(client, session, registry):
    session.post.return_value = _mock_response({"data": {"removeOrderLine": {
        "__typename": "OrderModificationError",
        "errorCode": "ORDER_MODIFICATION_ERROR",
        "message": "Order cannot be modified",
    }}})
    with pytest.raises(ErrorResultError):
        OrderOperations(client, QueryBuilder(registry)).remove_order_line("line-1")


def test_set_order_custom_fields_selects_order_fragments(client, session, registry):
    registry.add(FieldDeclaration.native_custom_field("giftMessage", ["Order"]))
    session.post.return_value = _mock_response({"data": {"setOrderCustomFields": {"id": "9"}}})
    orders = OrderOperations(client, QueryBuilder(registry))

    orders.set_order_custom_fields({"customFields": {"giftMessage": "Happy birthday"}})
    payload = _posted(session)
    assert payload["variables"] == {"input": {"customFields": {"giftMessage": "Happy birthday"}}}
    assert "customFields { giftMessage }" in payload["query"]


def test_eligible_methods_return_lists(client, session, registry):
    orders = OrderOperations(client, QueryBuilder(registry))

    session.post.return_value = _mock_response({"data": {"eligibleShippingMethods": [{"id": "1", "code": "std"}]}})
    assert orders.get_eligible_shipping_methods() == [{"id": "1", "code": "std"}]
    assert "eligibleShippingMethods {" in _posted(session)["query"]

    session.post.return_value = _mock_response({"data": {"eligiblePaymentMethods": None}})
    assert orders.get_eligible_payment_methods() == []
