"""
Operations — High-level calls against the Vendure Shop API.

Each operation follows the same steps:

  1. Resolve the per-type custom field toggles with
     FieldRegistry.should_include() (an explicit True/False from the caller
     wins, otherwise include whatever is registered).
  2. Build the document with QueryBuilder.
  3. Execute it through VendureGraphQLClient.
  4. Raise GraphQLRequestError for GraphQL errors and ErrorResultError for
     union results carrying an errorCode.
  5. Return the payload under the operation's root field as plain dicts.

Decoding into typed models is left to the caller.
"""

import logging
from typing import Any, Dict, List, Optional

from .errors import DecodingError, ErrorResultError
from .graphql_client import AUTH_TOKEN_HEADER, VendureGraphQLClient
from .query_builder import QueryBuilder

logger = logging.getLogger(__name__)

AUTHENTICATE_MUTATION = """
mutation authenticate($username: String!, $password: String!) {
  authenticate(input: { native: { username: $username, password: $password } }) {
    __typename
    ... on CurrentUser { id identifier }
    ... on ErrorResult { errorCode message }
  }
}
"""

LOGIN_MUTATION = """
mutation login($username: String!, $password: String!, $rememberMe: Boolean) {
  login(username: $username, password: $password, rememberMe: $rememberMe) {
    __typename
    ... on CurrentUser { id identifier channels { id token code permissions } }
    ... on ErrorResult { errorCode message }
  }
}
"""

LOGOUT_MUTATION = """
mutation logout {
  logout { success }
}
"""


def raise_for_error_result(result: Any) -> None:
    """Raise ErrorResultError if result is a Vendure ErrorResult object."""
    if isinstance(result, dict) and result.get("errorCode"):
        raise ErrorResultError(
            result["errorCode"],
            result.get("message", ""),
            result.get("__typename"),
        )


class _OperationGroup:
    """Shared plumbing for the operation groups."""

    def __init__(self, client: VendureGraphQLClient, builder: QueryBuilder):
        self.client = client
        self.builder = builder

    @property
    def registry(self):
        return self.builder.registry

    def _include(self, type_name: str, requested: Optional[bool]) -> bool:
        return self.registry.should_include(type_name, requested)

    def _execute(
        self,
        document: str,
        root_field: str,
        variables: Optional[Dict[str, Any]] = None,
        language_code: Optional[str] = None,
    ) -> Any:
        response = self.client.execute(document, variables, language_code=language_code).raise_for_errors()
        data = response.data or {}
        if root_field not in data:
            raise DecodingError(f"Missing '{root_field}' in response data")
        result = data[root_field]
        raise_for_error_result(result)
        return result


class CatalogOperations(_OperationGroup):
    """Products, collections, facets and search."""

    def get_products(
        self,
        options: Optional[Dict[str, Any]] = None,
        include_custom_fields: Optional[bool] = None,
        include_variant_custom_fields: Optional[bool] = None,
        language_code: Optional[str] = None,
    ) -> Dict[str, Any]:
        document = self.builder.build_products_query(
            include_custom_fields=self._include("Product", include_custom_fields),
            include_variant_custom_fields=self._include("ProductVariant", include_variant_custom_fields),
        )
        variables = {"options": options} if options else None
        return self._execute(document, "products", variables, language_code)

    def _get_product(self, by_id, value, include_custom_fields, include_variant_custom_fields, language_code):
        document = self.builder.build_product_query(
            by_id=by_id,
            include_custom_fields=self._include("Product", include_custom_fields),
            include_variant_custom_fields=self._include("ProductVariant", include_variant_custom_fields),
        )
        variables = {"id": value} if by_id else {"slug": value}
        return self._execute(document, "product", variables, language_code)

    def get_product_by_id(self, product_id: str, include_custom_fields: Optional[bool] = None,
                          include_variant_custom_fields: Optional[bool] = None,
                          language_code: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return self._get_product(True, product_id, include_custom_fields,
                                 include_variant_custom_fields, language_code)

    def get_product_by_slug(self, slug: str, include_custom_fields: Optional[bool] = None,
                            include_variant_custom_fields: Optional[bool] = None,
                            language_code: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return self._get_product(False, slug, include_custom_fields,
                                 include_variant_custom_fields, language_code)

    def get_collections(
        self,
        options: Optional[Dict[str, Any]] = None,
        include_custom_fields: Optional[bool] = None,
        include_products: bool = False,
        language_code: Optional[str] = None,
    ) -> Dict[str, Any]:
        document = self.builder.build_collections_query(
            include_custom_fields=self._include("Collection", include_custom_fields),
            include_variant_custom_fields=self._include("ProductVariant", None),
            include_products=include_products,
        )
        variables = {"options": options} if options else None
        return self._execute(document, "collections", variables, language_code)

    def _get_collection(self, by_id, value, include_custom_fields, include_products, language_code):
        document = self.builder.build_collection_query(
            by_id=by_id,
            include_custom_fields=self._include("Collection", include_custom_fields),
            include_products=include_products,
            include_variant_custom_fields=self._include("ProductVariant", None),
        )
        variables = {"id": value} if by_id else {"slug": value}
        return self._execute(document, "collection", variables, language_code)

    def get_collection_by_id(self, collection_id: str, include_custom_fields: Optional[bool] = None,
                             include_products: bool = False,
                             language_code: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return self._get_collection(True, collection_id, include_custom_fields, include_products, language_code)

    def get_collection_by_slug(self, slug: str, include_custom_fields: Optional[bool] = None,
                               include_products: bool = False,
                               language_code: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return self._get_collection(False, slug, include_custom_fields, include_products, language_code)

    def search_catalog(self, search_input: Dict[str, Any], include_custom_fields: Optional[bool] = None,
                       language_code: Optional[str] = None) -> Dict[str, Any]:
        document = self.builder.build_search_query(
            include_custom_fields=self._include("SearchResultItem", include_custom_fields),
        )
        return self._execute(document, "search", {"input": search_input}, language_code)

    def get_facets(self, options: Optional[Dict[str, Any]] = None, include_custom_fields: Optional[bool] = None,
                   language_code: Optional[str] = None) -> Dict[str, Any]:
        document = self.builder.build_facets_query(
            include_custom_fields=self._include("Facet", include_custom_fields),
            include_value_custom_fields=self._include("FacetValue", None),
        )
        variables = {"options": options} if options else None
        return self._execute(document, "facets", variables, language_code)

    def get_facet_by_id(self, facet_id: str, include_custom_fields: Optional[bool] = None,
                        language_code: Optional[str] = None) -> Optional[Dict[str, Any]]:
        document = self.builder.build_facet_query(
            include_custom_fields=self._include("Facet", include_custom_fields),
            include_value_custom_fields=self._include("FacetValue", None),
        )
        return self._execute(document, "facet", {"id": facet_id}, language_code)


class OrderOperations(_OperationGroup):
    """Active order, order lookup and order mutations."""

    def _order_toggles(self, include_custom_fields: Optional[bool]) -> Dict[str, bool]:
        return {
            "include_custom_fields": self._include("Order", include_custom_fields),
            "include_customer_custom_fields": self._include("Customer", None),
            "include_line_custom_fields": self._include("OrderLine", None),
            "include_variant_custom_fields": self._include("ProductVariant", None),
            "include_product_custom_fields": self._include("Product", None),
        }

    def get_active_order(self, include_custom_fields: Optional[bool] = None,
                         language_code: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """The session's active order, or None when there is none."""
        document = self.builder.build_active_order_query(**self._order_toggles(include_custom_fields))
        return self._execute(document, "activeOrder", None, language_code)

    def get_order_by_code(self, code: str, include_custom_fields: Optional[bool] = None,
                          language_code: Optional[str] = None) -> Optional[Dict[str, Any]]:
        document = self.builder.build_order_query(by_code=True, **self._order_toggles(include_custom_fields))
        return self._execute(document, "orderByCode", {"code": code}, language_code)

    def add_item_to_order(self, product_variant_id: str, quantity: int,
                          include_custom_fields: Optional[bool] = None,
                          language_code: Optional[str] = None) -> Dict[str, Any]:
        """Add a variant to the active order.

        Raises:
            ErrorResultError: For InsufficientStockError, OrderLimitError, etc.
        """
        document = self.builder.build_add_item_to_order_mutation(**self._order_toggles(include_custom_fields))
        variables = {"productVariantId": product_variant_id, "quantity": quantity}
        return self._execute(document, "addItemToOrder", variables, language_code)

    def adjust_order_line(self, order_line_id: str, quantity: int,
                          include_custom_fields: Optional[bool] = None,
                          language_code: Optional[str] = None) -> Dict[str, Any]:
        document = self.builder.build_adjust_order_line_mutation(**self._order_toggles(include_custom_fields))
        variables = {"orderLineId": order_line_id, "quantity": quantity}
        return self._execute(document, "adjustOrderLine", variables, language_code)

    def set_order_shipping_address(self, address_input: Dict[str, Any],
                                   include_custom_fields: Optional[bool] = None) -> Dict[str, Any]:
        document = self.builder.build_set_order_shipping_address_mutation(
            include_custom_fields=self._include("Order", include_custom_fields),
        )
        return self._execute(document, "setOrderShippingAddress", {"input": address_input})

    def set_order_billing_address(self, address_input: Dict[str, Any],
                                  include_custom_fields: Optional[bool] = None) -> Dict[str, Any]:
        document = self.builder.build_set_order_billing_address_mutation(
            include_custom_fields=self._include("Order", include_custom_fields),
        )
        return self._execute(document, "setOrderBillingAddress", {"input": address_input})

    def remove_order_line(self, order_line_id: str, include_custom_fields: Optional[bool] = None,
                          language_code: Optional[str] = None) -> Dict[str, Any]:
        document = self.builder.build_remove_order_line_mutation(
            include_custom_fields=self._include("Order", include_custom_fields),
            include_line_custom_fields=self._include("OrderLine", None),
            include_variant_custom_fields=self._include("ProductVariant", None),
        )
        return self._execute(document, "removeOrderLine", {"orderLineId": order_line_id}, language_code)

    def set_order_custom_fields(self, order_input: Dict[str, Any],
                                language_code: Optional[str] = None) -> Dict[str, Any]:
        """Update the active order's custom fields.

        The registered Order fragments are always selected so the caller sees
        the values it just wrote.
        """
        document = self.builder.build_set_order_custom_fields_mutation(include_custom_fields=True)
        return self._execute(document, "setOrderCustomFields", {"input": order_input}, language_code)

    def get_eligible_shipping_methods(self, include_custom_fields: Optional[bool] = None,
                                      language_code: Optional[str] = None) -> List[Dict[str, Any]]:
        document = self.builder.build_eligible_shipping_methods_query(
            include_custom_fields=self._include("ShippingMethodQuote", include_custom_fields),
        )
        return self._execute(document, "eligibleShippingMethods", None, language_code) or []

    def get_eligible_payment_methods(self, include_custom_fields: Optional[bool] = None,
                                     language_code: Optional[str] = None) -> List[Dict[str, Any]]:
        document = self.builder.build_eligible_payment_methods_query(
            include_custom_fields=self._include("PaymentMethodQuote", include_custom_fields),
        )
        return self._execute(document, "eligiblePaymentMethods", None, language_code) or []


class CustomerOperations(_OperationGroup):
    """Active customer and channel."""

    def get_active_customer(self, include_custom_fields: Optional[bool] = None,
                            language_code: Optional[str] = None) -> Optional[Dict[str, Any]]:
        document = self.builder.build_active_customer_query(
            include_custom_fields=self._include("Customer", include_custom_fields),
        )
        return self._execute(document, "activeCustomer", None, language_code)

    def update_customer(self, customer_input: Dict[str, Any], include_custom_fields: Optional[bool] = None,
                        language_code: Optional[str] = None) -> Dict[str, Any]:
        document = self.builder.build_update_customer_mutation(
            include_custom_fields=self._include("Customer", include_custom_fields),
        )
        return self._execute(document, "updateCustomer", {"input": customer_input}, language_code)

    def get_active_channel(self, include_custom_fields: Optional[bool] = None,
                           language_code: Optional[str] = None) -> Dict[str, Any]:
        document = self.builder.build_active_channel_query(
            include_custom_fields=self._include("Channel", include_custom_fields),
        )
        return self._execute(document, "activeChannel", None, language_code)


class AuthOperations:
    """Native authentication.

    authenticate() is the token fetcher used by the token manager; it should
    run on a client that sends no Authorization header of its own.
    """

    def __init__(self, client: VendureGraphQLClient):
        self.client = client

    def _mutate(self, document: str, root_field: str, variables: Optional[Dict[str, Any]] = None):
        response = self.client.execute_mutation(document, variables).raise_for_errors()
        result = (response.data or {}).get(root_field)
        if result is None:
            raise DecodingError(f"Missing '{root_field}' in response data")
        raise_for_error_result(result)
        return result, response.headers.get(AUTH_TOKEN_HEADER)

    def authenticate(self, username: str, password: str) -> Optional[str]:
        """Authenticate with native credentials and return the session token.

        Returns:
            The vendure-auth-token response header, or None if the server
            runs in cookie mode and sent none.

        Raises:
            ErrorResultError: For invalid credentials.
        """
        _, token = self._mutate(AUTHENTICATE_MUTATION, "authenticate",
                                {"username": username, "password": password})
        logger.info("Authenticated as %s", username)
        return token

    def login(self, username: str, password: str, remember_me: bool = False) -> Dict[str, Any]:
        """Log in and, when a token comes back, use it for later requests."""
        result, token = self._mutate(
            LOGIN_MUTATION,
            "login",
            {"username": username, "password": password, "rememberMe": remember_me},
        )
        if token:
            self.client.set_token(token)
        logger.info("Logged in as %s", username)
        return result

    def logout(self) -> bool:
        result, _ = self._mutate(LOGOUT_MUTATION, "logout")
        self.client.set_token(None)
        return bool(result.get("success"))
