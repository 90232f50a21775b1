"""
Query Builder — GraphQL documents for the Vendure Shop API.

Each build_* method assembles one complete document: a fixed operation
header, a caller-overridable list of base fields, fixed nested selections,
and splice points where the FieldRegistry contributes integrator-registered
fragments for the GraphQL type found at that nesting level.

Splice points per document family:

  Product      Product (top level), ProductVariant (inside variants)
  Collection   Collection (top level), ProductVariant (inside productVariants.items)
  Facet        FacetValue (inside values), Facet (top level)
  Order        Customer (inside customer), Product (inside
               lines.productVariant.product), ProductVariant (inside
               lines.productVariant), OrderLine (inside lines), Order (top
               level, last)
  Order edits  removeOrderLine: ProductVariant, OrderLine, Order;
               setOrderCustomFields: Order
  Checkout     ShippingMethodQuote, PaymentMethodQuote
  Customer     literal customFields plus every extended Customer fragment as
               its own sibling; Address (inside addresses)
  Search       none; cacheIdentifier when the registry's cache backend flag is on
  Asset        Asset
  Channel      Channel

Every include_* toggle is resolved through FieldRegistry.should_include():
True (the default) and False are honoured as given, None lets the registry
decide from what is registered. Customer documents are the exception: their
extended fields are gated by a plain boolean and customFields is always
selected.

Builders never fail because nothing is registered; an empty splice point
emits nothing. Variables are not part of the document and are passed to the
transport separately.

Typical usage:
    builder = QueryBuilder(registry)
    document = builder.build_product_query(by_id=True)
    response = client.execute_query(document, {"id": "42"})
"""

import logging
from typing import Iterable, Optional, Sequence

from .errors import UnknownOperationError
from .field_registry import FieldRegistry, default_registry
from .selection import SelectionBuilder

logger = logging.getLogger(__name__)

# Default base fields, overridable per call.
PRODUCT_BASE_FIELDS = ("id", "name", "slug", "description", "enabled", "createdAt", "updatedAt")
COLLECTION_BASE_FIELDS = ("id", "name", "slug", "description", "languageCode", "createdAt", "updatedAt")
FACET_BASE_FIELDS = ("id", "name", "code", "isPrivate", "languageCode")
ASSET_BASE_FIELDS = (
    "id", "name", "type", "mimeType", "width", "height", "fileSize", "source", "preview", "focalPoint { x y }",
)
ORDER_BASE_FIELDS = (
    "id", "code", "state", "active", "currencyCode", "totalQuantity",
    "subTotal", "subTotalWithTax", "shipping", "shippingWithTax", "total", "totalWithTax",
    "createdAt", "updatedAt", "orderPlacedAt",
)
CUSTOMER_BASE_FIELDS = (
    "id", "title", "firstName", "lastName", "emailAddress", "phoneNumber", "createdAt", "updatedAt",
)
CHANNEL_BASE_FIELDS = (
    "id", "code", "token", "currencyCode", "defaultLanguageCode", "availableLanguageCodes", "pricesIncludeTax",
)

# Fixed nested selections.
ASSET_SELECTION = "{ id preview source name type mimeType }"
DETAILED_ASSET_SELECTION = (
    "{ id name type fileSize mimeType width height source preview focalPoint { x y } tags { id value } }"
)
SHORT_ASSET = "featuredAsset { id preview source }"
ADDRESS_SELECTION = (
    "{ id fullName company streetLine1 streetLine2 city province postalCode country phoneNumber }"
)
CUSTOMER_ADDRESS_FIELDS = (
    "id fullName company streetLine1 streetLine2 city province postalCode",
    "country { id code name }",
    "phoneNumber defaultShippingAddress defaultBillingAddress",
)
DISCOUNTS = "discounts { adjustmentSource type description amount amountWithTax }"
FACET_VALUE_SUMMARY = "facetValues { id name code facet { id name } }"
PRICE_SELECTION = "{ ... on PriceRange { min max } ... on SinglePrice { value } }"
ORDER_ERROR_RESULTS = (
    "... on ErrorResult { errorCode message }",
    "... on InsufficientStockError { quantityAvailable order { id } }",
    "... on OrderLimitError { maxItems }",
)

# Translation field sets per entity.
TRANSLATED_NAME = "name"
TRANSLATED_CATALOG = "name slug description"


class QueryBuilder:
    """Builds Vendure GraphQL documents with registry-driven custom fields.

    Attributes:
        registry: The FieldRegistry consulted at every splice point. Defaults
            to the process-wide registry returned by default_registry().
    """

    OPERATIONS = {
        "products": "build_products_query",
        "product": "build_product_query",
        "collections": "build_collections_query",
        "collection": "build_collection_query",
        "facets": "build_facets_query",
        "facet": "build_facet_query",
        "assets": "build_assets_query",
        "asset": "build_asset_query",
        "search": "build_search_query",
        "orders": "build_orders_query",
        "order": "build_order_query",
        "activeOrder": "build_active_order_query",
        "addItemToOrder": "build_add_item_to_order_mutation",
        "adjustOrderLine": "build_adjust_order_line_mutation",
        "setOrderShippingAddress": "build_set_order_shipping_address_mutation",
        "setOrderBillingAddress": "build_set_order_billing_address_mutation",
        "removeOrderLine": "build_remove_order_line_mutation",
        "setOrderCustomFields": "build_set_order_custom_fields_mutation",
        "eligibleShippingMethods": "build_eligible_shipping_methods_query",
        "eligiblePaymentMethods": "build_eligible_payment_methods_query",
        "customers": "build_customers_query",
        "customer": "build_customer_query",
        "activeCustomer": "build_active_customer_query",
        "updateCustomer": "build_update_customer_mutation",
        "activeChannel": "build_active_channel_query",
    }

    def __init__(self, registry: Optional[FieldRegistry] = None):
        self.registry = registry if registry is not None else default_registry()

    # ── Dispatch ──────────────────────────────────────────────────

    def build_query(self, operation_name: str, **options) -> str:
        """Build the document for a GraphQL operation name.

        Options are forwarded to the matching build_* method. Callers are
        expected to pass a consistent set (e.g. by_id=False when they hold a
        slug); an option the builder does not accept raises TypeError.

        Raises:
            UnknownOperationError: No builder exists for operation_name.
        """
        method_name = self.OPERATIONS.get(operation_name)
        if method_name is None:
            raise UnknownOperationError(
                f"No document builder for operation '{operation_name}'. "
                f"Known operations: {', '.join(sorted(self.OPERATIONS))}"
            )
        return getattr(self, method_name)(**options)

    # ── Helpers ───────────────────────────────────────────────────

    def _splice(self, builder: SelectionBuilder, type_name: str, include: Optional[bool]) -> None:
        if self.registry.should_include(type_name, include):
            for declaration in self.registry.query_for(type_name):
                builder.fragment(declaration.fragment)

    def _splice_customer(self, builder: SelectionBuilder, include: bool) -> None:
        builder.fields("customFields")
        if include:
            for declaration in self.registry.query_extended_for("Customer"):
                builder.fragment(declaration.fragment)

    @staticmethod
    def _translations(builder: SelectionBuilder, include: bool, fields: str = TRANSLATED_NAME) -> None:
        if include:
            builder.fields(f"translations {{ languageCode {fields} }}")

    @staticmethod
    def _lookup(by_id: bool):
        return ("id", "ID!") if by_id else ("slug", "String!")

    @staticmethod
    def _finish(builder: SelectionBuilder, name: str) -> str:
        document = builder.render()
        logger.debug("Built '%s' document (%d chars)", name, len(document))
        return document

    # ── Products ──────────────────────────────────────────────────

    def _product_selection(
        self,
        b: SelectionBuilder,
        base_fields: Iterable[str],
        include_custom_fields: Optional[bool],
        include_variant_custom_fields: Optional[bool],
        include_translations: bool,
        detailed: bool,
    ) -> None:
        asset = DETAILED_ASSET_SELECTION if detailed else ASSET_SELECTION
        b.fields(*base_fields)
        b.fields("languageCode", f"featuredAsset {asset}", f"assets {asset}")
        if detailed:
            with b.block("optionGroups"):
                b.fields("id code name languageCode")
                with b.block("options"):
                    b.fields("id code name groupId")
                    self._translations(b, include_translations)
                self._translations(b, include_translations)
            with b.block("facetValues"):
                b.fields("id name code facetId", "facet { id name code isPrivate }")
                self._translations(b, include_translations)
        else:
            b.fields("optionGroups { id name options { id name } }", FACET_VALUE_SUMMARY)
        self._translations(b, include_translations, TRANSLATED_CATALOG)

        with b.block("variants"):
            b.fields("id name sku price priceWithTax currencyCode stockLevel")
            if detailed:
                b.fields(
                    "enabled createdAt updatedAt languageCode",
                    "stockOnHand stockAllocated trackInventory outOfStockThreshold useGlobalOutOfStockThreshold",
                )
            b.fields(f"featuredAsset {asset}", f"assets {asset}")
            if detailed:
                with b.block("options"):
                    b.fields("id code name groupId", "group { id name }")
                    self._translations(b, include_translations)
            else:
                b.fields("options { id code name }")
            b.fields(FACET_VALUE_SUMMARY)
            self._translations(b, include_translations)
            self._splice(b, "ProductVariant", include_variant_custom_fields)

        self._splice(b, "Product", include_custom_fields)

    def build_products_query(
        self,
        include_custom_fields: Optional[bool] = True,
        include_variant_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = PRODUCT_BASE_FIELDS,
        include_translations: bool = False,
    ) -> str:
        """Paginated product list: `products(options: ProductListOptions)`."""
        b = SelectionBuilder()
        with b.operation("query", "products", {"options": "ProductListOptions"}):
            with b.block("products(options: $options)"):
                with b.block("items"):
                    self._product_selection(
                        b, base_fields, include_custom_fields,
                        include_variant_custom_fields, include_translations, detailed=False,
                    )
                b.fields("totalItems")
        return self._finish(b, "products")

    def build_product_query(
        self,
        by_id: bool = True,
        include_custom_fields: Optional[bool] = True,
        include_variant_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = PRODUCT_BASE_FIELDS,
        include_translations: bool = False,
    ) -> str:
        """Single product by `$id: ID!` or, with by_id=False, `$slug: String!`."""
        arg, arg_type = self._lookup(by_id)
        b = SelectionBuilder()
        with b.operation("query", "product", {arg: arg_type}):
            with b.block(f"product({arg}: ${arg})"):
                self._product_selection(
                    b, base_fields, include_custom_fields,
                    include_variant_custom_fields, include_translations, detailed=True,
                )
        return self._finish(b, "product")

    # ── Collections ───────────────────────────────────────────────

    def _collection_variants(
        self,
        b: SelectionBuilder,
        take: int,
        include_variant_custom_fields: Optional[bool],
        detailed: bool,
    ) -> None:
        with b.block(f"productVariants(options: {{ take: {take} }})"):
            with b.block("items"):
                b.fields("id name sku price priceWithTax currencyCode stockLevel")
                if detailed:
                    b.fields("enabled", SHORT_ASSET, "assets { id preview source }", "options { id code name }")
                    b.fields(f"product {{ id name slug description enabled {SHORT_ASSET} }}")
                else:
                    b.fields("product { id name slug featuredAsset { id preview } }")
                self._splice(b, "ProductVariant", include_variant_custom_fields)
            b.fields("totalItems")

    def build_collections_query(
        self,
        include_custom_fields: Optional[bool] = True,
        include_variant_custom_fields: Optional[bool] = True,
        detailed: bool = False,
        include_products: bool = False,
        base_fields: Sequence[str] = COLLECTION_BASE_FIELDS,
        include_translations: bool = False,
    ) -> str:
        """Paginated collection list, optionally with the first variants of each."""
        b = SelectionBuilder()
        with b.operation("query", "collections", {"options": "CollectionListOptions"}):
            with b.block("collections(options: $options)"):
                with b.block("items"):
                    b.fields(*base_fields)
                    if detailed:
                        b.fields("breadcrumbs { id name slug }", "position isRoot parentId")
                    b.fields(
                        "parent { id name slug }",
                        "children { id name slug }",
                        f"featuredAsset {ASSET_SELECTION}",
                        f"assets {ASSET_SELECTION}",
                    )
                    self._translations(b, include_translations, TRANSLATED_CATALOG)
                    if include_products:
                        logger.warning(
                            "Including product variants in the collection list query can be expensive"
                        )
                        self._collection_variants(b, 5, include_variant_custom_fields, detailed=False)
                    self._splice(b, "Collection", include_custom_fields)
                b.fields("totalItems")
        return self._finish(b, "collections")

    def build_collection_query(
        self,
        by_id: bool = True,
        include_custom_fields: Optional[bool] = True,
        include_products: bool = False,
        include_variant_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = COLLECTION_BASE_FIELDS,
        include_translations: bool = False,
    ) -> str:
        """Single collection by id or slug."""
        arg, arg_type = self._lookup(by_id)
        b = SelectionBuilder()
        with b.operation("query", "collection", {arg: arg_type}):
            with b.block(f"collection({arg}: ${arg})"):
                b.fields(*base_fields)
                b.fields(
                    "breadcrumbs { id name slug }",
                    "position isRoot parentId",
                    "parent { id name slug }",
                    "children { id name slug }",
                    f"featuredAsset {DETAILED_ASSET_SELECTION}",
                    f"assets {DETAILED_ASSET_SELECTION}",
                )
                self._translations(b, include_translations, TRANSLATED_CATALOG)
                if include_products:
                    self._collection_variants(b, 50, include_variant_custom_fields, detailed=True)
                self._splice(b, "Collection", include_custom_fields)
        return self._finish(b, "collection")

    # ── Facets ────────────────────────────────────────────────────

    def _facet_selection(
        self,
        b: SelectionBuilder,
        base_fields: Iterable[str],
        include_custom_fields: Optional[bool],
        include_value_custom_fields: Optional[bool],
        include_translations: bool,
    ) -> None:
        b.fields(*base_fields)
        self._translations(b, include_translations)
        with b.block("values"):
            b.fields("id name code")
            self._translations(b, include_translations)
            self._splice(b, "FacetValue", include_value_custom_fields)
        self._splice(b, "Facet", include_custom_fields)

    def build_facets_query(
        self,
        include_custom_fields: Optional[bool] = True,
        include_value_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = FACET_BASE_FIELDS,
        include_translations: bool = False,
    ) -> str:
        b = SelectionBuilder()
        with b.operation("query", "facets", {"options": "FacetListOptions"}):
            with b.block("facets(options: $options)"):
                with b.block("items"):
                    self._facet_selection(
                        b, base_fields, include_custom_fields,
                        include_value_custom_fields, include_translations,
                    )
                b.fields("totalItems")
        return self._finish(b, "facets")

    def build_facet_query(
        self,
        include_custom_fields: Optional[bool] = True,
        include_value_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = FACET_BASE_FIELDS,
        include_translations: bool = False,
    ) -> str:
        b = SelectionBuilder()
        with b.operation("query", "facet", {"id": "ID!"}):
            with b.block("facet(id: $id)"):
                self._facet_selection(
                    b, base_fields, include_custom_fields,
                    include_value_custom_fields, include_translations,
                )
        return self._finish(b, "facet")

    # ── Assets ────────────────────────────────────────────────────

    def build_assets_query(
        self,
        include_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = ASSET_BASE_FIELDS,
    ) -> str:
        b = SelectionBuilder()
        with b.operation("query", "assets", {"options": "AssetListOptions"}):
            with b.block("assets(options: $options)"):
                with b.block("items"):
                    b.fields(*base_fields)
                    b.fields("tags { id value }")
                    self._splice(b, "Asset", include_custom_fields)
                b.fields("totalItems")
        return self._finish(b, "assets")

    def build_asset_query(
        self,
        include_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = ASSET_BASE_FIELDS + ("createdAt", "updatedAt"),
    ) -> str:
        b = SelectionBuilder()
        with b.operation("query", "asset", {"id": "ID!"}):
            with b.block("asset(id: $id)"):
                b.fields(*base_fields)
                b.fields("tags { id value }")
                self._splice(b, "Asset", include_custom_fields)
        return self._finish(b, "asset")

    # ── Search ────────────────────────────────────────────────────

    def build_search_query(self, include_custom_fields: bool = False) -> str:
        """Catalog search. SearchResultItem has no custom fields to inject."""
        if include_custom_fields:
            logger.warning(
                "build_search_query called with include_custom_fields=True, "
                "but SearchResultItem does not support custom fields"
            )
        b = SelectionBuilder()
        with b.operation("query", "search", {"input": "SearchInput!"}):
            with b.block("search(input: $input)"):
                if self.registry.cache_backend_enabled:
                    b.fields("cacheIdentifier { collectionSlug }")
                with b.block("items"):
                    b.fields(
                        "productId productName productVariantId productVariantName sku slug description currencyCode score",
                        "productAsset { id preview focalPoint { x y } }",
                        "productVariantAsset { id preview focalPoint { x y } }",
                        f"price {PRICE_SELECTION}",
                        f"priceWithTax {PRICE_SELECTION}",
                        "collectionIds facetIds facetValueIds",
                    )
                b.fields("totalItems")
                with b.block("facetValues"):
                    b.fields("count", "facetValue { id name facet { id name } }")
        return self._finish(b, "search")

    # ── Orders ────────────────────────────────────────────────────

    def _order_lines(
        self,
        b: SelectionBuilder,
        include_line_custom_fields: Optional[bool],
        include_variant_custom_fields: Optional[bool],
        include_product_custom_fields: Optional[bool],
        detailed: bool,
    ) -> None:
        with b.block("lines"):
            b.fields(
                "id quantity unitPrice unitPriceWithTax linePrice linePriceWithTax "
                "discountedLinePrice discountedLinePriceWithTax",
                SHORT_ASSET,
            )
            if detailed:
                b.fields(DISCOUNTS, "taxLines { description taxRate }")
            with b.block("productVariant"):
                b.fields("id name sku price priceWithTax stockLevel", SHORT_ASSET, "options { id code name }")
                if detailed:
                    b.fields("assets { id preview source }", FACET_VALUE_SUMMARY)
                with b.block("product"):
                    b.fields("id name slug description", SHORT_ASSET)
                    self._splice(b, "Product", include_product_custom_fields)
                self._splice(b, "ProductVariant", include_variant_custom_fields)
            self._splice(b, "OrderLine", include_line_custom_fields)

    def _order_selection(
        self,
        b: SelectionBuilder,
        base_fields: Iterable[str],
        include_custom_fields: Optional[bool],
        include_customer_custom_fields: Optional[bool],
        include_line_custom_fields: Optional[bool],
        include_variant_custom_fields: Optional[bool],
        include_product_custom_fields: Optional[bool],
        detailed: bool = False,
    ) -> None:
        b.fields(*base_fields)
        b.fields("couponCodes", DISCOUNTS, "promotions { id name couponCode }")
        if detailed:
            b.fields(
                "type",
                "fulfillments { id state method trackingCode createdAt lines { orderLineId quantity } }",
                "history(options: { sort: { createdAt: ASC } }) { items { id type createdAt data } totalItems }",
                "surcharges { id description sku price priceWithTax taxRate }",
                "taxSummary { description taxRate taxBase taxTotal }",
            )
        with b.block("customer"):
            b.fields("id firstName lastName emailAddress title phoneNumber")
            self._splice(b, "Customer", include_customer_custom_fields)
        b.fields(
            f"shippingAddress {ADDRESS_SELECTION}",
            f"billingAddress {ADDRESS_SELECTION}",
            "shippingLines { id price priceWithTax shippingMethod { id code name } }",
            "payments { id transactionId method amount state errorMessage createdAt }",
        )
        self._order_lines(
            b, include_line_custom_fields, include_variant_custom_fields,
            include_product_custom_fields, detailed,
        )
        self._splice(b, "Order", include_custom_fields)

    def build_orders_query(
        self,
        include_custom_fields: Optional[bool] = True,
        include_customer_custom_fields: Optional[bool] = True,
        include_line_custom_fields: Optional[bool] = True,
        include_variant_custom_fields: Optional[bool] = True,
        include_product_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = ORDER_BASE_FIELDS,
    ) -> str:
        b = SelectionBuilder()
        with b.operation("query", "orders", {"options": "OrderListOptions"}):
            with b.block("orders(options: $options)"):
                with b.block("items"):
                    self._order_selection(
                        b, base_fields, include_custom_fields, include_customer_custom_fields,
                        include_line_custom_fields, include_variant_custom_fields,
                        include_product_custom_fields,
                    )
                b.fields("totalItems")
        return self._finish(b, "orders")

    def build_order_query(
        self,
        by_code: bool = False,
        include_custom_fields: Optional[bool] = True,
        include_customer_custom_fields: Optional[bool] = True,
        include_line_custom_fields: Optional[bool] = True,
        include_variant_custom_fields: Optional[bool] = True,
        include_product_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = ORDER_BASE_FIELDS,
    ) -> str:
        """Single order: `order(id: $id)` or, with by_code=True, `orderByCode(code: $code)`."""
        if by_code:
            name, arg, arg_type = "orderByCode", "code", "String!"
        else:
            name, arg, arg_type = "order", "id", "ID!"
        b = SelectionBuilder()
        with b.operation("query", name, {arg: arg_type}):
            with b.block(f"{name}({arg}: ${arg})"):
                self._order_selection(
                    b, base_fields, include_custom_fields, include_customer_custom_fields,
                    include_line_custom_fields, include_variant_custom_fields,
                    include_product_custom_fields, detailed=True,
                )
        return self._finish(b, name)

    def build_active_order_query(
        self,
        include_custom_fields: Optional[bool] = True,
        include_customer_custom_fields: Optional[bool] = True,
        include_line_custom_fields: Optional[bool] = True,
        include_variant_custom_fields: Optional[bool] = True,
        include_product_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = ORDER_BASE_FIELDS,
    ) -> str:
        b = SelectionBuilder()
        with b.operation("query", "activeOrder"):
            with b.block("activeOrder"):
                b.fields("__typename")
                self._order_selection(
                    b, base_fields, include_custom_fields, include_customer_custom_fields,
                    include_line_custom_fields, include_variant_custom_fields,
                    include_product_custom_fields,
                )
        return self._finish(b, "activeOrder")

    def _order_mutation(
        self,
        name: str,
        variables: dict,
        include_custom_fields: Optional[bool],
        include_customer_custom_fields: Optional[bool],
        include_line_custom_fields: Optional[bool],
        include_variant_custom_fields: Optional[bool],
        include_product_custom_fields: Optional[bool],
    ) -> str:
        arguments = ", ".join(f"{var}: ${var}" for var in variables)
        b = SelectionBuilder()
        with b.operation("mutation", name, variables):
            with b.block(f"{name}({arguments})"):
                b.fields("__typename")
                with b.block("... on Order"):
                    self._order_selection(
                        b, ORDER_BASE_FIELDS, include_custom_fields, include_customer_custom_fields,
                        include_line_custom_fields, include_variant_custom_fields,
                        include_product_custom_fields,
                    )
                b.fields(*ORDER_ERROR_RESULTS)
        return self._finish(b, name)

    def build_add_item_to_order_mutation(
        self,
        include_custom_fields: Optional[bool] = True,
        include_customer_custom_fields: Optional[bool] = True,
        include_line_custom_fields: Optional[bool] = True,
        include_variant_custom_fields: Optional[bool] = True,
        include_product_custom_fields: Optional[bool] = True,
    ) -> str:
        return self._order_mutation(
            "addItemToOrder",
            {"productVariantId": "ID!", "quantity": "Int!"},
            include_custom_fields, include_customer_custom_fields, include_line_custom_fields,
            include_variant_custom_fields, include_product_custom_fields,
        )

    def build_adjust_order_line_mutation(
        self,
        include_custom_fields: Optional[bool] = True,
        include_customer_custom_fields: Optional[bool] = True,
        include_line_custom_fields: Optional[bool] = True,
        include_variant_custom_fields: Optional[bool] = True,
        include_product_custom_fields: Optional[bool] = True,
    ) -> str:
        return self._order_mutation(
            "adjustOrderLine",
            {"orderLineId": "ID!", "quantity": "Int!"},
            include_custom_fields, include_customer_custom_fields, include_line_custom_fields,
            include_variant_custom_fields, include_product_custom_fields,
        )

    def _order_address_mutation(self, name: str, address_field: str, include_custom_fields: Optional[bool]) -> str:
        b = SelectionBuilder()
        with b.operation("mutation", name, {"input": "CreateAddressInput!"}):
            with b.block(f"{name}(input: $input)"):
                b.fields("__typename")
                with b.block("... on Order"):
                    b.fields("id code state", f"{address_field} {ADDRESS_SELECTION}")
                    self._splice(b, "Order", include_custom_fields)
                b.fields("... on ErrorResult { errorCode message }")
        return self._finish(b, name)

    def build_set_order_shipping_address_mutation(self, include_custom_fields: Optional[bool] = True) -> str:
        return self._order_address_mutation("setOrderShippingAddress", "shippingAddress", include_custom_fields)

    def build_set_order_billing_address_mutation(self, include_custom_fields: Optional[bool] = True) -> str:
        return self._order_address_mutation("setOrderBillingAddress", "billingAddress", include_custom_fields)

    def build_remove_order_line_mutation(
        self,
        include_custom_fields: Optional[bool] = True,
        include_line_custom_fields: Optional[bool] = True,
        include_variant_custom_fields: Optional[bool] = True,
    ) -> str:
        """Remove a line from the active order; returns the slimmed-down order."""
        b = SelectionBuilder()
        with b.operation("mutation", "removeOrderLine", {"orderLineId": "ID!"}):
            with b.block("removeOrderLine(orderLineId: $orderLineId)"):
                b.fields("__typename")
                with b.block("... on Order"):
                    b.fields("id code state totalQuantity subTotal subTotalWithTax total totalWithTax")
                    with b.block("lines"):
                        b.fields("id quantity linePrice linePriceWithTax")
                        with b.block("productVariant"):
                            b.fields("id name sku")
                            self._splice(b, "ProductVariant", include_variant_custom_fields)
                        self._splice(b, "OrderLine", include_line_custom_fields)
                    self._splice(b, "Order", include_custom_fields)
                b.fields(
                    "... on OrderModificationError { errorCode message }",
                    "... on NoActiveOrderError { errorCode message }",
                )
        return self._finish(b, "removeOrderLine")

    def build_set_order_custom_fields_mutation(self, include_custom_fields: Optional[bool] = True) -> str:
        b = SelectionBuilder()
        with b.operation("mutation", "setOrderCustomFields", {"input": "UpdateOrderInput!"}):
            with b.block("setOrderCustomFields(input: $input)"):
                b.fields("__typename")
                with b.block("... on Order"):
                    b.fields("id code state")
                    self._splice(b, "Order", include_custom_fields)
                b.fields("... on NoActiveOrderError { errorCode message }")
        return self._finish(b, "setOrderCustomFields")

    def build_eligible_shipping_methods_query(self, include_custom_fields: Optional[bool] = True) -> str:
        b = SelectionBuilder()
        with b.operation("query", "eligibleShippingMethods"):
            with b.block("eligibleShippingMethods"):
                b.fields("id price priceWithTax code name description metadata")
                self._splice(b, "ShippingMethodQuote", include_custom_fields)
        return self._finish(b, "eligibleShippingMethods")

    def build_eligible_payment_methods_query(self, include_custom_fields: Optional[bool] = True) -> str:
        b = SelectionBuilder()
        with b.operation("query", "eligiblePaymentMethods"):
            with b.block("eligiblePaymentMethods"):
                b.fields("id code name description isEligible eligibilityMessage")
                self._splice(b, "PaymentMethodQuote", include_custom_fields)
        return self._finish(b, "eligiblePaymentMethods")

    # ── Customers ─────────────────────────────────────────────────

    def _customer_addresses(self, b: SelectionBuilder, include_address_custom_fields: Optional[bool]) -> None:
        with b.block("addresses"):
            b.fields(*CUSTOMER_ADDRESS_FIELDS)
            self._splice(b, "Address", include_address_custom_fields)

    def build_customers_query(
        self,
        include_custom_fields: bool = True,
        include_address_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = CUSTOMER_BASE_FIELDS,
    ) -> str:
        b = SelectionBuilder()
        with b.operation("query", "customers", {"options": "CustomerListOptions"}):
            with b.block("customers(options: $options)"):
                with b.block("items"):
                    b.fields(*base_fields)
                    b.fields("user { id identifier verified lastLogin }")
                    self._customer_addresses(b, include_address_custom_fields)
                    self._splice_customer(b, include_custom_fields)
                b.fields("totalItems")
        return self._finish(b, "customers")

    def build_customer_query(
        self,
        include_custom_fields: bool = True,
        include_address_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = CUSTOMER_BASE_FIELDS,
    ) -> str:
        b = SelectionBuilder()
        with b.operation("query", "customer", {"id": "ID!"}):
            with b.block("customer(id: $id)"):
                b.fields(*base_fields)
                with b.block("user"):
                    b.fields(
                        "id identifier verified lastLogin",
                        "roles { id code description permissions }",
                        "authenticationMethods { id strategy }",
                    )
                self._customer_addresses(b, include_address_custom_fields)
                self._splice_customer(b, include_custom_fields)
        return self._finish(b, "customer")

    def build_active_customer_query(self, include_custom_fields: bool = True) -> str:
        """The logged-in customer. customFields is always selected."""
        b = SelectionBuilder()
        with b.operation("query", "activeCustomer"):
            with b.block("activeCustomer"):
                b.fields("id", "title", "firstName", "lastName", "phoneNumber", "emailAddress")
                with b.block("addresses"):
                    b.fields(*CUSTOMER_ADDRESS_FIELDS)
                self._splice_customer(b, include_custom_fields)
        return self._finish(b, "activeCustomer")

    def build_update_customer_mutation(self, include_custom_fields: bool = True) -> str:
        b = SelectionBuilder()
        with b.operation("mutation", "updateCustomer", {"input": "UpdateCustomerInput!"}):
            with b.block("updateCustomer(input: $input)"):
                b.fields("id", "title", "firstName", "lastName", "phoneNumber", "emailAddress")
                self._splice_customer(b, include_custom_fields)
        return self._finish(b, "updateCustomer")

    # ── Channel ───────────────────────────────────────────────────

    def build_active_channel_query(
        self,
        include_custom_fields: Optional[bool] = True,
        base_fields: Sequence[str] = CHANNEL_BASE_FIELDS,
    ) -> str:
        b = SelectionBuilder()
        with b.operation("query", "activeChannel"):
            with b.block("activeChannel"):
                b.fields(*base_fields)
                self._splice(b, "Channel", include_custom_fields)
        return self._finish(b, "activeChannel")


def build_query(operation_name: str, registry: Optional[FieldRegistry] = None, **options) -> str:
    """Module-level shorthand for QueryBuilder(registry).build_query(...)."""
    return QueryBuilder(registry).build_query(operation_name, **options)
