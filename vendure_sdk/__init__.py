"""
vendure-sdk — Python client for the Vendure e-commerce Shop GraphQL API.

This package provides:

  custom_fields.py   FieldDeclaration and its factory helpers for extended
                     fields and native customFields blocks.
  field_registry.py  Thread-safe FieldRegistry deciding which registered
                     fragments go into which documents.
  selection.py       SelectionBuilder, the brace-safe document accumulator.
  query_builder.py   QueryBuilder: one build_* method per Shop API operation,
                     plus build_query(operation_name, **options).
  graphql_client.py  requests-based transport with token, language and
                     channel header negotiation.
  token_manager.py   Cached, auto-renewed session token.
  operations.py      Catalog, order, customer and auth operations.
  client.py          Vendure, the composition root.
  settings.py        .env configuration and logging setup.

Install with: pip install -e .
"""

from .custom_fields import FieldDeclaration, NATIVE_CUSTOM_FIELDS
from .field_registry import FieldRegistry, default_registry, is_valid_fragment
from .selection import SelectionBuilder
from .query_builder import QueryBuilder, build_query
from .graphql_client import GraphQLResponse, VendureGraphQLClient
from .token_manager import TokenManager
from .operations import AuthOperations, CatalogOperations, CustomerOperations, OrderOperations
from .client import Vendure
from .settings import DEFAULT_SETTINGS, configure_logging, load_settings, validate_settings
from .errors import (
    DecodingError,
    ErrorResultError,
    GraphQLRequestError,
    HTTPStatusError,
    InitializationError,
    NetworkError,
    UnknownOperationError,
    VendureError,
)
