"""
Errors — Exception taxonomy for the Vendure SDK.

Everything the SDK raises derives from VendureError so callers can catch a
single base class. Registry validation has no exception of its own:
a malformed custom field declaration is logged and dropped, never raised.

  InitializationError   Client could not be configured (bad endpoint, no token)
  NetworkError          The HTTP request never completed
  HTTPStatusError       The server answered with a non-2xx status
  DecodingError         The response body was not valid JSON
  GraphQLRequestError   The GraphQL response carried an "errors" array
  ErrorResultError      A union result resolved to an ErrorResult type
  UnknownOperationError build_query() was asked for an operation it cannot build
"""

from typing import List, Optional


class VendureError(Exception):
    """Base class for all SDK errors."""


class InitializationError(VendureError):
    """Raised when the client cannot be initialised or a token cannot be fetched."""


class NetworkError(VendureError):
    """Raised when the HTTP request fails before a response is received."""


class HTTPStatusError(VendureError):
    """Raised for non-2xx HTTP responses."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP error {status_code}: {body}")


class DecodingError(VendureError):
    """Raised when a response cannot be decoded."""


class GraphQLRequestError(VendureError):
    """Raised when the server returns GraphQL errors.

    Attributes:
        messages: The "message" of every entry in the response "errors" array.
    """

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__(f"GraphQL errors: {'; '.join(self.messages)}")


class ErrorResultError(VendureError):
    """Raised when a mutation returns one of Vendure's ErrorResult types.

    Vendure reports expected business failures (insufficient stock, no active
    order, ...) as a union member carrying errorCode and message instead of a
    GraphQL error.
    """

    def __init__(self, error_code: str, message: str, typename: Optional[str] = None):
        self.error_code = error_code
        self.message = message
        self.typename = typename
        super().__init__(f"{error_code}: {message}")


class UnknownOperationError(VendureError, ValueError):
    """Raised by build_query() for an operation name with no builder."""
