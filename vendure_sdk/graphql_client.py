"""
Vendure GraphQL Client — HTTP transport for the Vendure Shop API.

This module is responsible for all HTTP communication with the Vendure
server. Every document built by QueryBuilder ends up here as the body of a
POST request:

    POST {endpoint}?languageCode=fr
    Headers:
        Content-Type: application/json
        Accept-Language: fr                 (when a language is set)
        vendure-token: <channel token>      (when a channel is set)
        Authorization: Bearer <token>       (unless guest session)
    Body: {"query": "...", "variables": {...}}

The bearer token comes either from a static token or from a TokenManager
that fetches and caches one. When Vendure runs in bearer-token mode, the
authenticate/login mutations hand back the session token in the
"vendure-auth-token" response header, exposed on GraphQLResponse.headers.

GraphQL errors are not raised by execute(); the response carries them and
raise_for_errors() turns them into a GraphQLRequestError. Transport
failures always raise.
"""

import dataclasses
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

from .errors import (
    DecodingError,
    GraphQLRequestError,
    HTTPStatusError,
    InitializationError,
    NetworkError,
)
from .token_manager import TokenManager

logger = logging.getLogger(__name__)

AUTH_TOKEN_HEADER = "vendure-auth-token"
CHANNEL_TOKEN_HEADER = "vendure-token"


@dataclasses.dataclass
class GraphQLResponse:
    """Decoded GraphQL response.

    Attributes:
        data: The "data" object, or None.
        errors: The "errors" array, or None.
        headers: HTTP response headers (case-insensitive mapping from requests).
    """

    data: Optional[Dict[str, Any]] = None
    errors: Optional[List[Dict[str, Any]]] = None
    headers: Dict[str, str] = dataclasses.field(default_factory=dict)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def error_messages(self) -> List[str]:
        return [e.get("message", str(e)) for e in (self.errors or [])]

    def raise_for_errors(self) -> "GraphQLResponse":
        if self.has_errors:
            raise GraphQLRequestError(self.error_messages)
        return self


class VendureGraphQLClient:
    """Client for the Vendure Shop GraphQL API.

    Manages a requests.Session; all calls go through it.

    Attributes:
        endpoint: Shop API URL (e.g., "https://shop.example.com/shop-api").
        language_code: Language negotiated through Accept-Language and the
            languageCode query parameter.
        channel_token: Channel selected through the vendure-token header.
        use_guest_session: If True, never send an Authorization header.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        endpoint: str,
        token: Optional[str] = None,
        token_manager: Optional[TokenManager] = None,
        language_code: Optional[str] = None,
        channel_token: Optional[str] = None,
        use_guest_session: bool = False,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Raises:
            InitializationError: If the endpoint is not an http(s) URL.
        """
        parts = urlsplit(endpoint or "")
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InitializationError(f"Invalid endpoint URL: '{endpoint}'")

        self.endpoint = endpoint
        self.language_code = language_code
        self.channel_token = channel_token
        self.use_guest_session = use_guest_session
        self.timeout = timeout
        self._token = token
        self._token_manager = token_manager
        self._session = session or requests.Session()

    # ── Runtime configuration ─────────────────────────────────────

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def set_language_code(self, language_code: Optional[str]) -> None:
        self.language_code = language_code

    def set_channel_token(self, channel_token: Optional[str]) -> None:
        self.channel_token = channel_token

    def refresh_token(self, parameters: Optional[Dict[str, Any]] = None) -> str:
        """Force the token manager to fetch a new token.

        Raises:
            InitializationError: If no token manager is configured.
        """
        if self._token_manager is None:
            raise InitializationError("No token manager configured")
        return self._token_manager.refresh_token(parameters)

    @property
    def token(self) -> Optional[str]:
        """The static token, or the token manager's cached token."""
        if self._token:
            return self._token
        if self._token_manager is not None:
            return self._token_manager.token
        return None

    # ── Request construction ──────────────────────────────────────

    def endpoint_url(self, language_code: Optional[str] = None) -> str:
        """Endpoint with languageCode appended to the query string.

        A per-request language_code takes precedence over the client's own.
        """
        language_code = language_code or self.language_code
        if not language_code:
            return self.endpoint
        parts = urlsplit(self.endpoint)
        query = parse_qsl(parts.query, keep_blank_values=True)
        query.append(("languageCode", language_code))
        return urlunsplit(parts._replace(query=urlencode(query)))

    def default_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.language_code:
            headers["Accept-Language"] = self.language_code
        if self.channel_token:
            headers[CHANNEL_TOKEN_HEADER] = self.channel_token

        if self.use_guest_session:
            return headers

        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        elif self._token_manager is not None:
            headers["Authorization"] = f"Bearer {self._token_manager.get_valid_token()}"
        return headers

    # ── Execution ─────────────────────────────────────────────────

    def execute(
        self,
        document: str,
        variables: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        language_code: Optional[str] = None,
    ) -> GraphQLResponse:
        """POST a GraphQL document and decode the response.

        Args:
            document: The GraphQL document string.
            variables: Optional dict of GraphQL variables.
            headers: Extra headers merged over default_headers().
            language_code: Language for this request only; sets both the
                languageCode query parameter and Accept-Language.

        Returns:
            A GraphQLResponse; GraphQL errors are left on the response.

        Raises:
            NetworkError: If the request could not be sent.
            HTTPStatusError: If the server answers with a non-2xx status.
            DecodingError: If the body is not a JSON object.
        """
        payload: Dict[str, Any] = {"query": document}
        if variables:
            payload["variables"] = variables

        request_headers = self.default_headers()
        if language_code:
            request_headers["Accept-Language"] = language_code
        if headers:
            request_headers.update(headers)

        logger.debug("Executing GraphQL document (%d chars)", len(document))

        try:
            response = self._session.post(
                self.endpoint_url(language_code),
                json=payload,
                headers=request_headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(str(e)) from e

        if not 200 <= response.status_code < 300:
            raise HTTPStatusError(response.status_code, response.text)

        try:
            body = response.json()
        except ValueError as e:
            raise DecodingError(f"Invalid JSON response: {e}") from e
        if not isinstance(body, dict):
            raise DecodingError("GraphQL response is not a JSON object")

        result = GraphQLResponse(
            data=body.get("data"),
            errors=body.get("errors"),
            headers=response.headers,
        )
        if result.has_errors:
            logger.debug("GraphQL errors: %s", "; ".join(result.error_messages))
        return result

    def execute_query(self, document: str, variables: Optional[Dict[str, Any]] = None,
                      headers: Optional[Dict[str, str]] = None,
                      language_code: Optional[str] = None) -> GraphQLResponse:
        return self.execute(document, variables, headers, language_code)

    def execute_mutation(self, document: str, variables: Optional[Dict[str, Any]] = None,
                         headers: Optional[Dict[str, str]] = None,
                         language_code: Optional[str] = None) -> GraphQLResponse:
        return self.execute(document, variables, headers, language_code)

    def check_connection(self) -> bool:
        """Run `query { __typename }`; raise on any failure.

        Raises:
            GraphQLRequestError: If the server reports errors.
        """
        self.execute("query { __typename }").raise_for_errors()
        return True
