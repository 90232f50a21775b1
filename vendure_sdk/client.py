"""
Vendure — Composition root of the SDK.

Wires one FieldRegistry, one QueryBuilder, one VendureGraphQLClient and the
operation groups together. Applications normally create a single Vendure
instance at startup, register their custom fields on vendure.registry, and
pass the instance around.

Typical usage:
    vendure = Vendure.from_env("./.env")
    vendure.registry.add(FieldDeclaration.extended_asset("mainUsdzAsset", ["Product"]))
    product = vendure.catalog.get_product_by_slug("laptop")
"""

import logging
from typing import Any, Dict, Optional

from .errors import InitializationError
from .field_registry import FieldRegistry
from .graphql_client import VendureGraphQLClient
from .operations import AuthOperations, CatalogOperations, CustomerOperations, OrderOperations
from .query_builder import QueryBuilder
from .settings import DEFAULT_SETTINGS, load_settings, validate_settings
from .token_manager import TokenManager

logger = logging.getLogger(__name__)

# Vendure keyword argument -> settings key.
OVERRIDABLE_SETTINGS = {
    "endpoint": "VENDURE_ENDPOINT",
    "token": "VENDURE_TOKEN",
    "username": "VENDURE_USERNAME",
    "password": "VENDURE_PASSWORD",
    "language_code": "VENDURE_LANGUAGE_CODE",
    "channel_token": "VENDURE_CHANNEL_TOKEN",
    "use_guest_session": "VENDURE_GUEST_SESSION",
    "timeout": "VENDURE_TIMEOUT",
    "session_duration": "VENDURE_SESSION_DURATION",
}


class Vendure:
    """Configured SDK instance.

    Attributes:
        registry: Custom field declarations used by every document.
        builder: QueryBuilder bound to registry.
        client: Transport used by every operation.
        auth, catalog, order, customer: Operation groups.
    """

    def __init__(
        self,
        endpoint: str,
        token: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        language_code: Optional[str] = None,
        channel_token: Optional[str] = None,
        use_guest_session: bool = False,
        timeout: float = DEFAULT_SETTINGS["VENDURE_TIMEOUT"],
        session_duration: float = DEFAULT_SETTINGS["VENDURE_SESSION_DURATION"],
        registry: Optional[FieldRegistry] = None,
        session=None,
    ):
        """Initialize the SDK.

        Args:
            endpoint: Shop API URL.
            token: Static bearer token.
            username, password: Native credentials; a TokenManager fetches and
                renews the token with them.
            language_code: Language negotiated on every request.
            channel_token: Channel selected on every request.
            use_guest_session: Send no Authorization header.
            timeout: Request timeout in seconds.
            session_duration: Lifetime of a fetched token in seconds.
            registry: Registry to use; a fresh one is created by default.
            session: Optional requests.Session shared by both clients.

        Raises:
            InitializationError: If the endpoint is invalid, or no
                authentication is configured outside a guest session.
        """
        if not (use_guest_session or token or (username and password)):
            raise InitializationError(
                "No authentication configured: pass a token, username/password or use_guest_session=True"
            )

        self.registry = registry if registry is not None else FieldRegistry()
        self.builder = QueryBuilder(self.registry)

        token_manager = None
        if not token and username and password:
            # Token requests must not carry the token they are fetching.
            auth_client = VendureGraphQLClient(
                endpoint,
                language_code=language_code,
                channel_token=channel_token,
                use_guest_session=True,
                timeout=timeout,
                session=session,
            )
            fetcher = AuthOperations(auth_client)
            token_manager = TokenManager(
                lambda params: fetcher.authenticate(params["username"], params["password"]),
                {"username": username, "password": password},
                session_duration=session_duration,
            )

        self.client = VendureGraphQLClient(
            endpoint,
            token=token,
            token_manager=token_manager,
            language_code=language_code,
            channel_token=channel_token,
            use_guest_session=use_guest_session,
            timeout=timeout,
            session=session,
        )

        self.auth = AuthOperations(self.client)
        self.catalog = CatalogOperations(self.client, self.builder)
        self.order = OrderOperations(self.client, self.builder)
        self.customer = CustomerOperations(self.client, self.builder)

    @classmethod
    def from_env(cls, env_file: str = "./.env", **overrides: Any) -> "Vendure":
        """Build an instance from .env / environment settings.

        Keyword overrides that correspond to a setting replace it before
        validation; any other keyword (registry, session) is passed through.

        Raises:
            InitializationError: If the merged settings fail validate_settings().
        """
        settings = load_settings(env_file)
        for argument, key in OVERRIDABLE_SETTINGS.items():
            if argument in overrides:
                settings[key] = overrides[argument]
        problems = validate_settings(settings)
        if problems:
            raise InitializationError("; ".join(problems))

        kwargs: Dict[str, Any] = {
            "endpoint": settings["VENDURE_ENDPOINT"],
            "token": settings["VENDURE_TOKEN"] or None,
            "username": settings["VENDURE_USERNAME"] or None,
            "password": settings["VENDURE_PASSWORD"] or None,
            "language_code": settings["VENDURE_LANGUAGE_CODE"] or None,
            "channel_token": settings["VENDURE_CHANNEL_TOKEN"] or None,
            "use_guest_session": settings["VENDURE_GUEST_SESSION"],
            "timeout": settings["VENDURE_TIMEOUT"],
            "session_duration": settings["VENDURE_SESSION_DURATION"],
        }
        kwargs.update(overrides)
        instance = cls(**kwargs)
        instance.registry.set_cache_backend(settings["VENDURE_CACHE_BACKEND"])
        logger.debug("Vendure client configured for %s", instance.client.endpoint)
        return instance

    def build_query(self, operation_name: str, **options) -> str:
        return self.builder.build_query(operation_name, **options)

    def check_connection(self) -> bool:
        return self.client.check_connection()
