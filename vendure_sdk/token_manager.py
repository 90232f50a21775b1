"""
Token Manager — Fetches and caches the session token.

The fetcher is any callable taking the parameter dict and returning a token
string (or None on failure). AuthOperations.authenticate is the usual
fetcher; integrators with external identity providers pass their own.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from .errors import InitializationError

logger = logging.getLogger(__name__)

TokenFetcher = Callable[[Dict[str, Any]], Optional[str]]

DEFAULT_SESSION_DURATION = 60 * 60 * 24


class TokenManager:
    """Caches a token for session_duration seconds after each fetch.

    A lock serialises fetches, so threads sharing one client wait for the
    token being fetched instead of fetching their own.
    """

    def __init__(
        self,
        fetcher: TokenFetcher,
        parameters: Dict[str, Any],
        session_duration: float = DEFAULT_SESSION_DURATION,
    ):
        self.fetcher = fetcher
        self.parameters = dict(parameters)
        self.session_duration = session_duration
        self._token = None
        self._expires_at = 0.0
        self._lock = threading.Lock()

    def get_valid_token(self) -> str:
        """Return the cached token, fetching a new one once it has expired."""
        with self._lock:
            if self._token and time.time() < self._expires_at:
                return self._token
            return self._fetch(self.parameters)

    def refresh_token(self, parameters: Optional[Dict[str, Any]] = None) -> str:
        """Fetch a new token now, optionally with different parameters."""
        with self._lock:
            return self._fetch(parameters if parameters is not None else self.parameters)

    def clear_token(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = 0.0

    def _fetch(self, parameters: Dict[str, Any]) -> str:
        # Caller holds self._lock.
        token = self.fetcher(parameters)
        if not token:
            raise InitializationError("Failed to fetch authentication token")
        self._token = token
        self._expires_at = time.time() + self.session_duration
        logger.debug("Session token fetched, valid for %ss", self.session_duration)
        return token

    @property
    def token(self) -> Optional[str]:
        return self._token
