"""
Settings — Default configuration values for the Vendure SDK.

Configuration is read from environment variables, typically loaded from a
.env file with python-dotenv. DEFAULT_SETTINGS supplies the fallback values.

Configuration precedence (highest to lowest):
  1. Keyword arguments passed to Vendure(...) or Vendure.from_env(...)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  VENDURE_ENDPOINT          Shop API URL (required)
  VENDURE_TOKEN             Static bearer token
  VENDURE_USERNAME          Native auth username, used with VENDURE_PASSWORD to
  VENDURE_PASSWORD          fetch and renew the token automatically
  VENDURE_LANGUAGE_CODE     Language requested for localized fields
  VENDURE_CHANNEL_TOKEN     Channel selected through the vendure-token header
  VENDURE_GUEST_SESSION     Send no Authorization header (default: False)
  VENDURE_TIMEOUT           Request timeout in seconds (default: 10)
  VENDURE_SESSION_DURATION  Token lifetime in seconds (default: one year)
  VENDURE_CACHE_BACKEND     Request cacheIdentifier in search (default: False)
  DEBUG                     Log at DEBUG level (default: False)
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(name)s - %(levelname)s - %(message)s"

DEFAULT_SETTINGS = {
    "VENDURE_ENDPOINT": "",
    "VENDURE_TOKEN": "",
    "VENDURE_USERNAME": "",
    "VENDURE_PASSWORD": "",
    "VENDURE_LANGUAGE_CODE": "",
    "VENDURE_CHANNEL_TOKEN": "",
    "VENDURE_GUEST_SESSION": False,
    "VENDURE_TIMEOUT": 10.0,
    "VENDURE_SESSION_DURATION": 60 * 60 * 24 * 365,
    "VENDURE_CACHE_BACKEND": False,
    "DEBUG": False,
}

_BOOLEAN_SETTINGS = ("VENDURE_GUEST_SESSION", "VENDURE_CACHE_BACKEND", "DEBUG")
_FLOAT_SETTINGS = ("VENDURE_TIMEOUT", "VENDURE_SESSION_DURATION")


def load_settings(env_file: str = "./.env") -> Dict[str, Any]:
    """Load settings from a .env file and the environment.

    Args:
        env_file: Path to a .env file. If it exists it is loaded via
                  python-dotenv (existing environment variables win);
                  otherwise only the process environment is used.

    Returns:
        A dict with every key of DEFAULT_SETTINGS, values typed like the defaults.
    """
    env_path = Path(env_file)
    if env_path.exists():
        load_dotenv(env_path)
        logger.info("Loaded configuration from: %s", env_file)
    else:
        logger.debug("%s not found, using defaults/environment", env_file)

    settings = {}
    for key, default in DEFAULT_SETTINGS.items():
        raw = os.getenv(key, str(default))
        if key in _BOOLEAN_SETTINGS:
            settings[key] = raw.strip().lower() == "true"
        elif key in _FLOAT_SETTINGS:
            settings[key] = float(raw)
        else:
            settings[key] = raw.strip()
    return settings


def validate_settings(settings: Dict[str, Any]) -> List[str]:
    """Return a list of problems; an empty list means the settings are usable.

    Checks:
        - VENDURE_ENDPOINT is set
        - A token, credentials, or guest session is configured
        - VENDURE_USERNAME and VENDURE_PASSWORD are set together
    """
    problems = []
    if not settings.get("VENDURE_ENDPOINT"):
        problems.append("VENDURE_ENDPOINT is required")

    has_user = bool(settings.get("VENDURE_USERNAME"))
    has_password = bool(settings.get("VENDURE_PASSWORD"))
    if has_user != has_password:
        problems.append("VENDURE_USERNAME and VENDURE_PASSWORD must be set together")

    if not (settings.get("VENDURE_GUEST_SESSION") or settings.get("VENDURE_TOKEN") or (has_user and has_password)):
        problems.append(
            "No authentication configured: set VENDURE_TOKEN, "
            "VENDURE_USERNAME/VENDURE_PASSWORD or VENDURE_GUEST_SESSION=true"
        )
    return problems


def configure_logging(debug: bool = False) -> None:
    """Configure root logging for scripts using the SDK."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)
    logging.getLogger("vendure_sdk").setLevel(logging.DEBUG if debug else logging.INFO)
