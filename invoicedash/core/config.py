"""Runtime settings for the API client, session store, and reconciler."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from invoicedash.core.utils import get_config_value, load_env_file

DEFAULT_ENV_FILE = Path("secrets/invoicedash.env")
_ENV_LOADED = False

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    graphql_url: str = "http://localhost:3000/graphql"
    api_url: str = "http://localhost:3000/"
    request_timeout: float = 10.0
    token_cookie: str = "token"
    default_expiry_days: int = 7
    remember_me_expiry_days: int = 30
    poll_interval_ms: int = 5000
    session_file: Path = Path(".invoicedash/session.json")
    state_file: Path = Path(".invoicedash/invoices.json")

    def rest_url(self, path: str) -> str:
        """Join a REST path onto ``api_url`` without doubling slashes."""

        return f"{self.api_url.rstrip('/')}/{path.lstrip('/')}"


def _ensure_env() -> None:
    """Populate settings env vars from secrets/invoicedash.env once per process."""

    global _ENV_LOADED
    if _ENV_LOADED:
        return
    _ENV_LOADED = True

    env_path = Path(os.getenv("INVOICEDASH_ENV_FILE", DEFAULT_ENV_FILE))
    load_env_file(env_path)


def _int_value(key: str, default: int) -> int:
    raw = get_config_value(key, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", key, raw, default)
        return default


def _float_value(key: str, default: float) -> float:
    raw = get_config_value(key, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", key, raw, default)
        return default


def load_settings() -> Settings:
    """Resolve settings from Streamlit secrets, the environment, or defaults."""

    _ensure_env()
    defaults = Settings()
    return Settings(
        graphql_url=get_config_value("INVOICEDASH_GRAPHQL_URL", defaults.graphql_url),
        api_url=get_config_value("INVOICEDASH_API_URL", defaults.api_url),
        request_timeout=_float_value("INVOICEDASH_REQUEST_TIMEOUT", defaults.request_timeout),
        token_cookie=get_config_value("INVOICEDASH_TOKEN_COOKIE", defaults.token_cookie),
        default_expiry_days=_int_value("INVOICEDASH_EXPIRY_DAYS", defaults.default_expiry_days),
        remember_me_expiry_days=_int_value(
            "INVOICEDASH_REMEMBER_ME_EXPIRY_DAYS", defaults.remember_me_expiry_days
        ),
        poll_interval_ms=_int_value("INVOICEDASH_POLL_INTERVAL_MS", defaults.poll_interval_ms),
        session_file=Path(get_config_value("INVOICEDASH_SESSION_FILE", str(defaults.session_file))),
        state_file=Path(get_config_value("INVOICEDASH_STATE_FILE", str(defaults.state_file))),
    )
