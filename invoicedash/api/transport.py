"""HTTP plumbing shared by the GraphQL and REST services."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from invoicedash.api.credentials import CredentialProvider
from invoicedash.api.errors import CONNECTION_ERROR_MESSAGE, ApiError
from invoicedash.core.config import Settings

logger = logging.getLogger(__name__)


def auth_headers(credentials: Optional[CredentialProvider]) -> Dict[str, str]:
    """Return the bearer header for the current token, or an empty dict."""

    token = credentials() if credentials else None
    return {"Authorization": f"Bearer {token}"} if token else {}


def _error_message(response: requests.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, list):
            message = "; ".join(str(item) for item in message)
        if message:
            return str(message)
    return fallback


class HttpTransport:
    """Thin wrapper over ``requests.Session`` that maps failures to ``ApiError``."""

    def __init__(
        self,
        settings: Settings,
        credentials: Optional[CredentialProvider] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings
        self.credentials = credentials
        self.session = session or requests.Session()

    def request(
        self,
        method: str,
        url: str,
        fallback_message: str,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` when empty)."""

        headers = auth_headers(self.credentials) if authenticated else {}
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                json=json,
                data=data,
                files=files,
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ApiError(CONNECTION_ERROR_MESSAGE) from exc

        if response.status_code >= 400:
            message = _error_message(response, fallback_message)
            logger.warning("%s %s returned %s: %s", method, url, response.status_code, message)
            raise ApiError(message, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(fallback_message, status_code=response.status_code) from exc
