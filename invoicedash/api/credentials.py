"""Credential providers handed explicitly to the API services.

Services never look the token up themselves; they call the provider they
were built with. ``SessionStore`` plays the part of the browser cookie jar.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

CredentialProvider = Callable[[], Optional[str]]


class StaticTokenProvider:
    """Always returns the same token (tests, scripts, service accounts)."""

    def __init__(self, token: str | None) -> None:
        self._token = token

    def __call__(self) -> Optional[str]:
        return self._token


class SessionStore:
    """File-backed session cookie holding the bearer token and its expiry."""

    def __init__(
        self,
        path: Path,
        cookie_name: str = "token",
        default_expiry_days: int = 7,
        remember_me_expiry_days: int = 30,
    ) -> None:
        self.path = path
        self.cookie_name = cookie_name
        self.default_expiry_days = default_expiry_days
        self.remember_me_expiry_days = remember_me_expiry_days

    def __call__(self) -> Optional[str]:
        return self.token()

    def save(self, token: str, remember_me: bool = False, now: datetime | None = None) -> datetime:
        """Store the token and return its expiry timestamp."""

        days = self.remember_me_expiry_days if remember_me else self.default_expiry_days
        expires_at = (now or datetime.now(timezone.utc)) + timedelta(days=days)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {self.cookie_name: token, "expires_at": expires_at.isoformat()}
        self.path.write_text(json.dumps(payload), encoding="utf-8")
        logger.debug("Saved session cookie to %s (expires %s)", self.path, expires_at)
        return expires_at

    def token(self, now: datetime | None = None) -> Optional[str]:
        """Return the stored token, or ``None`` when missing or expired."""

        if not self.path.exists():
            return None
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            expires_at = datetime.fromisoformat(payload["expires_at"])
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, exc)
            return None

        if expires_at <= (now or datetime.now(timezone.utc)):
            logger.info("Session cookie expired at %s", expires_at)
            return None
        return payload.get(self.cookie_name) or None

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
