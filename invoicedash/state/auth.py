"""Auth view-model tying the auth service to the session cookie store."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from invoicedash.api.auth import AuthService
from invoicedash.api.credentials import SessionStore
from invoicedash.api.errors import ApiError
from invoicedash.api.passwords import validate_password
from invoicedash.core.models import LoginCredentials, RegisterCredentials, User
from invoicedash.state.store import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthState:
    user: Optional[User] = None
    is_authenticated: bool = False
    loading: bool = False
    error: Optional[str] = None


class AuthStore:
    def __init__(self, service: AuthService, session: SessionStore) -> None:
        self.service = service
        self.session = session
        self.store: Store[AuthState] = Store(AuthState(is_authenticated=session.token() is not None))

    @property
    def state(self) -> AuthState:
        return self.store.state

    def login(self, credentials: LoginCredentials) -> bool:
        self.store.update(loading=True, error=None)
        try:
            user = self.service.login(credentials)
        except ApiError as exc:
            logger.error("Login failed for %s: %s", credentials.email, exc.message)
            self.store.update(loading=False, error=exc.message)
            return False
        self.session.save(user.token, remember_me=credentials.remember_me)
        self.store.update(user=user, is_authenticated=True, loading=False)
        logger.info("Logged in as %s", user.email)
        return True

    def register(self, credentials: RegisterCredentials) -> bool:
        if not credentials.accept_terms:
            self.store.update(error="You must accept the terms of use")
            return False
        validation = validate_password(credentials.password)
        if not validation.is_valid:
            self.store.update(error="; ".join(validation.errors))
            return False

        self.store.update(loading=True, error=None)
        try:
            user = self.service.register(credentials)
        except ApiError as exc:
            logger.error("Registration failed for %s: %s", credentials.email, exc.message)
            self.store.update(loading=False, error=exc.message)
            return False
        self.session.save(user.token)
        self.store.update(user=user, is_authenticated=True, loading=False)
        logger.info("Registered %s", user.email)
        return True

    def logout(self) -> bool:
        """End the session; the local cookie is dropped even if the backend call fails."""

        self.store.update(loading=True)
        error = None
        try:
            self.service.logout()
        except ApiError as exc:
            logger.warning("Backend logout failed: %s", exc.message)
            error = exc.message
        self.session.clear()
        self.store.update(user=None, is_authenticated=False, loading=False, error=error)
        return error is None

    def clear_error(self) -> None:
        self.store.update(error=None)
