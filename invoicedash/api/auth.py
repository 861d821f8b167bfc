"""Login, registration, and logout against the REST endpoints."""
from __future__ import annotations

from invoicedash.api.errors import ApiError
from invoicedash.api.transport import HttpTransport
from invoicedash.core.models import LoginCredentials, RegisterCredentials, User


class AuthService:
    def __init__(self, transport: HttpTransport) -> None:
        self.transport = transport

    def login(self, credentials: LoginCredentials) -> User:
        body = self.transport.request(
            "POST",
            self.transport.settings.rest_url("login"),
            "Login failed",
            json=credentials.to_dict(),
            authenticated=False,
        )
        return self._user(body, "Login failed")

    def register(self, credentials: RegisterCredentials) -> User:
        body = self.transport.request(
            "POST",
            self.transport.settings.rest_url("register"),
            "Registration failed",
            json=credentials.to_dict(),
            authenticated=False,
        )
        return self._user(body, "Registration failed")

    def logout(self) -> None:
        self.transport.request("POST", self.transport.settings.rest_url("logout"), "Logout failed")

    @staticmethod
    def _user(body, fallback_message: str) -> User:
        if not isinstance(body, dict):
            raise ApiError(fallback_message)
        user = User.from_dict(body)
        if not user.token:
            raise ApiError(f"{fallback_message}: no token returned")
        return user
