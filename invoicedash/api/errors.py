"""Error type raised by the API services."""
from __future__ import annotations

CONNECTION_ERROR_MESSAGE = "Could not reach the server"


class ApiError(Exception):
    """A backend call failed; ``message`` is safe to show to the user."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code in (401, 403)
