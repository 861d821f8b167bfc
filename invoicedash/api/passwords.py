"""Password rules checked before a registration request is sent."""
import re
from dataclasses import dataclass, field
from typing import List

SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


@dataclass(frozen=True)
class PasswordValidation:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


def validate_password(password: str) -> PasswordValidation:
    """Return every rule the password breaks, in a stable order."""

    errors: List[str] = []

    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one digit")
    if not SPECIAL_CHARACTERS.search(password):
        errors.append("Password must contain at least one special character")

    return PasswordValidation(is_valid=not errors, errors=errors)


def passwords_match(password: str, confirmation: str) -> bool:
    return password == confirmation
