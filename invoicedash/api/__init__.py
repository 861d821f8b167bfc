"""Backend API client: transport, credentials, and services."""
from invoicedash.api.auth import AuthService
from invoicedash.api.credentials import CredentialProvider, SessionStore, StaticTokenProvider
from invoicedash.api.errors import ApiError
from invoicedash.api.graphql import GraphQLClient
from invoicedash.api.invoices import InvoiceService
from invoicedash.api.passwords import PasswordValidation, passwords_match, validate_password
from invoicedash.api.transport import HttpTransport

__all__ = [
    "ApiError",
    "AuthService",
    "CredentialProvider",
    "GraphQLClient",
    "HttpTransport",
    "InvoiceService",
    "PasswordValidation",
    "SessionStore",
    "StaticTokenProvider",
    "passwords_match",
    "validate_password",
]
