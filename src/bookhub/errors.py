"""Catalog error taxonomy.

Learn: Every failure a client can trigger is one of these classes. Each
carries a stable machine-readable `code`, the offending input
(`invalid_args`) and, for persistence failures, the underlying `cause`.

The GraphQL engine copies an exception's `extensions` mapping onto the
error it reports, so resolvers just raise — no per-resolver formatting.
"""

from typing import Any, Optional


class CatalogError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "INTERNAL_SERVER_ERROR"
    default_message = "Catalog operation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        invalid_args: Any = None,
        cause: Optional[BaseException] = None,
    ):
        self.message = message or self.default_message
        self.invalid_args = invalid_args
        self.cause = cause
        super().__init__(self.message)

    @property
    def extensions(self) -> dict[str, Any]:
        ext: dict[str, Any] = {"code": self.code}
        if self.invalid_args is not None:
            ext["invalidArgs"] = self.invalid_args
        if self.cause is not None:
            ext["error"] = str(self.cause)
        return ext


class AuthenticationError(CatalogError):
    """A bearer token was presented but failed signature/expiry checks."""

    code = "UNAUTHENTICATED"
    default_message = "Invalid or expired token"


class AuthorizationError(CatalogError):
    """A mutation that needs a logged-in user was called anonymously."""

    code = "INVALID_TOKEN"
    default_message = "User not authorized"


class ValidationError(CatalogError):
    """The store rejected a new book or user."""

    code = "BAD_USER_INPUT"


class AuthorCreationError(CatalogError):
    """The store rejected a new author."""

    code = "INVALID_AUTHOR_NAME"
    default_message = "Saving author failed"


class CredentialError(CatalogError):
    """Unknown username or wrong password at login."""

    code = "BAD_USER_INPUT"
    default_message = "wrong credentials"
