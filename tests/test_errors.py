"""Error taxonomy tests — codes and the extensions clients see."""

from bookhub.errors import (
    AuthenticationError,
    AuthorCreationError,
    AuthorizationError,
    CatalogError,
    CredentialError,
    ValidationError,
)


def test_codes():
    assert AuthenticationError.code == "UNAUTHENTICATED"
    assert AuthorizationError.code == "INVALID_TOKEN"
    assert AuthorCreationError.code == "INVALID_AUTHOR_NAME"
    assert ValidationError.code == "BAD_USER_INPUT"
    assert CredentialError.code == "BAD_USER_INPUT"


def test_extensions_include_only_what_is_known():
    assert AuthorizationError().extensions == {"code": "INVALID_TOKEN"}

    err = ValidationError("Saving book failed", invalid_args="Dun", cause=ValueError("too short"))
    assert err.message == "Saving book failed"
    assert err.extensions == {
        "code": "BAD_USER_INPUT",
        "invalidArgs": "Dun",
        "error": "too short",
    }


def test_default_messages():
    assert AuthorizationError().message == "User not authorized"
    assert CredentialError().message == "wrong credentials"
    assert ValidationError().message == CatalogError.default_message
    assert str(AuthorCreationError(invalid_args="Bo")) == "Saving author failed"
