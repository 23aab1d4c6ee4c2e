"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. Nothing
about a login is stored server-side — the token itself carries the
username and user id, and the signature proves we issued it.

Expiry is optional: with access_token_expire_minutes=0 tokens carry no
`exp` claim and stay valid until the signing secret changes.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from bookhub.config import settings


class TokenError(Exception):
    """Raised when token verification fails."""


def create_access_token(
    username: str,
    user_id: uuid.UUID | str,
    secret: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Sign a token embedding {username, id}."""
    now = datetime.now(timezone.utc)
    payload = {
        "username": username,
        "id": str(user_id),
        "iat": now,
    }
    minutes = (
        settings.access_token_expire_minutes
        if expires_minutes is None
        else expires_minutes
    )
    if minutes:
        payload["exp"] = now + timedelta(minutes=minutes)
    return jwt.encode(
        payload, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm
    )


def verify_token(token: str, secret: Optional[str] = None) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token,
            secret or settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["username", "id"]},
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")
