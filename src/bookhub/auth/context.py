"""Auth context resolution — header → optional current user.

Learn: This runs once per request (and once per websocket connection),
before any resolver. The result is never cached between requests: every
call re-verifies the token and re-reads the user.

Three outcomes:
1. No header, or not a Bearer header → anonymous (current_user=None)
2. Bearer header with a bad/expired token → AuthenticationError
3. Valid token → the user with that id, or None if it no longer exists
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from bookhub.auth.jwt import TokenError, verify_token
from bookhub.db.catalog import CatalogStore
from bookhub.db.models import User
from bookhub.errors import AuthenticationError

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthContext:
    """Identity attached to one request. current_user is always present, maybe None."""

    current_user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None


class AuthContextResolver:
    """Turns a raw Authorization header into an AuthContext."""

    def __init__(self, store: CatalogStore, secret: Optional[str] = None):
        self.store = store
        self.secret = secret

    async def resolve(self, authorization: Optional[str]) -> AuthContext:
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            return AuthContext()

        token = authorization[len(BEARER_PREFIX):]
        try:
            claims = verify_token(token, secret=self.secret)
        except TokenError as e:
            raise AuthenticationError(str(e), cause=e)

        try:
            user_id = uuid.UUID(str(claims["id"]))
        except ValueError:
            # Signed by us but not an id we could have issued
            return AuthContext()

        return AuthContext(current_user=await self.store.get_user(user_id))
