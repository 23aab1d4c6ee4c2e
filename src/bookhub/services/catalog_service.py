"""Catalog service — business logic behind every query and mutation.

Learn: Service layer separates business logic from the GraphQL schema.
Resolvers call the service, the service calls the store. One instance
is built per request, bound to that request's session and identity,
so nothing here is shared between requests except the event bus.

Mutations that need a logged-in user check `auth.current_user` — not
merely that an auth context exists — because a valid token can point
at a user that has since disappeared.
"""

from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookhub.auth.context import AuthContext
from bookhub.auth.jwt import create_access_token
from bookhub.config import settings
from bookhub.db.catalog import CatalogStore
from bookhub.db.models import Author, Book, User
from bookhub.errors import (
    AuthorCreationError,
    AuthorizationError,
    CredentialError,
    ValidationError,
)
from bookhub.events.types import BOOK_ADDED
from bookhub.realtime.bus import EventBus

logger = structlog.get_logger()

# Rejections from the store: constraint violations and model validators
PERSISTENCE_ERRORS = (SQLAlchemyError, ValueError)


class CatalogOperations:
    """Queries and mutations over authors, books and users."""

    def __init__(
        self,
        db: AsyncSession,
        bus: EventBus,
        auth: Optional[AuthContext] = None,
    ):
        self.db = db
        self.store = CatalogStore(db)
        self.bus = bus
        self.auth = auth or AuthContext()

    def _require_user(self, invalid_args=None) -> User:
        if self.auth.current_user is None:
            raise AuthorizationError(invalid_args=invalid_args)
        return self.auth.current_user

    # ─── Queries ────────────────────────────────────────

    async def all_books_count(self) -> int:
        return await self.store.count_books()

    async def author_count(self) -> int:
        return await self.store.count_authors()

    async def all_books(self, genre: Optional[str] = None) -> list[Book]:
        return await self.store.list_books(genre)

    async def all_authors(self) -> list[Author]:
        return await self.store.list_authors()

    def me(self) -> Optional[User]:
        return self.auth.current_user

    # ─── Mutations ──────────────────────────────────────

    async def add_book(
        self,
        title: str,
        published: int,
        author: str,
        genres: list[str],
    ) -> Book:
        """Add a book, creating its author by name on first use.

        The author and the book are one unit of work: if the book can't
        be saved, a freshly created author is rolled back with it.
        Publishes BOOK_ADDED with the author-resolved book.
        """
        self._require_user(invalid_args=title)

        existing = await self.store.find_author_by_name(author)
        if existing is None:
            try:
                existing = await self.store.create_author(author)
            except PERSISTENCE_ERRORS as e:
                await self.db.rollback()
                raise AuthorCreationError(invalid_args=author, cause=e)
            logger.info("bookhub.author.created", name=author)

        try:
            book = await self.store.create_book(title, published, existing, genres)
            await self.db.commit()
        except PERSISTENCE_ERRORS as e:
            await self.db.rollback()
            raise ValidationError("Saving book failed", invalid_args=title, cause=e)

        delivered = self.bus.publish(BOOK_ADDED, book)
        logger.info(
            "bookhub.book.added",
            title=book.title,
            author=book.author.name,
            subscribers=delivered,
        )
        return book

    async def edit_author(self, name: str, set_born_to: int) -> Optional[Author]:
        """Set an author's birth year. Unknown name → None, not an error."""
        self._require_user(invalid_args=name)

        author = await self.store.find_author_by_name(name)
        if author is None:
            return None

        author = await self.store.set_author_born(author, set_born_to)
        await self.db.commit()
        return author

    async def create_user(self, username: str, favorite_genre: str) -> User:
        try:
            user = await self.store.create_user(username, favorite_genre)
            await self.db.commit()
        except PERSISTENCE_ERRORS as e:
            await self.db.rollback()
            raise ValidationError(
                "Creating the user failed", invalid_args=username, cause=e
            )
        logger.info("bookhub.user.created", username=username)
        return user

    async def login(self, username: str, password: str) -> str:
        """Return a signed token for `username`.

        Every account shares one password (settings.shared_password).
        There is no per-user credential to check.
        """
        user = await self.store.find_user_by_username(username)
        if user is None or password != settings.shared_password:
            raise CredentialError(invalid_args=username)
        return create_access_token(user.username, user.id)
