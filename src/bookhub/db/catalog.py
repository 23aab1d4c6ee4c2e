"""Catalog store — the persistence accessor used by CatalogOperations.

Learn: Every read that returns a Book join-fetches its author and genres
up front (selectinload). Async SQLAlchemy can't lazy-load on attribute
access, and the GraphQL layer must never see a bare author reference, so
the join happens here, before data leaves the store.

Writes flush but leave commit/rollback to the caller — the service decides
where a unit of work ends.
"""

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookhub.db.models import Author, Book, BookGenre, User

ALL_GENRES = "all"


class CatalogStore:
    """Data access for authors, books and users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Counts ─────────────────────────────────────────

    async def count_books(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Book))
        return result.scalar_one()

    async def count_authors(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Author))
        return result.scalar_one()

    # ─── Books ──────────────────────────────────────────

    def _book_query(self):
        return select(Book).options(
            selectinload(Book.author),
            selectinload(Book.genre_links),
        )

    async def list_books(self, genre: Optional[str] = None) -> list[Book]:
        """All books, or only those tagged with `genre`.

        None, "" and "all" mean no filter.
        """
        q = self._book_query()
        if genre and genre != ALL_GENRES:
            q = q.where(Book.genre_links.any(BookGenre.genre == genre))
        result = await self.db.execute(q.order_by(Book.title))
        return list(result.scalars().all())

    async def get_book(self, book_id: uuid.UUID) -> Book | None:
        result = await self.db.execute(
            self._book_query()
            .where(Book.id == book_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def create_book(
        self,
        title: str,
        published: int,
        author: Author,
        genres: list[str],
    ) -> Book:
        book = Book(title=title, published=published, author_id=author.id)
        book.set_genres(genres)
        self.db.add(book)
        await self.db.flush()
        # Reload the author so its derived book_count includes this book
        await self.db.refresh(author)
        return await self.get_book(book.id)

    # ─── Authors ────────────────────────────────────────

    async def list_authors(self) -> list[Author]:
        result = await self.db.execute(
            select(Author)
            .order_by(Author.name)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def find_author_by_name(self, name: str) -> Author | None:
        result = await self.db.execute(select(Author).where(Author.name == name))
        return result.scalars().first()

    async def create_author(self, name: str) -> Author:
        author = Author(name=name)
        self.db.add(author)
        await self.db.flush()
        return author

    async def set_author_born(self, author: Author, born: int) -> Author:
        """Update the birth year and reload (book_count included)."""
        author.born = born
        await self.db.flush()
        await self.db.refresh(author)
        return author

    # ─── Users ──────────────────────────────────────────

    async def create_user(self, username: str, favorite_genre: str) -> User:
        user = User(username=username, favorite_genre=favorite_genre)
        self.db.add(user)
        await self.db.flush()
        return user

    async def find_user_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalars().first()

    async def get_user(self, user_id: uuid.UUID) -> User | None:
        return await self.db.get(User, user_id)
