"""SQLAlchemy ORM models — single source of truth for the catalog schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations mirror what is declared here.

Key concepts:
- UUID primary keys, portable across PostgreSQL and SQLite (sa.Uuid)
- Natural keys (author name, book title, username) are UNIQUE columns,
  separate from the identity used for references
- Genres live in their own position-indexed table so that a book's tags
  keep their order and can be filtered with plain SQL
- @validates hooks reject values the store should never hold
"""

import uuid
from typing import Optional

from sqlalchemy import (
    ForeignKey,
    Integer,
    String,
    Uuid,
    func,
    select,
)
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    column_property,
    mapped_column,
    relationship,
    validates,
)

AUTHOR_NAME_MIN_LENGTH = 4
BOOK_TITLE_MIN_LENGTH = 5
USERNAME_MIN_LENGTH = 3


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def _require_min_length(field: str, value: str, min_length: int) -> str:
    if value is None or len(value) < min_length:
        raise ValueError(
            f"{field} must be at least {min_length} characters long"
        )
    return value


class BookGenre(Base):
    """One genre tag of a book, in insertion order."""

    __tablename__ = "book_genres"

    book_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("books.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    genre: Mapped[str] = mapped_column(String(100), nullable=False, index=True)


class Book(Base):
    """A catalog entry. Always owned by exactly one Author."""

    __tablename__ = "books"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    title: Mapped[str] = mapped_column(String(300), unique=True, nullable=False)
    published: Mapped[int] = mapped_column(Integer, nullable=False)
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("authors.id"), nullable=False
    )

    author: Mapped["Author"] = relationship(back_populates="books")
    genre_links: Mapped[list[BookGenre]] = relationship(
        order_by=BookGenre.position,
        cascade="all, delete-orphan",
    )

    # Read-only view of genre_links as a list of strings
    genres: AssociationProxy[list[str]] = association_proxy("genre_links", "genre")

    @validates("title")
    def _validate_title(self, key, value):
        return _require_min_length(key, value, BOOK_TITLE_MIN_LENGTH)

    def set_genres(self, genres: list[str]) -> None:
        """Replace the tags, collapsing duplicates and keeping first-seen order."""
        ordered = list(dict.fromkeys(genres))
        self.genre_links = [
            BookGenre(position=i, genre=genre) for i, genre in enumerate(ordered)
        ]


class Author(Base):
    """A book author. `name` is the natural key used by addBook."""

    __tablename__ = "authors"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    born: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Derived on every load: number of books referencing this author
    book_count: Mapped[int] = column_property(
        select(func.count(Book.id))
        .where(Book.author_id == id)
        .correlate_except(Book)
        .scalar_subquery()
    )

    books: Mapped[list[Book]] = relationship(back_populates="author")

    @validates("name")
    def _validate_name(self, key, value):
        return _require_min_length(key, value, AUTHOR_NAME_MIN_LENGTH)


class User(Base):
    """An API user. Logs in by username; has a preferred genre."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    favorite_genre: Mapped[str] = mapped_column(String(100), nullable=False)

    @validates("username")
    def _validate_username(self, key, value):
        return _require_min_length(key, value, USERNAME_MIN_LENGTH)
