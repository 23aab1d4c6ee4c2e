"""GraphQL object types.

Learn: These are plain Strawberry types, not ORM models. Each has a
from_model() that copies already-loaded columns, so nothing can trigger
a lazy load once data has left the store — and subscription payloads
outlive the session that produced them.
"""

from typing import Optional

import strawberry

from bookhub.db import models


@strawberry.type
class Author:
    id: strawberry.ID
    name: str
    born: Optional[int]
    book_count: int

    @classmethod
    def from_model(cls, author: models.Author) -> "Author":
        return cls(
            id=strawberry.ID(str(author.id)),
            name=author.name,
            born=author.born,
            book_count=author.book_count,
        )


@strawberry.type
class Book:
    id: strawberry.ID
    title: str
    published: int
    author: Author
    genres: list[str]

    @classmethod
    def from_model(cls, book: models.Book) -> "Book":
        return cls(
            id=strawberry.ID(str(book.id)),
            title=book.title,
            published=book.published,
            author=Author.from_model(book.author),
            genres=list(book.genres),
        )


@strawberry.type
class User:
    id: strawberry.ID
    username: str
    favorite_genre: str

    @classmethod
    def from_model(cls, user: models.User) -> "User":
        return cls(
            id=strawberry.ID(str(user.id)),
            username=user.username,
            favorite_genre=user.favorite_genre,
        )


@strawberry.type
class Token:
    value: str
