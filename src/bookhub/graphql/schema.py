"""Catalog GraphQL schema — queries, mutations and the bookAdded subscription.

Learn: Resolvers are thin. Each one opens a CatalogOperations on its own
session (`info.context.catalog()`), calls it, and converts ORM rows to
GraphQL types before the session closes. Query fields resolve
concurrently, so they must never share one session.

Errors are raised, not returned: a CatalogError's `extensions`
({code, invalidArgs, error}) is copied by the engine onto the reported
GraphQL error.
"""

from collections.abc import AsyncGenerator
from contextlib import aclosing
from typing import Optional

import strawberry
import structlog
from strawberry.fastapi import GraphQLRouter
from strawberry.subscriptions import GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL
from strawberry.types import Info

from bookhub.config import settings
from bookhub.errors import CatalogError
from bookhub.events.types import BOOK_ADDED
from bookhub.graphql.context import CatalogContext, get_context
from bookhub.graphql.types import Author, Book, Token, User

logger = structlog.get_logger()

CatalogInfo = Info[CatalogContext, None]


@strawberry.type
class Query:
    @strawberry.field
    async def all_books_count(self, info: CatalogInfo) -> int:
        async with info.context.catalog() as catalog:
            return await catalog.all_books_count()

    @strawberry.field
    async def author_count(self, info: CatalogInfo) -> int:
        async with info.context.catalog() as catalog:
            return await catalog.author_count()

    @strawberry.field(description='Every book, or only those tagged `genre` ("all" = every book).')
    async def all_books(
        self, info: CatalogInfo, genre: Optional[str] = None
    ) -> list[Book]:
        async with info.context.catalog() as catalog:
            books = await catalog.all_books(genre)
            return [Book.from_model(book) for book in books]

    @strawberry.field
    async def all_authors(self, info: CatalogInfo) -> list[Author]:
        async with info.context.catalog() as catalog:
            authors = await catalog.all_authors()
            return [Author.from_model(author) for author in authors]

    @strawberry.field
    async def me(self, info: CatalogInfo) -> Optional[User]:
        async with info.context.catalog() as catalog:
            user = catalog.me()
        return User.from_model(user) if user else None


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def add_book(
        self,
        info: CatalogInfo,
        title: str,
        published: int,
        author: str,
        genres: list[str],
    ) -> Book:
        async with info.context.catalog() as catalog:
            book = await catalog.add_book(title, published, author, genres)
            return Book.from_model(book)

    @strawberry.mutation
    async def edit_author(
        self, info: CatalogInfo, name: str, set_born_to: int
    ) -> Optional[Author]:
        async with info.context.catalog() as catalog:
            author = await catalog.edit_author(name, set_born_to)
            return Author.from_model(author) if author else None

    @strawberry.mutation
    async def create_user(
        self, info: CatalogInfo, username: str, favorite_genre: str
    ) -> User:
        async with info.context.catalog() as catalog:
            user = await catalog.create_user(username, favorite_genre)
            return User.from_model(user)

    @strawberry.mutation
    async def login(self, info: CatalogInfo, username: str, password: str) -> Token:
        async with info.context.catalog() as catalog:
            return Token(value=await catalog.login(username, password))


@strawberry.type
class Subscription:
    @strawberry.subscription
    async def book_added(self, info: CatalogInfo) -> AsyncGenerator[Book, None]:
        async with aclosing(info.context.subscriptions.stream(BOOK_ADDED)) as events:
            async for book in events:
                yield Book.from_model(book)


class CatalogSchema(strawberry.Schema):
    """Schema that reports resolver errors through structlog."""

    def process_errors(self, errors, execution_context=None) -> None:
        for error in errors:
            original = error.original_error
            if isinstance(original, CatalogError):
                logger.warning(
                    "bookhub.graphql.rejected",
                    code=original.code,
                    message=original.message,
                    path=error.path,
                )
            else:
                logger.error(
                    "bookhub.graphql.error",
                    message=error.message,
                    path=error.path,
                    exc_info=original,
                )


schema = CatalogSchema(query=Query, mutation=Mutation, subscription=Subscription)


def build_graphql_router(path: str | None = None) -> GraphQLRouter:
    """One router, one path: HTTP for queries/mutations, websocket for subscriptions."""
    return GraphQLRouter(
        schema,
        path=path if path is not None else settings.graphql_path,
        graphql_ide="graphiql" if settings.debug else None,
        context_getter=get_context,
        subscription_protocols=[
            GRAPHQL_TRANSPORT_WS_PROTOCOL,
            GRAPHQL_WS_PROTOCOL,
        ],
    )
