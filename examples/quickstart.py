#!/usr/bin/env python3
"""
Bookhub Quickstart — the whole catalog flow in one script.

Creates a user → logs in → adds books → edits an author → lists the catalog.
Run with: python examples/quickstart.py

Backend must be running: bookhub serve
Run examples/watch_books.py in another terminal to see bookAdded events.
"""

import uuid

from _common import create_client, gql

BOOK_FIELDS = "title published genres author { name born bookCount }"


def main():
    run_id = uuid.uuid4().hex[:6]
    client = create_client()

    # ── Add books (first one creates the author) ──────────────────
    print("\n1. Adding books...")
    for title, published, genres in [
        (f"Dune {run_id}", 1965, ["scifi", "classic"]),
        (f"Dune Messiah {run_id}", 1969, ["scifi"]),
    ]:
        data = gql(
            client,
            f"""mutation ($t: String!, $p: Int!, $a: String!, $g: [String!]!) {{
                addBook(title: $t, published: $p, author: $a, genres: $g) {{ {BOOK_FIELDS} }}
            }}""",
            t=title,
            p=published,
            a=f"Frank Herbert {run_id}",
            g=genres,
        )
        book = data["addBook"]
        print(f"   {book['title']} ({book['published']}) by {book['author']['name']}")

    # ── Edit the author ───────────────────────────────────────────
    print("\n2. Setting the author's birth year...")
    data = gql(
        client,
        "mutation ($n: String!, $b: Int!) { editAuthor(name: $n, setBornTo: $b) { name born bookCount } }",
        n=f"Frank Herbert {run_id}",
        b=1920,
    )
    author = data["editAuthor"]
    print(f"   {author['name']} born {author['born']}, {author['bookCount']} books")

    # ── Read the catalog ──────────────────────────────────────────
    print("\n3. Catalog:")
    data = gql(client, "{ allBooksCount authorCount me { username favoriteGenre } }")
    print(f"   {data['allBooksCount']} books, {data['authorCount']} authors")
    print(f"   Logged in as {data['me']['username']} ({data['me']['favoriteGenre']})")

    data = gql(client, f'{{ allBooks(genre: "classic") {{ {BOOK_FIELDS} }} }}')
    print(f"   Classics: {[b['title'] for b in data['allBooks']]}")


if __name__ == "__main__":
    main()
