"""
Shared helpers for Bookhub examples.

Wraps GraphQL-over-HTTP calls and handles user creation + login so each
example can focus on its specific workflow.
"""

import sys
import uuid

import httpx

BASE = "http://localhost:4000"
SHARED_PASSWORD = "secret"


def check_backend() -> None:
    """Verify the backend is reachable and healthy."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  bookhub serve")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Database:  {'✓' if health['database'] == 'ok' else '✗'}")
    print(f"  Transport: {health['transport']}")


def gql(client: httpx.Client, query: str, **variables) -> dict:
    """POST a GraphQL document; exit on errors, return `data`."""
    resp = client.post("/", json={"query": query, "variables": variables})
    body = resp.json()
    if body.get("errors"):
        for error in body["errors"]:
            print(f"ERROR: {error['message']} {error.get('extensions', {})}")
        sys.exit(1)
    return body["data"]


def authenticate(client: httpx.Client, favorite_genre: str = "fantasy") -> str:
    """Create a fresh user and log in, returning a token.

    Uses a unique username per run so examples are idempotent.
    """
    username = f"demo-{uuid.uuid4().hex[:8]}"
    gql(
        client,
        "mutation ($u: String!, $g: String!) { createUser(username: $u, favoriteGenre: $g) { id } }",
        u=username,
        g=favorite_genre,
    )
    data = gql(
        client,
        "mutation ($u: String!, $p: String!) { login(username: $u, password: $p) { value } }",
        u=username,
        p=SHARED_PASSWORD,
    )
    return data["login"]["value"]


def create_client() -> httpx.Client:
    """Check backend, authenticate, and return an httpx Client with auth headers."""
    check_backend()
    with httpx.Client(base_url=BASE, timeout=10) as anon:
        token = authenticate(anon)
    print("  Auth:      ✓ (JWT)")
    return httpx.Client(
        base_url=BASE,
        timeout=10,
        headers={"Authorization": f"Bearer {token}"},
    )
