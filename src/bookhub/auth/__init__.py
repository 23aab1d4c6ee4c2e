"""Authentication.

Learn: A single path — the `Authorization: Bearer <jwt>` header. The
token is signed at login and resolved back to a User on every request.
No header means anonymous; a bad token fails the request.
"""
