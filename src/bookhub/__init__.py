"""Bookhub — library catalog GraphQL API.

Authors, books and users behind a single GraphQL endpoint, with
token-based authentication and a live `bookAdded` subscription.
"""

__version__ = "0.1.0"
