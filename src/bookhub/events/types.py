"""Event type constants.

Learn: Centralizing topic names as constants prevents typos and makes
it easy to discover every event the catalog can publish. Subscription
resolvers and mutations must agree on these strings.
"""

# ─── Catalog ─────────────────────────────────────────────

BOOK_ADDED = "BOOK_ADDED"
