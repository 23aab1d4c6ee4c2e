"""GraphQL layer — Strawberry schema over the catalog service.

Learn: One schema, two transports. The same Query/Mutation/Subscription
types are served over HTTP (queries, mutations) and over websocket
(subscriptions) by a single GraphQLRouter mounted on one path.
"""
