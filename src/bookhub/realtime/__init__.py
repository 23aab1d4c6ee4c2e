"""Real-time infrastructure — in-process pub/sub + GraphQL subscriptions.

Learn: Events flow through two pieces:
1. Mutations → EventBus.publish (in-process broadcast per topic)
2. EventBus subscription → SubscriptionManager → websocket (live delivery)

The bus is created once at startup and handed to whoever needs it; there
is no module-level instance.
"""
