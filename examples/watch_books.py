#!/usr/bin/env python3
"""
Watch bookAdded events over the graphql-transport-ws protocol.

Run with: python examples/watch_books.py
Then add books (examples/quickstart.py) and watch them arrive.
"""

import asyncio
import json

import websockets

URL = "ws://localhost:4000/"
SUBSCRIPTION = "subscription { bookAdded { title published genres author { name } } }"


async def main():
    async with websockets.connect(URL, subprotocols=["graphql-transport-ws"]) as ws:
        await ws.send(json.dumps({"type": "connection_init"}))
        ack = json.loads(await ws.recv())
        assert ack["type"] == "connection_ack", ack

        await ws.send(json.dumps({
            "id": "1",
            "type": "subscribe",
            "payload": {"query": SUBSCRIPTION},
        }))
        print("Subscribed to bookAdded. Ctrl-C to stop.")

        async for raw in ws:
            message = json.loads(raw)
            if message["type"] == "next":
                book = message["payload"]["data"]["bookAdded"]
                print(f"+ {book['title']} ({book['published']}) by {book['author']['name']} {book['genres']}")
            elif message["type"] == "ping":
                await ws.send(json.dumps({"type": "pong"}))
            elif message["type"] in ("error", "complete"):
                print(f"Subscription ended: {message}")
                break


if __name__ == "__main__":
    asyncio.run(main())
