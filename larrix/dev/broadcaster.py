# larrix/dev/broadcaster.py
from __future__ import annotations
import asyncio
import itertools
import logging
from typing import AsyncIterator, Optional, Set

log = logging.getLogger(__name__)

RELOAD_EVENT = "reload"
RELOAD_MESSAGE = "files changed, reloading..."


class ClientGone(Exception):
    pass


def format_event(event: str, data: str) -> str:
    lines = [f"event: {event}"] + [f"data: {line}" for line in data.split("\n")]
    return "\n".join(lines) + "\n\n"


class PreviewClient:
    """One push-stream connection. Frames queue up until the transport drains them."""

    def __init__(self, client_id: int) -> None:
        self.id = client_id
        self.closed = False
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()

    def push(self, event: str, data: str) -> None:
        if self.closed:
            raise ClientGone(self.id)
        self._queue.put_nowait(format_event(event, data))

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(None)

    async def stream(self) -> AsyncIterator[str]:
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            yield frame

    def __repr__(self) -> str:
        return f"<PreviewClient {self.id}{' closed' if self.closed else ''}>"


class Broadcaster:
    """
    Registry of connected preview clients. Only touched from the event-loop
    thread, so no locking; broadcast iterates over a snapshot.
    """

    def __init__(self) -> None:
        self._clients: Set[PreviewClient] = set()
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, client: object) -> bool:
        return client in self._clients

    def register(self) -> PreviewClient:
        client = PreviewClient(next(self._ids))
        self._clients.add(client)
        log.debug("client %s connected (%d total)", client.id, len(self._clients))
        return client

    def unregister(self, client: PreviewClient) -> bool:
        if client not in self._clients:
            return False
        self._clients.discard(client)
        client.close()
        log.debug("client %s disconnected (%d left)", client.id, len(self._clients))
        return True

    def broadcast(self, event: str = RELOAD_EVENT, data: str = RELOAD_MESSAGE) -> int:
        """Fire-and-forget to every client. Returns how many were reached."""
        sent = 0
        for client in list(self._clients):
            try:
                client.push(event, data)
                sent += 1
            except ClientGone:
                self.unregister(client)
        return sent

    def close_all(self) -> None:
        clients, self._clients = self._clients, set()
        for client in clients:
            client.close()
