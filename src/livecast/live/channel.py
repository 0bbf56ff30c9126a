"""Delivery channel: fan events out to observer queues.

Sending never blocks. Each observer owns a bounded ``asyncio.Queue`` that a
per-connection task drains to its socket; when an observer falls behind and
its queue is full, the oldest queued event is dropped to make room. A slow
observer therefore never delays other observers or the capture guard.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from livecast.core.contracts import SNAPSHOT_EVENT, Envelope, Snapshot
from livecast.core.settings import get_logger

from .registry import ConnectionRegistry, Observer

logger = get_logger("livecast.channel")

SnapshotSource = Callable[[], Snapshot | None]


class DeliveryChannel:
    """Broadcast and unicast envelopes to registered observers."""

    def __init__(self, registry: ConnectionRegistry, last_snapshot: SnapshotSource) -> None:
        self._registry = registry
        self._last_snapshot = last_snapshot

    def broadcast(self, event: str, payload: Any, *, request_id: str | None = None) -> int:
        """Queue ``event`` for every connected observer.

        Returns
        -------
        int
            The number of observers the event was queued for.
        """
        wire = Envelope(event=event, data=payload, id=request_id).to_wire()
        observers = self._registry.observers()
        for observer in observers:
            self._enqueue(observer.queue, wire)
        return len(observers)

    def send(self, event: str, payload: Any, *, request_id: str | None = None) -> int:
        """Broadcast with a debug trace; the public sending entry point."""
        logger.debug("Sending websocket message (event=%s)", event)
        return self.broadcast(event, payload, request_id=request_id)

    def unicast(self, observer: Observer, event: str, payload: Any) -> None:
        """Queue ``event`` for a single observer."""
        self._enqueue(observer.queue, Envelope(event=event, data=payload).to_wire())

    def unicast_last(self, observer: Observer) -> bool:
        """Resend the most recent snapshot to ``observer``; no-op if none exists."""
        snapshot = self._last_snapshot()
        if snapshot is None:
            return False
        logger.debug(
            "Sending live view snapshot (created_at=%s, page_url=%s, client_id=%s)",
            snapshot.created_at.isoformat(),
            snapshot.page_url,
            observer.id,
        )
        self.unicast(observer, SNAPSHOT_EVENT, snapshot.to_payload())
        return True

    @staticmethod
    def _enqueue(queue: asyncio.Queue[dict[str, Any]], item: dict[str, Any]) -> None:
        if queue.full():
            try:
                queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
        try:
            queue.put_nowait(item)
        except asyncio.QueueFull:
            pass


__all__ = ["DeliveryChannel"]
