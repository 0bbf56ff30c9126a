"""Connection registry: who is watching right now.

Each WebSocket connection registers an :class:`Observer` on connect and
removes it on disconnect. The capture guard only cares about the aggregate,
through :meth:`ConnectionRegistry.has_observers`.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any

from livecast.core.settings import get_logger

logger = get_logger("livecast.registry")


def _make_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass(eq=False)
class Observer:
    """One connected observer and its bounded outbound queue."""

    queue: asyncio.Queue[dict[str, Any]]
    id: str = field(default_factory=_make_id)


class ConnectionRegistry:
    """Track live observers and answer "is anyone watching"."""

    def __init__(self, queue_size: int = 16) -> None:
        self._queue_size = max(1, int(queue_size))
        self._observers: set[Observer] = set()

    @property
    def count(self) -> int:
        return len(self._observers)

    def connect(self) -> Observer:
        """Register a new observer and return it."""
        observer = Observer(queue=asyncio.Queue(maxsize=self._queue_size))
        self._observers.add(observer)
        logger.info("Live view client connected (client_id=%s, clients=%d)", observer.id, self.count)
        return observer

    def disconnect(self, observer: Observer, reason: Any = None) -> None:
        """Forget ``observer``. Disconnecting twice is harmless."""
        if observer not in self._observers:
            return
        self._observers.discard(observer)
        logger.info(
            "Live view client disconnected (client_id=%s, reason=%s, clients=%d)",
            observer.id,
            reason,
            self.count,
        )

    def observers(self) -> tuple[Observer, ...]:
        """Return a stable copy of the live observers."""
        return tuple(self._observers)

    def has_observers(self, *, snapshot_exists: bool) -> bool:
        """Return True if someone is watching, or no snapshot was made yet.

        Until the first snapshot exists the server counts as its own observer,
        so a client connecting later has something to request immediately.
        """
        if not snapshot_exists:
            return True
        return self.count > 0


__all__ = ["ConnectionRegistry", "Observer"]
