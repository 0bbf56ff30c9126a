"""Event names and the JSON envelope carried over the observer WebSocket.

Every frame in both directions is a JSON object::

    {"event": "<name>", "data": <payload>, "id": "<request id, optional>"}

Outbound events are ``snapshot`` and ``prompt``; inbound events are
``promptAnswer`` and ``getLastSnapshot``. The optional ``id`` pairs a
``prompt`` with its ``promptAnswer``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

SNAPSHOT_EVENT = "snapshot"
PROMPT_EVENT = "prompt"
ANSWER_EVENT = "promptAnswer"
REQUEST_LAST_EVENT = "getLastSnapshot"


class Envelope(BaseModel):
    """One WebSocket frame."""

    event: str = Field(min_length=1, description="Event name")
    data: Any = Field(default=None, description="Event payload, opaque to the transport")
    id: str | None = Field(default=None, description="Prompt request id, if any")

    def to_wire(self) -> dict[str, Any]:
        """Return the dict sent as JSON; `id` is omitted when unset."""
        wire: dict[str, Any] = {"event": self.event, "data": self.data}
        if self.id is not None:
            wire["id"] = self.id
        return wire


__all__ = [
    "Envelope",
    "SNAPSHOT_EVENT",
    "PROMPT_EVENT",
    "ANSWER_EVENT",
    "REQUEST_LAST_EVENT",
]
