"""Data contracts shared by the capture pipeline and the WebSocket layer."""

from __future__ import annotations

from .events import (
    ANSWER_EVENT,
    PROMPT_EVENT,
    REQUEST_LAST_EVENT,
    SNAPSHOT_EVENT,
    Envelope,
)
from .snapshot import Snapshot, format_timestamp

__all__ = [
    "Snapshot",
    "format_timestamp",
    "Envelope",
    "SNAPSHOT_EVENT",
    "PROMPT_EVENT",
    "ANSWER_EVENT",
    "REQUEST_LAST_EVENT",
]
