"""
Snapshot contract.

A snapshot is the immutable record of one successful capture of the page:
the URL open at that moment, its full serialized markup, and (when
screenshots are enabled) the index of the JPEG artifact holding its picture.

Wire shape
----------
Observers receive the camelCase form produced by :meth:`Snapshot.to_payload`::

    {
        "pageUrl": "https://www.example.com",
        "htmlContent": "<html><body> ....",
        "screenshotIndex": 3,
        "createdAt": "2019-04-18T11:50:40.060Z"
    }

Screenshot bytes are never part of the payload; observers fetch them from
``GET /screenshot/{screenshotIndex}``.

Design Notes
------------
- **Immutability**: the model is frozen; a new capture builds a new snapshot.
- **Age**: :meth:`Snapshot.age` is recomputed on every call so the throttle
  always compares against the current time.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as UTC ISO-8601 with millisecond precision and ``Z``."""
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class Snapshot(BaseModel):
    """
    Immutable result of one capture.

    Attributes
    ----------
    page_url : str
        URL open in the page at capture time.
    html_content : str
        Full serialized markup at capture time.
    screenshot_index : int | None
        Index of the screenshot artifact, or ``None`` when screenshots are off.
    created_at : datetime
        Timezone-aware UTC construction time.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    page_url: str = Field(alias="pageUrl")
    html_content: str = Field(alias="htmlContent")
    screenshot_index: int | None = Field(default=None, ge=0, alias="screenshotIndex")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        """Treat naive datetimes as UTC so `age()` never mixes clock kinds."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> str:
        return format_timestamp(value)

    def age(self, now: datetime | None = None) -> float:
        """Return the seconds elapsed since `created_at` (never cached)."""
        current = now if now is not None else datetime.now(UTC)
        return (current - self.created_at).total_seconds()

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-safe camelCase dict sent to observers."""
        return self.model_dump(by_alias=True)


__all__ = ["Snapshot", "format_timestamp"]
