"""HTTP and WebSocket surface of the live view (FastAPI + uvicorn)."""

from __future__ import annotations

__all__ = ["__doc__"]
