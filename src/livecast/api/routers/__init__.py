from __future__ import annotations

from . import live

__all__ = ["live"]
