"""Livecast: serve live snapshots of an automated page to remote observers.

The public entry point is :class:`livecast.live.server.LivecastServer`.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"
