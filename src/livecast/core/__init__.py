"""Core building blocks for Livecast.

Settings and logging live in :mod:`livecast.core.settings`; data contracts in
:mod:`livecast.core.contracts`; artifact persistence in
:mod:`livecast.core.artifacts`.
"""

from __future__ import annotations

__all__ = ["__doc__"]
