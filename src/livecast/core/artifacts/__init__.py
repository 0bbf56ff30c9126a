from __future__ import annotations

from .store import ArtifactStore

__all__ = ["ArtifactStore"]
