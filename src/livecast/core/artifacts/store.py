"""Disk-backed, index-addressed storage for screenshot artifacts.

- Directory:        `Settings.artifact_dir` (default `storage/live_view/`)
- Filename pattern: `{index}.jpeg`
- Content:          raw JPEG bytes as returned by the page handle

Indices come from the capture guard and only ever grow, so two artifacts
never share a path and writes/deletes of different indices need no locking.
Retention is driven by the guard; this store only knows how to put, delete
and locate a single artifact.

Usage
-----
>>> store = ArtifactStore(Path("/tmp/live_view"))
>>> store.ensure_dir()
>>> path = store.put(0, jpeg_bytes)
>>> store.delete(0)
True
"""

from __future__ import annotations

from pathlib import Path

from livecast.core.errors import ArtifactDeleteFailure, ArtifactWriteFailure
from livecast.core.settings import get_logger

ARTIFACT_SUFFIX = ".jpeg"

logger = get_logger("livecast.artifacts")


class ArtifactStore:
    """Persist screenshot blobs under paths derived from their index."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir: Path = Path(base_dir)

    def ensure_dir(self) -> Path:
        """Create the artifact directory if needed and return it."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        return self.base_dir

    def path_for(self, index: int) -> Path:
        """Return the path of artifact ``index`` (pure; the file may not exist)."""
        return self.base_dir / f"{int(index)}{ARTIFACT_SUFFIX}"

    def put(self, index: int, data: bytes) -> Path:
        """Write ``data`` as artifact ``index``, replacing any existing file.

        Raises
        ------
        ArtifactWriteFailure
            When the file cannot be written.
        """
        path = self.path_for(index)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise ArtifactWriteFailure(index, str(exc)) from exc
        return path

    def delete(self, index: int) -> bool:
        """Remove artifact ``index``. Best effort: never raises, never retries.

        Returns
        -------
        bool
            ``True`` if a file was removed, ``False`` if it was already gone
            or could not be removed (the latter is logged).
        """
        try:
            self.path_for(index).unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            failure = ArtifactDeleteFailure(index, str(exc))
            logger.error("%s", failure, exc_info=exc)
            return False
        return True

    def indices(self) -> list[int]:
        """Return the sorted indices of artifacts currently on disk."""
        if not self.base_dir.is_dir():
            return []
        found: list[int] = []
        for path in self.base_dir.glob(f"*{ARTIFACT_SUFFIX}"):
            if path.stem.isdigit():
                found.append(int(path.stem))
        return sorted(found)


__all__ = ["ArtifactStore", "ARTIFACT_SUFFIX"]
