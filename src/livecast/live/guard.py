"""
Capture guard: decide when to capture, and keep capturing cheap for the page.

Taking a snapshot costs the automated page real time (a screenshot alone is
typically around 300 ms), so :meth:`CaptureGuard.serve` is built to be called
as often as the automation likes and to do almost nothing most of the time.

Admission
---------
``serve`` returns immediately, without touching the page, when:

1. nobody is watching and a snapshot already exists,
2. another capture is still in flight,
3. the last snapshot is younger than ``min_capture_interval_secs``.

Capture
-------
An admitted capture runs as its own task, and ``serve`` waits for it at most
``capture_timeout_secs``. Timeouts and errors are logged and swallowed; the
caller only ever gets the new :class:`Snapshot` or ``None``. The in-flight
flag is cleared on every exit path.

On timeout the capture task is cancelled but not waited for, so a page that
is slow to honor the cancel cannot hold ``serve`` past the timeout. The
abandoned task is tracked and its outcome logged. A screenshot write already
handed to a worker thread may still land afterwards. Its index was allocated
before the write started, so indices stay unique and increasing.

Retention
---------
Once screenshot ``i`` is written, every screenshot up to
``i - max_retained_artifacts`` not yet retired is deleted by a background
task. A failed write retires nothing. Deletion failures are only logged.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from livecast.core.artifacts import ArtifactStore
from livecast.core.contracts import SNAPSHOT_EVENT, Snapshot
from livecast.core.errors import CaptureFailure, CaptureTimeout
from livecast.core.settings import get_logger

from .channel import DeliveryChannel
from .page import PageHandle, as_page_handle
from .registry import ConnectionRegistry

logger = get_logger("livecast.guard")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class CaptureGuard:
    """Admission control, single-flight and timeout around page captures."""

    def __init__(
        self,
        *,
        store: ArtifactStore,
        registry: ConnectionRegistry,
        channel: DeliveryChannel,
        capture_timeout_secs: float = 3.0,
        min_capture_interval_secs: float = 2.0,
        max_retained_artifacts: int = 10,
        use_screenshots: bool = False,
        screenshot_quality: int = 75,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._channel = channel
        self.capture_timeout_secs = capture_timeout_secs
        self.min_capture_interval_secs = min_capture_interval_secs
        self.max_retained_artifacts = max_retained_artifacts
        self.use_screenshots = use_screenshots
        self.screenshot_quality = screenshot_quality
        self._clock: Clock = clock or utc_now

        self._last_snapshot: Snapshot | None = None
        self._next_screenshot_index = 0
        self._in_flight = False
        self._retired_below = 0
        self._background: set[asyncio.Task[Any]] = set()

    @property
    def last_snapshot(self) -> Snapshot | None:
        return self._last_snapshot

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def next_screenshot_index(self) -> int:
        return self._next_screenshot_index

    async def serve(self, page: Any) -> Snapshot | None:
        """Capture the page and broadcast it, if a capture is admitted now.

        Never raises for capture problems and never waits much longer than
        ``capture_timeout_secs``.

        Returns
        -------
        Snapshot | None
            The new snapshot, or ``None`` when skipped, timed out or failed.
        """
        if not self._registry.has_observers(snapshot_exists=self._last_snapshot is not None):
            logger.debug("Live view server has no clients, skipping snapshot.")
            return None
        # One capture at a time: browsers cannot take screenshots in parallel.
        if self._in_flight:
            logger.debug("Already serving a snapshot, not starting a new one.")
            return None
        last = self._last_snapshot
        if last is not None and last.age(self._clock()) < self.min_capture_interval_secs:
            logger.debug(
                "Snapshot was already served in less than %gs.", self.min_capture_interval_secs
            )
            return None

        self._in_flight = True
        capture = asyncio.create_task(
            self._make_snapshot(as_page_handle(page)), name="livecast-capture"
        )
        try:
            done, _ = await asyncio.wait({capture}, timeout=self.capture_timeout_secs)
            if capture not in done:
                # Stop waiting now; the page may take its time to honor the cancel.
                capture.cancel()
                self._track(capture)
                logger.error(
                    "Serving of page for live view failed: %s",
                    CaptureTimeout(self.capture_timeout_secs),
                )
                return None
            snapshot = capture.result()
        except asyncio.CancelledError:
            capture.cancel()
            raise
        except Exception:
            logger.exception("Serving of page for live view failed")
            return None
        finally:
            self._in_flight = False

        self._last_snapshot = snapshot
        self._push(snapshot)
        return snapshot

    async def drain(self) -> None:
        """Wait for background deletions and abandoned captures scheduled so far."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _make_snapshot(self, page: PageHandle) -> Snapshot:
        try:
            page_url = await page.current_url()
            logger.info("Making live view snapshot (page_url=%s)", page_url)
            screenshot: bytes | None = None
            if self.use_screenshots:
                html_content, screenshot = await asyncio.gather(
                    page.current_markup(),
                    page.capture_screenshot(self.screenshot_quality),
                )
            else:
                html_content = await page.current_markup()
        except Exception as exc:
            raise CaptureFailure(f"Cannot read page for live view: {exc}") from exc

        screenshot_index: int | None = None
        if screenshot is not None:
            screenshot_index = self._next_screenshot_index
            self._next_screenshot_index += 1
            await asyncio.to_thread(self._store.put, screenshot_index, screenshot)
            self._retire_through(screenshot_index - self.max_retained_artifacts)

        return Snapshot(
            page_url=page_url,
            html_content=html_content,
            screenshot_index=screenshot_index,
            created_at=self._clock(),
        )

    def _push(self, snapshot: Snapshot) -> None:
        logger.debug(
            "Sending live view snapshot (created_at=%s, page_url=%s)",
            snapshot.created_at.isoformat(),
            snapshot.page_url,
        )
        self._channel.send(SNAPSHOT_EVENT, snapshot.to_payload())

    def _retire_through(self, stale: int) -> None:
        """Delete every artifact up to ``stale`` not yet retired."""
        if stale < self._retired_below:
            return
        doomed = range(self._retired_below, stale + 1)
        self._retired_below = stale + 1
        task = asyncio.create_task(
            asyncio.to_thread(self._delete_all, doomed),
            name=f"livecast-delete-{stale}",
        )
        self._track(task)

    def _delete_all(self, indices: range) -> None:
        for index in indices:
            self._store.delete(index)

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Live view background task %s failed.", task.get_name(), exc_info=exc)


__all__ = ["CaptureGuard", "Clock", "utc_now"]
