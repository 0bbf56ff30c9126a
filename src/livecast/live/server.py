"""
`LivecastServer`: serve live snapshots of an automated page over WebSockets.

A snapshot consists of the currently opened URL, the page markup, and
optionally the index of a JPEG screenshot::

    {
        "pageUrl": "https://www.example.com",
        "htmlContent": "<html><body> ....",
        "screenshotIndex": 3,
        "createdAt": "2019-04-18T11:50:40.060Z"
    }

The server is meant to stay cheap when nobody looks: until an observer
connects it captures nothing beyond the very first snapshot. Screenshots in
particular cost the page around 300 ms each, so keep them off unless needed.

Wiring
------
- :class:`ConnectionRegistry` tracks observers.
- :class:`DeliveryChannel` fans events out to them.
- :class:`CaptureGuard` decides when to capture and owns the last snapshot.
- :class:`PromptBridge` asks observers questions and dispatches answers.
- :class:`Listener` binds the HTTP/WebSocket endpoint.

Usage
-----
>>> live = LivecastServer(prompt_handlers={"skip": on_skip})
>>> result = await live.start()
>>> if result.is_err(): ...          # decide: retry, or run without a live view
>>> await live.serve(page)           # call freely, e.g. after each navigation
>>> answer = await live.prompt({"question": "Continue?"})
>>> await live.close()
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from livecast.api.app import create_app
from livecast.api.listener import Listener, ServiceState
from livecast.core.artifacts import ArtifactStore
from livecast.core.contracts import ANSWER_EVENT, REQUEST_LAST_EVENT, Envelope, Snapshot
from livecast.core.errors import BindFailure
from livecast.core.result import Result, err
from livecast.core.settings import Settings, get_logger, load_settings

from .channel import DeliveryChannel
from .guard import CaptureGuard, Clock
from .prompt import PromptBridge, PromptHandler, PromptHandlers
from .registry import ConnectionRegistry, Observer

logger = get_logger("livecast.server")


class LivecastServer:
    """Facade over the live view: lifecycle, capture, delivery and prompts."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        prompt_handlers: PromptHandlers | Mapping[str, PromptHandler] | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        s = self.settings

        self.store = ArtifactStore(s.artifact_dir)
        self.registry = ConnectionRegistry(queue_size=s.subscriber_queue_size)
        self.channel = DeliveryChannel(self.registry, lambda: self.guard.last_snapshot)
        self.guard = CaptureGuard(
            store=self.store,
            registry=self.registry,
            channel=self.channel,
            capture_timeout_secs=s.capture_timeout_secs,
            min_capture_interval_secs=s.min_capture_interval_secs,
            max_retained_artifacts=s.max_retained_artifacts,
            use_screenshots=s.use_screenshots,
            screenshot_quality=s.screenshot_quality,
            clock=clock,
        )
        self.prompts = PromptBridge(self.channel, prompt_handlers)

        self.app = create_app(self)
        self.listener = Listener(
            self.app,
            host=s.host,
            port=s.port,
            log_level=s.log_level,
        )

    # ------------------------------ Lifecycle ------------------------------

    @property
    def state(self) -> ServiceState:
        return self.listener.state

    @property
    def public_url(self) -> str:
        """URL observers should open; reflects the bound port once running."""
        if self.settings.public_url:
            return self.settings.public_url
        port = self.listener.bound_port if self.listener.bound_port is not None else self.settings.port
        return f"http://localhost:{port}"

    def is_running(self) -> bool:
        return self.listener.is_running()

    async def start(self) -> Result[str, BindFailure]:
        """Start the HTTP server with WebSocket connections enabled.

        Never raises. Returns ``Ok(public_url)`` or ``Err(BindFailure)``; on
        failure the server stays not running.
        """
        try:
            self.store.ensure_dir()
        except OSError as exc:
            failure = BindFailure(self.settings.host, self.settings.port, f"artifact directory: {exc}")
            logger.error("Live view web server failed to start. %s", failure, exc_info=exc)
            return err(failure)

        result = await self.listener.start()
        if result.is_err():
            logger.error("Live view web server failed to start. %s", result.unwrap_err())
            return err(result.unwrap_err())

        logger.info("Live view web server started (public_url=%s)", self.public_url)
        return result.map(lambda _port: self.public_url)

    async def stop(self) -> None:
        """Stop accepting connections. Existing connections stay open and
        in-flight captures or prompts are not waited for."""
        await self.listener.stop()
        logger.info("Live view web server stopped.")

    async def close(self) -> None:
        """Tear everything down, including established connections."""
        await self.listener.close()
        await self.guard.drain()

    async def run_until_closed(self) -> None:
        """Wait for the listener to exit, then tear down."""
        await self.listener.wait_closed()
        await self.close()

    # ------------------------------- Capture -------------------------------

    @property
    def last_snapshot(self) -> Snapshot | None:
        return self.guard.last_snapshot

    def has_clients(self) -> bool:
        return self.registry.has_observers(snapshot_exists=self.guard.last_snapshot is not None)

    async def serve(self, page: Any) -> Snapshot | None:
        """Capture ``page`` and push it to observers, if admitted right now."""
        return await self.guard.serve(page)

    def screenshot_path(self, index: int) -> Path:
        return self.store.path_for(index)

    # ------------------------------- Delivery ------------------------------

    def send(self, event: str, data: Any = None) -> int:
        return self.channel.send(event, data)

    async def prompt(self, options: Any = None) -> Any:
        """Ask observers a question and wait (without timeout) for the answer."""
        return await self.prompts.ask(options)

    def handle_response(self, response: Any) -> Any:
        return self.prompts.handle_response(response)

    # --------------------------- Connection events -------------------------

    def on_connect(self) -> Observer:
        observer = self.registry.connect()
        if self.settings.push_last_on_connect:
            self.channel.unicast_last(observer)
        return observer

    def on_disconnect(self, observer: Observer, reason: Any = None) -> None:
        self.registry.disconnect(observer, reason)

    def on_inbound_frame(self, observer: Observer, frame: str | bytes) -> None:
        """Decode one WebSocket frame and route it."""
        try:
            envelope = Envelope.model_validate_json(frame)
        except ValidationError:
            logger.debug("Ignoring undecodable frame from client %s: %r", observer.id, frame)
            return
        self.on_inbound_event(observer, envelope.event, envelope.data, envelope.id)

    def on_inbound_event(
        self,
        observer: Observer,
        name: str,
        payload: Any = None,
        request_id: str | None = None,
    ) -> None:
        if name == ANSWER_EVENT:
            logger.debug("promptAnswer from client %s: %r", observer.id, payload)
            self.prompts.handle_answer(payload, request_id)
        elif name == REQUEST_LAST_EVENT:
            self.channel.unicast_last(observer)
        else:
            logger.debug("Ignoring unknown event %r from client %s", name, observer.id)


__all__ = ["LivecastServer"]
