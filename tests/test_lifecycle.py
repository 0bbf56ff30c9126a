"""
End-to-end lifecycle tests against a real listener on 127.0.0.1.

Scenarios
---------
1. **Start**: port 0 binds an ephemeral port; `start()` returns `Ok(url)`.
2. **Bind failure**: a port already in use yields `Err(BindFailure)`.
3. **Stop**: new connections are refused, established ones keep working.
4. **Prompt round trip**: a real WebSocket client answers a prompt.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest
import websockets

from livecast.core.errors import BindFailure
from livecast.core.settings import Settings
from livecast.live import LivecastServer


class StaticPage:
    async def current_url(self) -> str:
        return "https://example.com/checkout"

    async def current_markup(self) -> str:
        return "<html><body>checkout</body></html>"

    async def capture_screenshot(self, quality: int) -> bytes:
        return b"\xff\xd8jpeg"


def _server(tmp_path: Path, **overrides: Any) -> LivecastServer:
    handlers = overrides.pop("prompt_handlers", None)
    options: dict[str, Any] = {"host": "127.0.0.1", "port": 0, "artifact_dir": tmp_path}
    options.update(overrides)
    return LivecastServer(Settings(_env_file=None, **options), prompt_handlers=handlers)


async def _wait_for_observers(live: LivecastServer, count: int) -> None:
    for _ in range(200):
        if live.registry.count == count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"expected {count} observers, have {live.registry.count}")


def test_start_binds_and_reports_url(tmp_path: Path) -> None:
    """`start()` returns the public URL with the bound port filled in."""

    async def scenario() -> None:
        live = _server(tmp_path / "shots")
        assert live.is_running() is False
        result = await live.start()
        try:
            assert result.is_ok()
            port = live.listener.bound_port
            assert port is not None and port > 0
            assert result.unwrap() == f"http://localhost:{port}"
            assert live.is_running() is True
            assert (tmp_path / "shots").is_dir()
            # Starting twice is a no-op.
            assert (await live.start()).is_ok()
            assert live.listener.bound_port == port
        finally:
            await live.close()
        assert live.is_running() is False

    asyncio.run(scenario())


def test_port_in_use_is_reported_as_value(tmp_path: Path) -> None:
    """A second server on a taken port gets `Err(BindFailure)` and stays stopped."""

    async def scenario() -> None:
        first = _server(tmp_path)
        assert (await first.start()).is_ok()
        try:
            second = _server(tmp_path, port=first.listener.bound_port)
            result = await second.start()
            assert result.is_err()
            failure = result.unwrap_err()
            assert isinstance(failure, BindFailure)
            assert failure.port == first.listener.bound_port
            assert second.is_running() is False
        finally:
            await first.close()

    asyncio.run(scenario())


def test_unusable_artifact_dir_fails_start(tmp_path: Path) -> None:
    """A file where the artifact directory should be is a start failure."""
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")

    async def scenario() -> None:
        live = _server(blocker / "shots")
        result = await live.start()
        assert result.is_err()
        assert live.is_running() is False

    asyncio.run(scenario())


def test_stop_keeps_established_connections(tmp_path: Path) -> None:
    """After `stop()` old sockets still work but new ones are refused."""

    async def scenario() -> None:
        live = _server(tmp_path)
        assert (await live.start()).is_ok()
        url = f"ws://127.0.0.1:{live.listener.bound_port}/ws"
        try:
            await live.serve(StaticPage())
            async with websockets.connect(url) as ws:
                await _wait_for_observers(live, 1)
                await live.stop()
                assert live.is_running() is False

                await ws.send(json.dumps({"event": "getLastSnapshot"}))
                frame = json.loads(await asyncio.wait_for(ws.recv(), timeout=5))
                assert frame["event"] == "snapshot"

                with pytest.raises(OSError):
                    async with websockets.connect(url, open_timeout=2):
                        pass
        finally:
            await live.close()

    asyncio.run(scenario())


def test_prompt_round_trip_over_websocket(tmp_path: Path) -> None:
    """The host's prompt reaches the browser and the answer comes back."""
    seen: list[Any] = []

    async def scenario() -> Any:
        live = _server(tmp_path, prompt_handlers={"continue": seen.append})
        assert (await live.start()).is_ok()
        url = f"ws://127.0.0.1:{live.listener.bound_port}/ws"
        try:
            async with websockets.connect(url) as ws:
                await _wait_for_observers(live, 1)
                ask = asyncio.create_task(live.prompt({"question": "Continue?"}))

                prompt = json.loads(await asyncio.wait_for(ws.recv(), timeout=5))
                assert prompt["event"] == "prompt"
                assert prompt["data"] == {"question": "Continue?"}

                answer = json.dumps({"action": "continue", "value": True})
                await ws.send(
                    json.dumps({"event": "promptAnswer", "data": answer, "id": prompt["id"]})
                )
                response = await asyncio.wait_for(ask, timeout=5)

                snap = await live.serve(StaticPage())
                assert snap is not None
                pushed = json.loads(await asyncio.wait_for(ws.recv(), timeout=5))
                assert pushed == {"event": "snapshot", "data": snap.to_payload()}
            await _wait_for_observers(live, 0)
            return response
        finally:
            await live.close()

    assert asyncio.run(scenario()) == {"action": "continue", "value": True}
    assert seen == [{"action": "continue", "value": True}]


def test_public_url_prefers_configured_value(tmp_path: Path) -> None:
    """An explicit public URL is advertised as-is; otherwise localhost and the port."""
    configured = _server(tmp_path, public_url="https://live.example.com", port=9000)
    assert configured.public_url == "https://live.example.com"

    derived = _server(tmp_path, port=9000)
    assert derived.public_url == "http://localhost:9000"
