"""
Listening endpoint lifecycle for the live view.

The listener binds its TCP socket itself before handing it to uvicorn. That
way a port already in use surfaces here as a :class:`BindFailure` value rather
than as uvicorn's own ``sys.exit(1)``, and the host decides whether to retry
or carry on without a live view.

States
------
``STOPPED -> STARTING -> RUNNING -> STOPPED``

- :meth:`Listener.start` binds, serves, and waits for uvicorn's startup.
- :meth:`Listener.stop` closes the listening sockets only. Connections that
  are already established keep running.
- :meth:`Listener.close` shuts uvicorn down completely.
"""

from __future__ import annotations

import asyncio
import contextlib
import socket
from enum import Enum
from typing import Any

import uvicorn

from livecast.core.errors import BindFailure
from livecast.core.result import Result, err, ok
from livecast.core.settings import get_logger

logger = get_logger("livecast.listener")


class ServiceState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


class Listener:
    """Serve an ASGI app on ``host:port`` with an explicit start/stop lifecycle."""

    def __init__(
        self,
        app: Any,
        *,
        host: str = "0.0.0.0",
        port: int = 4321,
        log_level: str = "info",
        startup_timeout_secs: float = 10.0,
    ) -> None:
        self._app = app
        self.host = host
        self.port = port
        self._log_level = log_level.lower()
        self._startup_timeout_secs = startup_timeout_secs
        self._state = ServiceState.STOPPED
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task[None] | None = None
        self._bound_port: int | None = None

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def bound_port(self) -> int | None:
        """The port actually bound (differs from `port` when `port` is 0)."""
        return self._bound_port

    def is_running(self) -> bool:
        return self._state is ServiceState.RUNNING

    async def start(self) -> Result[int, BindFailure]:
        """Bind and start serving. Returns the bound port or the failure."""
        if self._state is ServiceState.RUNNING and self._bound_port is not None:
            return ok(self._bound_port)
        # A listener stopped earlier may still serve old connections.
        await self.close()

        self._state = ServiceState.STARTING
        try:
            sock = self._bind()
        except OSError as exc:
            self._state = ServiceState.STOPPED
            return err(BindFailure(self.host, self.port, str(exc)))

        config = uvicorn.Config(
            self._app,
            log_level=self._log_level,
            log_config=None,
            lifespan="off",
            timeout_graceful_shutdown=1,
        )
        server = uvicorn.Server(config)
        task = asyncio.create_task(server.serve(sockets=[sock]), name="livecast-listener")

        deadline = asyncio.get_running_loop().time() + self._startup_timeout_secs
        while not server.started:
            if task.done() or asyncio.get_running_loop().time() > deadline:
                server.should_exit = True
                with contextlib.suppress(Exception):
                    await task
                sock.close()
                self._state = ServiceState.STOPPED
                return err(BindFailure(self.host, self.port, "server did not start"))
            await asyncio.sleep(0.02)

        self._server = server
        self._task = task
        self._bound_port = sock.getsockname()[1]
        self._state = ServiceState.RUNNING
        return ok(self._bound_port)

    async def stop(self) -> None:
        """Stop accepting connections without touching established ones."""
        if self._server is not None:
            for listening in getattr(self._server, "servers", []):
                listening.close()
        self._state = ServiceState.STOPPED

    async def wait_closed(self) -> None:
        """Block until the server task exits (e.g. on SIGINT)."""
        task = self._task
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def close(self) -> None:
        """Shut the server down, closing established connections too."""
        server, task = self._server, self._task
        self._server = None
        self._task = None
        self._state = ServiceState.STOPPED
        if server is None or task is None:
            return
        server.should_exit = True
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(100)
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return sock


__all__ = ["Listener", "ServiceState"]
