"""
FastAPI application for the live view.

This module builds the ASGI app served by :class:`~livecast.api.listener.Listener`.
It is responsible for:
1.  **State**: Attaching the owning :class:`~livecast.live.server.LivecastServer`
    to ``app.state.livecast`` so routes can reach the capture core.
2.  **CORS**: Screenshot URLs are fetched by observer pages on other origins.
3.  **Exception Handling**: A catch-all handler so unexpected errors return
    structured JSON and are logged.
4.  **Routing**: Mounting the observer router (``/ws``, ``/screenshot/{index}``)
    and a ``/health`` probe.

Design Pattern
--------------
Application Factory (`create_app`): each `LivecastServer` gets its own app,
which keeps tests isolated from one another.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from livecast import __version__
from livecast.api.routers import live
from livecast.core.settings import get_logger

if TYPE_CHECKING:
    from livecast.live.server import LivecastServer

logger = get_logger("livecast.api")


def create_app(livecast: LivecastServer) -> FastAPI:
    """
    Construct the FastAPI application bound to ``livecast``.

    Returns
    -------
    FastAPI
        The configured ASGI application.
    """
    app = FastAPI(
        title="Livecast",
        description="Live view of an automated page (snapshots over WebSocket)",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )
    app.state.livecast = livecast

    # Observer pages are usually served from another origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(livecast.settings.cors_origins),
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Return structured JSON instead of a bare 500 page."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc),
                "path": request.url.path,
            },
        )

    app.include_router(live.router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, Any]:
        """Liveness probe with the observer count."""
        return {
            "status": "ok",
            "version": __version__,
            "running": livecast.is_running(),
            "observers": livecast.registry.count,
        }

    return app


__all__ = ["create_app"]
