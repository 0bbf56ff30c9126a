"""Live view core: capture guard, delivery channel, prompt bridge, registry.

:class:`~livecast.live.server.LivecastServer` wires them together.
"""

from __future__ import annotations

from .channel import DeliveryChannel
from .guard import CaptureGuard
from .page import PageHandle, PlaywrightPage
from .prompt import PromptBridge, PromptHandlers
from .registry import ConnectionRegistry, Observer
from .server import LivecastServer

__all__ = [
    "LivecastServer",
    "CaptureGuard",
    "DeliveryChannel",
    "PromptBridge",
    "PromptHandlers",
    "ConnectionRegistry",
    "Observer",
    "PageHandle",
    "PlaywrightPage",
]
