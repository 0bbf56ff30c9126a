"""
Prompt bridge: ask observers a question and wait for the answer.

The automation calls :meth:`PromptBridge.ask` with opaque options (for
example the choices an operator should pick from). The options go out as a
``prompt`` event carrying a fresh request id; the caller then suspends, with
no timeout, until an observer sends back a ``promptAnswer``.

Answer flow
-----------
1. :meth:`PromptBridge.handle_answer` receives the raw inbound payload. Text
   is decoded as JSON when possible; anything else is passed through as-is.
2. The matching pending prompt (by request id, or the oldest one when the
   observer did not echo an id) is resolved with the decoded value.
3. ``ask`` wakes up and dispatches the value through :meth:`handle_response`,
   which calls the handler registered for ``response["action"]``.

Several prompts may be outstanding at once; each is resolved by exactly one
answer. An answer arriving while nothing is pending is logged and dropped.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import uuid
from collections import OrderedDict
from collections.abc import Callable, Mapping
from typing import Any

from livecast.core.contracts import PROMPT_EVENT
from livecast.core.errors import MalformedAnswerPayload, UnhandledPromptAction
from livecast.core.settings import get_logger

from .channel import DeliveryChannel

logger = get_logger("livecast.prompt")

PromptHandler = Callable[[Any], Any]


class PromptHandlers:
    """Registered-handler table mapping an answer's ``action`` to a callable."""

    def __init__(self, handlers: Mapping[str, PromptHandler] | None = None) -> None:
        self._handlers: dict[str, PromptHandler] = {}
        for action, handler in (handlers or {}).items():
            self.register(action, handler)

    def register(self, action: str, handler: PromptHandler) -> None:
        """Register ``handler`` for ``action``, replacing any previous one."""
        if not callable(handler):
            raise TypeError(f"Handler for action {action!r} is not callable")
        self._handlers[action] = handler

    def get(self, action: Any) -> PromptHandler:
        """Return the handler for ``action``.

        Raises
        ------
        UnhandledPromptAction
            When nothing is registered for ``action``.
        """
        if not isinstance(action, str) or action not in self._handlers:
            raise UnhandledPromptAction(action)
        return self._handlers[action]

    def __contains__(self, action: object) -> bool:
        return action in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)


def decode_answer(raw: Any) -> Any:
    """Decode a JSON text answer.

    Raises
    ------
    MalformedAnswerPayload
        When ``raw`` is text but not valid JSON.
    """
    if isinstance(raw, bytes | bytearray):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedAnswerPayload(f"Failed to parse incoming message data: {exc}") from exc


class PromptBridge:
    """Request/response bridge layered on the delivery channel."""

    def __init__(
        self,
        channel: DeliveryChannel,
        handlers: PromptHandlers | Mapping[str, PromptHandler] | None = None,
    ) -> None:
        self._channel = channel
        self.handlers = handlers if isinstance(handlers, PromptHandlers) else PromptHandlers(handlers)
        self._pending: OrderedDict[str, asyncio.Future[Any]] = OrderedDict()

    def pending_count(self) -> int:
        return len(self._pending)

    async def ask(self, options: Any = None) -> Any:
        """Send a ``prompt`` event and wait for its answer.

        The answer is dispatched through :meth:`handle_response` before it is
        returned to the caller.
        """
        request_id = uuid.uuid4().hex[:8]
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            self._channel.send(PROMPT_EVENT, options if options is not None else {}, request_id=request_id)
            logger.debug("Waiting for frontend prompt response (request_id=%s)", request_id)
            response = await future
        finally:
            self._pending.pop(request_id, None)

        logger.debug("Response data (request_id=%s): %r", request_id, response)
        result = self.handle_response(response)
        if inspect.isawaitable(result):
            await result
        return response

    def handle_answer(self, raw: Any, request_id: str | None = None) -> bool:
        """Resolve a pending prompt with an inbound answer.

        Returns
        -------
        bool
            ``True`` if a pending prompt consumed the answer.
        """
        try:
            response = decode_answer(raw)
        except MalformedAnswerPayload as exc:
            logger.debug("%s (raw=%r)", exc, raw)
            response = raw

        future = self._take_pending(request_id)
        if future is None:
            logger.warning("Dropping prompt answer with no pending prompt (request_id=%s)", request_id)
            return False
        future.set_result(response)
        return True

    def handle_response(self, response: Any) -> Any:
        """Call the handler registered for ``response["action"]``.

        An unknown action is logged as a warning and yields ``None``.
        """
        action = response.get("action") if isinstance(response, Mapping) else None
        try:
            handler = self.handlers.get(action)
        except UnhandledPromptAction as exc:
            logger.warning("%s: %r", exc, response)
            return None
        return handler(response)

    def _take_pending(self, request_id: str | None) -> asyncio.Future[Any] | None:
        if request_id is not None:
            future = self._pending.pop(request_id, None)
            if future is not None and not future.done():
                return future
            return None
        while self._pending:
            _, future = self._pending.popitem(last=False)
            if not future.done():
                return future
        return None


__all__ = ["PromptBridge", "PromptHandlers", "PromptHandler", "decode_answer"]
