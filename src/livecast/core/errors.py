"""Error taxonomy for the live view.

None of these is allowed to reach the automation that drives
:meth:`~livecast.live.server.LivecastServer.serve`: capture errors are logged
at the guard boundary, delete failures are logged by the store, bind failures
come back as a :class:`~livecast.core.result.Result`, and prompt errors are
logged by the bridge.
"""

from __future__ import annotations


class LivecastError(Exception):
    """Base class for every error raised inside Livecast."""


class CaptureTimeout(LivecastError):
    """A capture did not finish within the configured timeout."""

    def __init__(self, timeout_secs: float) -> None:
        super().__init__(f"Serving of live view timed out after {timeout_secs:g}s.")
        self.timeout_secs = timeout_secs


class CaptureFailure(LivecastError):
    """Reading the page or persisting its screenshot failed."""


class ArtifactWriteFailure(CaptureFailure):
    """A screenshot could not be written to the artifact directory."""

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"Cannot write live view screenshot {index}: {reason}")
        self.index = index


class ArtifactDeleteFailure(LivecastError):
    """A retired screenshot could not be removed. Only disk usage is affected."""

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"Cannot delete live view screenshot {index}: {reason}")
        self.index = index


class BindFailure(LivecastError):
    """The listener could not bind its host/port."""

    def __init__(self, host: str, port: int, reason: str) -> None:
        super().__init__(f"Live view web server failed to start on {host}:{port}: {reason}")
        self.host = host
        self.port = port


class UnhandledPromptAction(LivecastError, KeyError):
    """No handler is registered for the action named in a prompt answer."""

    def __init__(self, action: object) -> None:
        super().__init__(f"No handler for response action {action!r}")
        self.action = action

    def __str__(self) -> str:
        return str(self.args[0])


class MalformedAnswerPayload(LivecastError, ValueError):
    """An inbound prompt answer was not valid JSON."""


__all__ = [
    "LivecastError",
    "CaptureTimeout",
    "CaptureFailure",
    "ArtifactWriteFailure",
    "ArtifactDeleteFailure",
    "BindFailure",
    "UnhandledPromptAction",
    "MalformedAnswerPayload",
]
