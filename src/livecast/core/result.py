"""Outcome values for operations whose failure the caller must decide on.

:meth:`livecast.live.server.LivecastServer.start` reports a port that cannot
be bound as ``Err(BindFailure)`` instead of raising, so the host can retry on
another port or carry on without a live view.

Example
-------
>>> from livecast.core.result import ok, err
>>> ok(4321).map(lambda port: f"http://localhost:{port}").unwrap()
'http://localhost:4321'
>>> err("port in use").unwrap(default="offline")
'offline'
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """The operation succeeded with ``value``."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self, default: Any = None) -> T:
        return self.value

    def unwrap_err(self) -> Any:
        raise RuntimeError(f"No error to unwrap from {self!r}")

    def map(self, fn: Callable[[T], Any]) -> Ok[Any]:
        return Ok(fn(self.value))

    def map_err(self, fn: Callable[[Any], Any]) -> Ok[T]:
        return self


@dataclass(frozen=True)
class Err(Generic[E]):
    """The operation failed with ``error``; nothing was raised."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self, default: Any = None) -> Any:
        """Return ``default``, or raise RuntimeError when none is given."""
        if default is None:
            raise RuntimeError(f"Unwrapped a failed result: {self.error!r}")
        return default

    def unwrap_err(self) -> E:
        return self.error

    def map(self, fn: Callable[[Any], Any]) -> Err[E]:
        return self

    def map_err(self, fn: Callable[[E], Any]) -> Err[Any]:
        return Err(fn(self.error))


Result: TypeAlias = Ok[T] | Err[E]


def ok(value: T) -> Ok[T]:
    return Ok(value)


def err(error: E) -> Err[E]:
    return Err(error)


__all__ = ["Result", "Ok", "Err", "ok", "err"]
