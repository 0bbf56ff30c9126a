"""Page handle protocol consumed by the capture guard.

The guard needs three things from the automated page: its URL, its markup and
(optionally) a JPEG screenshot. :class:`PageHandle` names them;
:class:`PlaywrightPage` adapts a Playwright-style ``Page`` object, which
exposes ``page.url``, ``await page.content()`` and
``await page.screenshot(type="jpeg", quality=...)``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class PageHandle(Protocol):
    """What a capture reads from the page. All methods may be slow or hang."""

    async def current_url(self) -> str: ...

    async def current_markup(self) -> str: ...

    async def capture_screenshot(self, quality: int) -> bytes: ...


class PlaywrightPage:
    """Adapt a Playwright-style page to :class:`PageHandle`."""

    def __init__(self, page: Any) -> None:
        self._page = page

    async def current_url(self) -> str:
        return str(self._page.url)

    async def current_markup(self) -> str:
        return str(await self._page.content())

    async def capture_screenshot(self, quality: int) -> bytes:
        return bytes(await self._page.screenshot(type="jpeg", quality=quality))


def as_page_handle(page: Any) -> PageHandle:
    """Return ``page`` if it already is a :class:`PageHandle`, else wrap it."""
    if isinstance(page, PageHandle):
        return page
    return PlaywrightPage(page)


__all__ = ["PageHandle", "PlaywrightPage", "as_page_handle"]
