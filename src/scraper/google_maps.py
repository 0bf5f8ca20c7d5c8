from __future__ import annotations

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable

from playwright.async_api import (
    APIRequestContext,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Locator,
    Page,
    Playwright,
    Response,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from src.exceptions import NavigationError
from src.models.review import SourceTarget
from src.scraper.selectors import CONSENT_TEXT_TERMS, SELECTOR_PATTERNS

LOGGER = logging.getLogger("google_maps")


class GoogleMapsSession:
    """One browser context shared by every worker.

    Each target gets its own page through `open_place`, while follow-up
    review pages go through the context's API request client so they reuse
    the browser cookies.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        locale: str = "en-US",
        user_agent: str | None = None,
        viewport_width: int = 1440,
        viewport_height: int = 900,
        timeout_ms: int = 30000,
        extra_chromium_args: list[str] | None = None,
    ) -> None:
        self._headless = headless
        self._locale = locale
        self._user_agent = user_agent
        self._viewport = {"width": viewport_width, "height": viewport_height}
        self._timeout_ms = timeout_ms
        self._extra_chromium_args = list(extra_chromium_args or [])

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    async def __aenter__(self) -> GoogleMapsSession:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.close()

    async def start(self) -> BrowserContext:
        if self._context is not None:
            return self._context

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._headless,
            args=["--disable-blink-features=AutomationControlled", *self._extra_chromium_args],
        )
        context_options: dict[str, Any] = {
            "locale": self._locale,
            "viewport": self._viewport,
        }
        if self._user_agent:
            context_options["user_agent"] = self._user_agent

        self._context = await self._browser.new_context(**context_options)
        self._context.set_default_timeout(self._timeout_ms)
        LOGGER.info("Browser launched (%s)", "headless" if self._headless else "visible")
        return self._context

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()

        self._context = None
        self._browser = None
        self._playwright = None

    @asynccontextmanager
    async def open_place(self, target: SourceTarget) -> AsyncIterator[PlaceReviewsFetcher]:
        context = self._require_context()
        page = await context.new_page()
        try:
            yield PlaceReviewsFetcher(page, context.request, entry_url=target.entry_url)
        finally:
            await page.close()

    def _require_context(self) -> BrowserContext:
        if self._context is None:
            raise RuntimeError("Browser context is not started. Call start() first.")
        return self._context


class PlaceReviewsFetcher:
    """Drives one place page until Google Maps requests its first reviews page."""

    def __init__(self, page: Page, request: APIRequestContext, *, entry_url: str) -> None:
        self._page = page
        self._request = request
        self._entry_url = entry_url

    async def await_first_matching_response(
        self,
        predicate: Callable[[str], bool],
        timeout_ms: int,
    ) -> tuple[str, str]:
        first_response: asyncio.Future[Response] = asyncio.get_running_loop().create_future()

        def _on_response(response: Response) -> None:
            if not first_response.done() and predicate(response.url):
                first_response.set_result(response)

        # Listen from the start so an early request is not missed; the
        # timeout only counts from the reviews click.
        self._page.on("response", _on_response)
        try:
            await self._page.goto(self._entry_url, wait_until="domcontentloaded")
            await self._dismiss_cookies()
            await self._open_reviews_pane()
            try:
                response = await asyncio.wait_for(first_response, timeout=timeout_ms / 1000)
            except asyncio.TimeoutError as exc:
                raise NavigationError(f"No reviews payload within {timeout_ms}ms for {self._entry_url}") from exc
            return response.url, await response.text()
        except PlaywrightError as exc:
            raise NavigationError(f"Navigation failed for {self._entry_url}: {exc}") from exc
        finally:
            self._page.remove_listener("response", _on_response)

    async def get(self, url: str, headers: dict[str, str]) -> tuple[int, str]:
        response = await self._request.get(url, headers=headers)
        try:
            return response.status, await response.text()
        finally:
            await response.dispose()

    async def _dismiss_cookies(self) -> None:
        button = await self._first_optional_visible_from_patterns("CONSENT_BUTTON", timeout_ms=1500)
        if button is None:
            button = await self._first_visible_by_text(CONSENT_TEXT_TERMS)
        if button is None:
            return

        LOGGER.info("Dismissing cookie consent dialog")
        try:
            await button.click()
        except PlaywrightError:
            LOGGER.warning("Failed to dismiss cookie dialog")

    async def _open_reviews_pane(self) -> None:
        button = await self._first_optional_visible_from_patterns("REVIEWS_ENTRYPOINT", timeout_ms=3000)
        if button is None:
            raise NavigationError("Reviews section not found - page structure may have changed")

        try:
            await button.click()
        except PlaywrightError:
            LOGGER.warning("Failed to click reviews button, but continuing anyway")

    async def _first_optional_visible_from_patterns(self, key: str, timeout_ms: int = 1200) -> Locator | None:
        for selector in SELECTOR_PATTERNS[key]:
            locator = self._page.locator(selector).first
            try:
                await locator.wait_for(state="visible", timeout=timeout_ms)
                return locator
            except PlaywrightTimeoutError:
                continue

        return None

    async def _first_visible_by_text(self, terms: tuple[str, ...]) -> Locator | None:
        regex = re.compile("|".join(re.escape(term) for term in terms), re.IGNORECASE)
        candidates = self._page.get_by_role("button", name=regex)
        try:
            total = await candidates.count()
        except PlaywrightError:
            return None

        for idx in range(min(total, 6)):
            candidate = candidates.nth(idx)
            try:
                if await candidate.is_visible():
                    return candidate
            except PlaywrightError:
                continue

        return None
