import asyncio

import pytest

from src.exceptions import NavigationError
from src.scraper.google_maps import PlaceReviewsFetcher

REVIEWS_URL = "https://www.google.com/maps/rpc/listugcposts?pb=!2sFIRST"


class FakeResponse:
    def __init__(self, url: str, body: str = ")]}'[]") -> None:
        self.url = url
        self._body = body

    async def text(self) -> str:
        return self._body


class FakePage:
    def __init__(self) -> None:
        self.handlers: dict[str, list] = {}
        self.visited: list[str] = []

    def on(self, event, handler) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def remove_listener(self, event, handler) -> None:
        self.handlers[event].remove(handler)

    def emit(self, response: FakeResponse) -> None:
        for handler in list(self.handlers.get("response", [])):
            handler(response)

    async def goto(self, url, wait_until=None) -> None:
        self.visited.append(url)


class SlowPaneFetcher(PlaceReviewsFetcher):
    """Opening the reviews pane takes `pane_s`; the reviews request follows the click."""

    def __init__(self, page: FakePage, *, pane_s: float, respond: bool = True) -> None:
        super().__init__(page, request=None, entry_url="https://maps.google.com/?cid=1")
        self._fake_page = page
        self._pane_s = pane_s
        self._respond = respond

    async def _dismiss_cookies(self) -> None:
        self._fake_page.emit(FakeResponse("https://www.google.com/maps/vt?pb=tiles"))

    async def _open_reviews_pane(self) -> None:
        await asyncio.sleep(self._pane_s)
        if self._respond:
            asyncio.get_running_loop().call_later(0.01, self._fake_page.emit, FakeResponse(REVIEWS_URL, "body"))


def _is_reviews(url: str) -> bool:
    return "listugcposts" in url


def test_first_payload_timeout_starts_after_reviews_pane_opens() -> None:
    page = FakePage()
    fetcher = SlowPaneFetcher(page, pane_s=0.2)

    url, body = asyncio.run(fetcher.await_first_matching_response(_is_reviews, timeout_ms=100))

    assert url == REVIEWS_URL
    assert body == "body"
    assert page.visited == ["https://maps.google.com/?cid=1"]
    assert page.handlers["response"] == []


def test_missing_reviews_payload_raises_navigation_error() -> None:
    page = FakePage()
    fetcher = SlowPaneFetcher(page, pane_s=0.0, respond=False)

    with pytest.raises(NavigationError):
        asyncio.run(fetcher.await_first_matching_response(_is_reviews, timeout_ms=50))
    assert page.handlers["response"] == []
