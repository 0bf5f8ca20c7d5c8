from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Protocol

from src.models.review import EndpointFlavor, ReviewRecord, SourceTarget
from src.pipeline.payload_parser import ReviewPayloadParser
from src.scraper.token_codec import rewrite_token

LOGGER = logging.getLogger("pagination")

ENTITIES_ENDPOINT_MARKER = "listentitiesreviews"
UGC_ENDPOINT_MARKER = "listugcposts"

ProgressCallback = Callable[[dict[str, Any]], Awaitable[None] | None]


class ReviewsFetcher(Protocol):
    async def await_first_matching_response(
        self,
        predicate: Callable[[str], bool],
        timeout_ms: int,
    ) -> tuple[str, str]: ...

    async def get(self, url: str, headers: dict[str, str]) -> tuple[int, str]: ...


def is_reviews_endpoint(url: str) -> bool:
    return ENTITIES_ENDPOINT_MARKER in url or UGC_ENDPOINT_MARKER in url


def detect_flavor(url: str) -> EndpointFlavor:
    if UGC_ENDPOINT_MARKER in url:
        return EndpointFlavor.UGC
    return EndpointFlavor.ENTITIES


class ReviewPaginator:
    def __init__(
        self,
        *,
        parser: ReviewPayloadParser | None = None,
        first_payload_timeout_ms: int = 12000,
        inter_page_delay_ms: int = 350,
        referer: str = "https://www.google.com/",
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self._parser = parser or ReviewPayloadParser()
        self._first_payload_timeout_ms = max(1, first_payload_timeout_ms)
        self._inter_page_delay_ms = max(0, inter_page_delay_ms)
        self._referer = referer
        self._progress_callback = progress_callback

    async def collect(self, target: SourceTarget, fetcher: ReviewsFetcher) -> list[ReviewRecord]:
        """Fetch every reviews page for `target` and return the enriched records.

        Pages are requested strictly one after another since each request
        embeds the token parsed from the previous page. A non-200 page ends
        pagination normally; any exception is left to the caller.
        """
        base_url, first_body = await fetcher.await_first_matching_response(
            is_reviews_endpoint,
            self._first_payload_timeout_ms,
        )
        flavor = detect_flavor(base_url)
        LOGGER.info("First reviews payload for %s via %s endpoint", target.label, flavor.value)

        parsed = self._parser.parse(first_body, flavor)
        records = [record.for_target(target) for record in parsed.records]
        token = parsed.next_token
        page_no = 1
        last_url = base_url
        await self._emit_progress(target, page_no, len(records), done=False)

        while token:
            next_url = rewrite_token(base_url, token, flavor)
            if next_url == last_url:
                LOGGER.warning("Page token could not be applied for %s - stopping pagination", target.label)
                break

            status, body = await fetcher.get(next_url, {"referer": self._referer})
            last_url = next_url
            if status != 200:
                LOGGER.warning("Received status %s for %s - stopping pagination", status, target.label)
                break

            page_no += 1
            parsed = self._parser.parse(body, flavor)
            records.extend(record.for_target(target) for record in parsed.records)
            token = parsed.next_token
            await self._emit_progress(target, page_no, len(records), done=False)
            await asyncio.sleep(self._inter_page_delay_ms / 1000)

        await self._emit_progress(target, page_no, len(records), done=True)
        return records

    async def _emit_progress(self, target: SourceTarget, page_no: int, review_count: int, *, done: bool) -> None:
        if self._progress_callback is None:
            return
        payload = {
            "stage": "pagination_completed" if done else "pagination_progress",
            "message": "Pagination finished." if done else "Reviews page processed.",
            "data": {
                "target": target.label,
                "page": page_no,
                "review_count": review_count,
                "done": done,
            },
            "created_at": datetime.now(timezone.utc),
        }
        try:
            maybe_awaitable = self._progress_callback(payload)
            if asyncio.iscoroutine(maybe_awaitable):
                await maybe_awaitable
        except Exception:
            # Progress callback errors must not affect core flow.
            LOGGER.debug("Progress callback failed for %s", target.label, exc_info=True)
