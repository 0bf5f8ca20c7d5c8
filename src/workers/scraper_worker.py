from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from time import monotonic
from typing import Any, Callable, Iterable

from src.config import settings
from src.database import close_mongo_connection, connect_to_mongo
from src.models.review import InsertMode, SourceTarget
from src.scraper.google_maps import GoogleMapsSession
from src.services.pagination import ReviewPaginator, ReviewsFetcher
from src.services.review_gateway import ReviewGateway
from src.services.review_store import MongoReviewStore
from src.services.sources import load_targets

LOGGER = logging.getLogger("scraper_worker")

FetcherFactory = Callable[[SourceTarget], AbstractAsyncContextManager[ReviewsFetcher]]


@dataclass
class RunSummary:
    targets: int = 0
    completed: int = 0
    failed: int = 0
    reviews_collected: int = 0
    reviews_inserted: int = 0
    elapsed_s: float = 0.0


class ScraperWorkerPool:
    """Fixed number of workers draining a shared queue of businesses.

    A failure while processing one business is logged and counted; it never
    stops the other workers. Reviews collected for a failed business are
    discarded.
    """

    def __init__(
        self,
        *,
        open_fetcher: FetcherFactory,
        paginator: ReviewPaginator,
        gateway: ReviewGateway,
        concurrency: int = 4,
    ) -> None:
        self._open_fetcher = open_fetcher
        self._paginator = paginator
        self._gateway = gateway
        self._concurrency = max(1, int(concurrency))

    async def run(self, targets: Iterable[SourceTarget]) -> RunSummary:
        queue: asyncio.Queue[SourceTarget] = asyncio.Queue()
        for target in targets:
            queue.put_nowait(target)

        summary = RunSummary(targets=queue.qsize())
        started = monotonic()
        LOGGER.info("Starting scraping of %s businesses with %s workers", summary.targets, self._concurrency)

        workers = [
            asyncio.create_task(self._worker(queue, summary), name=f"scraper-worker-{idx}")
            for idx in range(min(self._concurrency, max(1, summary.targets)))
        ]
        await asyncio.gather(*workers)

        summary.elapsed_s = round(monotonic() - started, 1)
        return summary

    async def _worker(self, queue: asyncio.Queue[SourceTarget], summary: RunSummary) -> None:
        while True:
            try:
                target = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            await self._process_target(target, summary)

    async def _process_target(self, target: SourceTarget, summary: RunSummary) -> None:
        started = monotonic()
        try:
            async with self._open_fetcher(target) as fetcher:
                records = await self._paginator.collect(target, fetcher)
            inserted = await self._gateway.save(records)
        except Exception:  # noqa: BLE001
            summary.failed += 1
            LOGGER.exception("Failed to scrape %s (%s)", target.company, target.location)
            return

        summary.completed += 1
        summary.reviews_collected += len(records)
        summary.reviews_inserted += inserted
        LOGGER.info(
            "Completed %s (%s): %s reviews, %s new, in %.1fs",
            target.company,
            target.location,
            len(records),
            inserted,
            monotonic() - started,
        )


def log_progress(event: dict[str, Any]) -> None:
    data = event.get("data", {})
    LOGGER.info(
        "%s | page=%s reviews=%s%s",
        data.get("target", ""),
        data.get("page", 0),
        data.get("review_count", 0),
        " COMPLETE" if data.get("done") else "",
    )


async def _main() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    LOGGER.info("%s starting (env=%s)", settings.app_name, settings.app_env)

    targets = load_targets(settings.review_csv_file)
    insert_mode = settings.reviews_insert_mode

    await connect_to_mongo()
    try:
        store = MongoReviewStore()
        await store.ensure_collection(
            recreate=settings.reviews_recreate_on_start and insert_mode is InsertMode.UNCONDITIONAL,
        )

        async with GoogleMapsSession(
            headless=settings.scraper_headless,
            locale=settings.scraper_locale,
            user_agent=settings.scraper_user_agent,
            viewport_width=settings.scraper_viewport_width,
            viewport_height=settings.scraper_viewport_height,
            timeout_ms=settings.scraper_timeout_ms,
            extra_chromium_args=settings.scraper_extra_chromium_args,
        ) as session:
            pool = ScraperWorkerPool(
                open_fetcher=session.open_place,
                paginator=ReviewPaginator(
                    first_payload_timeout_ms=settings.scraper_first_payload_ms,
                    inter_page_delay_ms=settings.scraper_inter_page_delay_ms,
                    referer=settings.scraper_referer,
                    progress_callback=log_progress,
                ),
                gateway=ReviewGateway(store, mode=insert_mode),
                concurrency=settings.scraper_concurrency,
            )
            summary = await pool.run(targets)
    finally:
        await close_mongo_connection()

    LOGGER.info(
        "Processed %s businesses in %.1fs: completed=%s failed=%s reviews=%s new=%s",
        summary.targets,
        summary.elapsed_s,
        summary.completed,
        summary.failed,
        summary.reviews_collected,
        summary.reviews_inserted,
    )


if __name__ == "__main__":
    asyncio.run(_main())
