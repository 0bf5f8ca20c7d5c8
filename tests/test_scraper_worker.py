import asyncio
import json
from contextlib import asynccontextmanager

from src.exceptions import NavigationError
from src.models.review import SourceTarget
from src.services.pagination import ReviewPaginator
from src.services.review_gateway import ReviewGateway
from src.workers.scraper_worker import ScraperWorkerPool

ENTITIES_URL = "https://www.google.com/maps/preview/review/listentitiesreviews?pb=!1m2!3sFIRST!5m1"


class StaticFetcher:
    def __init__(self, review_ids: list[str], fail: bool = False, delay_s: float = 0.0) -> None:
        self._body = ")]}'" + json.dumps([None, None, [[[review_id]] for review_id in review_ids], None])
        self._fail = fail
        self._delay_s = delay_s

    async def await_first_matching_response(self, predicate, timeout_ms):
        await asyncio.sleep(self._delay_s)
        if self._fail:
            raise NavigationError("Reviews section not found")
        return ENTITIES_URL, self._body

    async def get(self, url, headers):
        raise AssertionError("single page payloads never paginate")


class RecordingStore:
    def __init__(self) -> None:
        self.rows: dict = {}

    async def existing_ids(self, candidate_ids):
        return {review_id for review_id in candidate_ids if review_id in self.rows}

    async def insert_batch(self, records, conflict_policy):
        for record in records:
            self.rows.setdefault(record.review_id, record)
        return len(records)


def _target(company: str) -> SourceTarget:
    return SourceTarget(company=company, location="Madrid", entry_url=f"https://maps.google.com/?q={company}")


def _pool(fetchers: dict[str, StaticFetcher], store: RecordingStore, concurrency: int = 2, active: list | None = None):
    @asynccontextmanager
    async def open_fetcher(target: SourceTarget):
        if active is not None:
            active.append(target.company)
        yield fetchers[target.company]

    return ScraperWorkerPool(
        open_fetcher=open_fetcher,
        paginator=ReviewPaginator(inter_page_delay_ms=0),
        gateway=ReviewGateway(store),
        concurrency=concurrency,
    )


def test_pool_processes_every_target_once() -> None:
    store = RecordingStore()
    opened: list[str] = []
    fetchers = {name: StaticFetcher([f"{name}-1", f"{name}-2"], delay_s=0.01) for name in ("a", "b", "c", "d", "e")}

    summary = asyncio.run(_pool(fetchers, store, concurrency=3, active=opened).run([_target(n) for n in fetchers]))

    assert sorted(opened) == ["a", "b", "c", "d", "e"]
    assert summary.targets == 5
    assert summary.completed == 5
    assert summary.failed == 0
    assert summary.reviews_collected == 10
    assert summary.reviews_inserted == 10
    assert store.rows["c-2"].company == "c"


def test_failed_target_does_not_stop_others() -> None:
    store = RecordingStore()
    fetchers = {
        "broken": StaticFetcher(["x-1"], fail=True),
        "ok": StaticFetcher(["ok-1"]),
    }

    summary = asyncio.run(_pool(fetchers, store, concurrency=1).run([_target("broken"), _target("ok")]))

    assert summary.failed == 1
    assert summary.completed == 1
    assert set(store.rows) == {"ok-1"}


def test_storage_failure_is_isolated_to_its_target() -> None:
    class FlakyStore(RecordingStore):
        async def insert_batch(self, records, conflict_policy):
            if records[0].company == "bad":
                raise RuntimeError("write failed")
            return await super().insert_batch(records, conflict_policy)

    store = FlakyStore()
    fetchers = {"bad": StaticFetcher(["bad-1"]), "good": StaticFetcher(["good-1"])}

    summary = asyncio.run(_pool(fetchers, store).run([_target("bad"), _target("good")]))

    assert summary.failed == 1
    assert summary.completed == 1
    assert set(store.rows) == {"good-1"}


def test_empty_target_list() -> None:
    summary = asyncio.run(_pool({}, RecordingStore()).run([]))

    assert summary.targets == 0
    assert summary.completed == 0
