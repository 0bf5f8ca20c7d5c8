from __future__ import annotations

import logging
from typing import Iterable, Protocol

from src.models.review import ConflictPolicy, InsertMode, ReviewRecord

LOGGER = logging.getLogger("review_gateway")


class ReviewStore(Protocol):
    async def existing_ids(self, candidate_ids: Iterable[str]) -> set[str]: ...

    async def insert_batch(self, records: list[ReviewRecord], conflict_policy: ConflictPolicy) -> int: ...


class ReviewGateway:
    """Persist scraped reviews exactly once per `review_id`.

    check_then_insert asks storage which ids exist and inserts the rest.
    unconditional inserts everything and lets the unique index reject
    collisions. Either way one batched insert is issued per call and the
    stored row always wins a collision.
    """

    def __init__(
        self,
        store: ReviewStore,
        *,
        mode: InsertMode | str = InsertMode.CHECK_THEN_INSERT,
        conflict_policy: ConflictPolicy = ConflictPolicy.IGNORE_ON_DUPLICATE_KEY,
    ) -> None:
        self._store = store
        self._mode = InsertMode(mode)
        self._conflict_policy = conflict_policy

    @property
    def mode(self) -> InsertMode:
        return self._mode

    async def save(self, records: list[ReviewRecord]) -> int:
        if not records:
            return 0

        if self._mode is InsertMode.UNCONDITIONAL:
            inserted = await self._store.insert_batch(list(records), self._conflict_policy)
            LOGGER.info("Inserted %s of %s reviews", inserted, len(records))
            return inserted

        unique_records = self._first_per_review_id(records)
        existing = await self._store.existing_ids({record.review_id for record in unique_records})
        fresh = [record for record in unique_records if record.review_id not in existing]
        if not fresh:
            LOGGER.info("All %s reviews already exist in database - skipping insert", len(records))
            return 0

        inserted = await self._store.insert_batch(fresh, ConflictPolicy.IGNORE_ON_DUPLICATE_KEY)
        LOGGER.info("Inserted %s new reviews into database", inserted)
        return inserted

    def _first_per_review_id(self, records: list[ReviewRecord]) -> list[ReviewRecord]:
        unique: dict[str, ReviewRecord] = {}
        for record in records:
            unique.setdefault(record.review_id, record)
        return list(unique.values())
