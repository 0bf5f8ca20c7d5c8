from __future__ import annotations

import logging
from typing import Iterable

from pymongo import ASCENDING
from pymongo.errors import BulkWriteError, PyMongoError

from src.config import settings
from src.database import get_database
from src.exceptions import StorageError
from src.models.review import ConflictPolicy, ReviewRecord

LOGGER = logging.getLogger("review_store")

_DUPLICATE_KEY_CODE = 11000


class MongoReviewStore:
    """Reviews collection keyed by a unique `review_id` index.

    Writes are plain inserts, so a stored review is never overwritten.
    """

    _UNIQUE_INDEX_NAME = "review_id_unique"

    def __init__(self, collection=None) -> None:
        self._collection = collection

    @property
    def collection(self):
        if self._collection is None:
            self._collection = get_database()[settings.reviews_collection]
        return self._collection

    async def ensure_collection(self, *, recreate: bool = False) -> None:
        collection = self.collection
        try:
            if recreate:
                LOGGER.warning("Dropping reviews collection %s before the run", collection.name)
                await collection.drop()
            await collection.create_index(
                [("review_id", ASCENDING)],
                name=self._UNIQUE_INDEX_NAME,
                unique=True,
            )
        except PyMongoError as exc:
            raise StorageError(f"Could not prepare reviews collection: {exc}") from exc
        LOGGER.info("Reviews collection %s ready", collection.name)

    async def existing_ids(self, candidate_ids: Iterable[str]) -> set[str]:
        ids = sorted(set(candidate_ids))
        if not ids:
            return set()

        try:
            cursor = self.collection.find({"review_id": {"$in": ids}}, {"_id": 0, "review_id": 1})
            documents = await cursor.to_list(length=None)
        except PyMongoError as exc:
            raise StorageError(f"Could not look up existing reviews: {exc}") from exc
        return {str(doc["review_id"]) for doc in documents if doc.get("review_id")}

    async def insert_batch(
        self,
        records: list[ReviewRecord],
        conflict_policy: ConflictPolicy = ConflictPolicy.IGNORE_ON_DUPLICATE_KEY,
    ) -> int:
        if not records:
            return 0

        documents = [record.model_dump(mode="python") for record in records]
        try:
            result = await self.collection.insert_many(documents, ordered=False)
        except BulkWriteError as exc:
            return self._resolve_bulk_write_error(exc, conflict_policy)
        except PyMongoError as exc:
            raise StorageError(f"Could not insert reviews: {exc}") from exc
        return len(result.inserted_ids)

    def _resolve_bulk_write_error(self, exc: BulkWriteError, conflict_policy: ConflictPolicy) -> int:
        details = exc.details or {}
        write_errors = details.get("writeErrors", [])
        duplicates = [error for error in write_errors if error.get("code") == _DUPLICATE_KEY_CODE]

        if len(duplicates) != len(write_errors) or details.get("writeConcernErrors"):
            raise StorageError(f"Could not insert reviews: {details}") from exc
        if conflict_policy is not ConflictPolicy.IGNORE_ON_DUPLICATE_KEY:
            raise StorageError(f"{len(duplicates)} reviews already exist in storage.") from exc

        LOGGER.info("Ignored %s reviews already present in storage", len(duplicates))
        return int(details.get("nInserted", 0))
