"""One-shot transfer of staged learning hub data to the database.

Each staged record is sent on its own; a failed record is counted and
the rest continue.  The completion marker is written only when every
record made it (or there was nothing to send), so a partial failure is
retried on the next run while already-sent records are upserted again
harmlessly.
"""

import logging
from typing import Protocol

import httpx

from axori.clients.base import ApiError
from axori.learning_hub.staging import StagingStore
from axori.schemas.learning_hub import (
    Bookmark,
    MigrationResult,
    PathProgress,
    ProgressStatus,
    StagedRecord,
    ViewedTerm,
)

logger = logging.getLogger(__name__)


class LearningHubTransfer(Protocol):
    async def save_progress(
        self,
        content_type: str,
        content_slug: str,
        status: ProgressStatus = "viewed",
        progress_data: dict | None = None,
    ) -> None:
        ...

    async def save_bookmark(self, content_type: str, content_slug: str) -> None:
        ...


async def _transfer_record(transfer: LearningHubTransfer, record: StagedRecord) -> str:
    """Send one record; returns the record kind."""
    if isinstance(record, ViewedTerm):
        await transfer.save_progress("term", record.slug, "viewed")
    elif isinstance(record, Bookmark):
        await transfer.save_bookmark(record.content_type, record.slug)
    elif isinstance(record, PathProgress):
        status: ProgressStatus = "completed" if record.completed_at else "in_progress"
        await transfer.save_progress(
            "path",
            record.path_slug,
            status,
            {
                "completedLessons": record.completed_lessons,
                "startedAt": record.started_at.isoformat(),
                "lastActivityAt": record.last_activity_at.isoformat(),
            },
        )
    else:
        raise TypeError(f"Unknown staged record: {record!r}")
    return record.kind


async def migrate_to_database(
    store: StagingStore, transfer: LearningHubTransfer
) -> MigrationResult:
    """Send every staged record through `transfer` and report counts."""
    if await store.is_migration_complete():
        return MigrationResult(success=True)

    records = await store.staged_records()
    counts = {"term": 0, "bookmark": 0, "path": 0}
    errors = 0

    for record in records:
        try:
            kind = await _transfer_record(transfer, record)
        except (ApiError, httpx.HTTPError):
            logger.error(
                "Failed to migrate %s record for %s",
                record.kind,
                store.account_id,
                exc_info=True,
            )
            errors += 1
        else:
            counts[kind] += 1

    if errors == 0 or not records:
        await store.mark_migration_complete()

    result = MigrationResult(
        success=errors == 0,
        migrated_terms=counts["term"],
        migrated_bookmarks=counts["bookmark"],
        migrated_paths=counts["path"],
        errors=errors,
    )
    logger.info(
        "Learning hub migration for %s: %s",
        store.account_id,
        result.model_dump(),
    )
    return result
