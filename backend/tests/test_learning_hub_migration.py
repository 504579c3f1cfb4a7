"""Tests for the one-shot transfer of staged learning hub data."""

import httpx
import pytest

from axori.learning_hub.migration import migrate_to_database

from fakes import FakeTransfer


@pytest.mark.migration
@pytest.mark.asyncio
class TestMigrateToDatabase:

    async def test_transfers_every_record(self, seeded_store, transfer):
        result = await migrate_to_database(seeded_store, transfer)

        assert result.success is True
        assert result.migrated_counts == {"term": 1, "bookmark": 1, "path": 1}
        assert result.errors == 0
        assert await seeded_store.is_migration_complete() is True

    async def test_record_payloads(self, seeded_store, transfer):
        await migrate_to_database(seeded_store, transfer)

        term, path = transfer.progress_calls
        assert term == ("term", "cap-rate", "viewed", None)
        assert path[:3] == ("path", "first-rental", "completed")
        assert path[3]["completedLessons"] == ["intro"]
        assert {"startedAt", "lastActivityAt"} <= set(path[3])
        assert transfer.bookmark_calls == [("article", "brrrr-method")]

    async def test_unfinished_path_sent_in_progress(self, staging_store, transfer):
        await staging_store.record_lesson_completed("first-rental", "intro", total_lessons=3)

        await migrate_to_database(staging_store, transfer)

        assert transfer.progress_calls[0][2] == "in_progress"

    async def test_already_migrated_is_noop(self, seeded_store, transfer):
        await seeded_store.mark_migration_complete()

        result = await migrate_to_database(seeded_store, transfer)

        assert result.success is True
        assert result.migrated_counts == {"term": 0, "bookmark": 0, "path": 0}
        assert transfer.call_count == 0

    async def test_nothing_staged_marks_complete(self, staging_store, transfer):
        result = await migrate_to_database(staging_store, transfer)

        assert result.success is True
        assert await staging_store.is_migration_complete() is True

    async def test_partial_failure_leaves_marker_unset(self, seeded_store):
        transfer = FakeTransfer(fail_slugs={"brrrr-method"})

        result = await migrate_to_database(seeded_store, transfer)

        assert result.success is False
        assert result.errors == 1
        assert result.migrated_counts == {"term": 1, "bookmark": 0, "path": 1}
        assert await seeded_store.is_migration_complete() is False
        assert await seeded_store.has_local_data() is True

    async def test_retry_after_partial_failure(self, seeded_store):
        await migrate_to_database(seeded_store, FakeTransfer(fail_slugs={"cap-rate"}))

        retry = FakeTransfer()
        result = await migrate_to_database(seeded_store, retry)

        assert result.success is True
        assert retry.call_count == 3
        assert await seeded_store.is_migration_complete() is True

    async def test_transport_errors_counted(self, seeded_store):
        transfer = FakeTransfer(error=httpx.ConnectError("refused"))

        result = await migrate_to_database(seeded_store, transfer)

        assert result.success is False
        assert result.errors == 3

    async def test_unexpected_errors_propagate(self, seeded_store):
        transfer = FakeTransfer(error=RuntimeError("bug"))

        with pytest.raises(RuntimeError):
            await migrate_to_database(seeded_store, transfer)
        assert await seeded_store.is_migration_complete() is False
