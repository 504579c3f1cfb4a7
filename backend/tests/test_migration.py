"""Learning hub migration controller tests."""

import asyncio

import pytest

from axori.learning_hub.migration import migrate_to_database
from axori.middleware.exceptions import MigrationError, UnauthenticatedError
from axori.services.migration import MigrationController, MigrationStatus

from fakes import FakeTransfer


def make_controller(store, transfer, signed_in=True, **kwargs) -> MigrationController:
    controller = MigrationController(store, transfer, **kwargs)
    controller.is_signed_in = signed_in
    return controller


@pytest.mark.migration
@pytest.mark.asyncio
class TestMigrate:

    async def test_requires_sign_in(self, seeded_store, transfer):
        controller = make_controller(seeded_store, transfer, signed_in=False)

        await controller.migrate()

        assert isinstance(controller.error, UnauthenticatedError)
        assert controller.is_complete is False
        assert transfer.call_count == 0

    async def test_successful_run(self, seeded_store, transfer):
        controller = make_controller(seeded_store, transfer)

        await controller.migrate()

        assert controller.is_complete is True
        assert controller.is_migrating is False
        assert controller.error is None
        assert controller.result.migrated_counts == {"term": 1, "bookmark": 1, "path": 1}
        assert await seeded_store.is_migration_complete() is True

    async def test_runs_at_most_once(self, seeded_store, transfer):
        controller = make_controller(seeded_store, transfer)

        await controller.migrate()
        await controller.migrate()

        assert transfer.call_count == 3

    async def test_marker_short_circuits_before_reading_data(self, seeded_store, transfer, monkeypatch):
        await seeded_store.mark_migration_complete()
        calls = []

        async def migrate_fn(store, t):
            calls.append(store)
            return await migrate_to_database(store, t)

        controller = make_controller(seeded_store, transfer, migrate_fn=migrate_fn)
        has_data_calls = []

        async def spy_has_local_data():
            has_data_calls.append(True)
            return True

        monkeypatch.setattr(seeded_store, "has_local_data", spy_has_local_data)
        await controller.migrate()

        assert controller.is_complete is True
        assert controller.result is None
        assert calls == []
        assert has_data_calls == []

    async def test_nothing_staged_completes_without_transfer(self, staging_store, transfer):
        controller = make_controller(staging_store, transfer)

        await controller.migrate()

        assert controller.is_complete is True
        assert transfer.call_count == 0

    async def test_partial_failure_is_retryable(self, seeded_store):
        transfer = FakeTransfer(fail_slugs={"cap-rate"})
        controller = make_controller(seeded_store, transfer)

        await controller.migrate()
        assert controller.is_complete is False
        assert controller.result.errors == 1

        transfer.fail_slugs.clear()
        await controller.migrate()
        assert controller.is_complete is True
        assert controller.result.success is True

    async def test_migrate_failure_recorded(self, seeded_store, transfer):
        async def broken(store, t):
            raise RuntimeError("database unreachable")

        controller = make_controller(seeded_store, transfer, migrate_fn=broken)
        await controller.migrate()

        assert isinstance(controller.error, MigrationError)
        assert isinstance(controller.error.__cause__, RuntimeError)
        assert controller.error.error_code == "MIGRATION_FAILED"
        assert controller.is_migrating is False
        assert controller.is_complete is False
        assert await seeded_store.has_local_data() is True
        assert await seeded_store.is_migration_complete() is False

    async def test_store_failure_recorded(self, seeded_store, transfer, fake_redis):
        controller = make_controller(seeded_store, transfer)
        fake_redis.fail = True

        await controller.migrate()

        assert isinstance(controller.error, MigrationError)
        assert controller.is_complete is False

    async def test_is_migrating_while_running(self, seeded_store, transfer):
        seen = []

        async def spying_migrate(store, t):
            seen.append(controller.is_migrating)
            return await migrate_to_database(store, t)

        controller = make_controller(seeded_store, transfer, migrate_fn=spying_migrate)
        await controller.migrate()

        assert seen == [True]
        assert controller.is_migrating is False

    async def test_overlapping_calls_ignored(self, seeded_store, transfer):
        calls = 0

        async def slow(store, t):
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)
            return await migrate_to_database(store, t)

        controller = make_controller(seeded_store, transfer, migrate_fn=slow)
        await asyncio.gather(controller.migrate(), controller.migrate())

        assert calls == 1

    async def test_status_published_to_subscribers(self, seeded_store, transfer):
        controller = make_controller(seeded_store, transfer)
        states: list[MigrationStatus] = []
        controller.status.subscribe(states.append)

        await controller.migrate()

        assert states[0].is_migrating is True
        assert states[-1].is_complete is True
        assert states[-1].is_migrating is False


@pytest.mark.migration
@pytest.mark.asyncio
class TestClearAfterMigration:

    async def test_staged_data_kept_by_default(self, seeded_store, transfer):
        controller = make_controller(seeded_store, transfer)
        await controller.migrate()

        assert await seeded_store.has_local_data() is True

    async def test_clears_after_success(self, seeded_store, transfer):
        controller = make_controller(seeded_store, transfer, clear_after_migration=True)
        await controller.migrate()

        assert await seeded_store.has_local_data() is False
        assert await seeded_store.is_migration_complete() is True

    async def test_keeps_data_when_transfer_raises(self, seeded_store, transfer):
        async def broken(store, t):
            raise RuntimeError("database unreachable")

        cleared = []
        original_clear = seeded_store.clear_migrated_data

        async def spy_clear():
            cleared.append(True)
            return await original_clear()

        seeded_store.clear_migrated_data = spy_clear
        controller = make_controller(
            seeded_store, transfer, migrate_fn=broken, clear_after_migration=True
        )
        await controller.migrate()

        assert isinstance(controller.error, MigrationError)
        assert cleared == []
        assert await seeded_store.has_local_data() is True
        assert await seeded_store.is_migration_complete() is False
        assert [r.kind for r in await seeded_store.staged_records()] == ["term", "bookmark", "path"]

    async def test_keeps_data_after_partial_failure(self, seeded_store):
        controller = make_controller(
            seeded_store, FakeTransfer(fail_slugs={"cap-rate"}), clear_after_migration=True
        )
        await controller.migrate()

        assert await seeded_store.has_local_data() is True


@pytest.mark.migration
@pytest.mark.asyncio
class TestAutoMigration:

    async def test_starts_once_auth_ready(self, seeded_store, transfer):
        controller = MigrationController(seeded_store, transfer)

        assert controller.observe_auth(auth_loaded=False, is_signed_in=False) is None
        task = controller.observe_auth(auth_loaded=True, is_signed_in=True)
        assert task is not None
        await task

        assert controller.is_complete is True
        assert transfer.call_count == 3

    async def test_repeated_ready_signal_starts_nothing(self, seeded_store, transfer):
        controller = MigrationController(seeded_store, transfer)

        await controller.observe_auth(True, True)
        assert controller.observe_auth(True, True) is None

    async def test_sign_in_again_does_not_remigrate(self, seeded_store, transfer):
        controller = MigrationController(seeded_store, transfer)
        await controller.observe_auth(True, True)

        controller.observe_auth(True, False)
        task = controller.observe_auth(True, True)
        await task

        assert transfer.call_count == 3

    async def test_disabled(self, seeded_store, transfer):
        controller = MigrationController(seeded_store, transfer, auto_migrate=False)

        assert controller.observe_auth(True, True) is None
        assert controller.is_signed_in is True

    async def test_nothing_staged_skips_migrate(self, staging_store, transfer):
        controller = MigrationController(staging_store, transfer)

        await controller.observe_auth(True, True)

        assert controller.status.get() == MigrationStatus()

    async def test_refresh_loads_marker(self, seeded_store, transfer):
        await seeded_store.mark_migration_complete()
        controller = MigrationController(seeded_store, transfer)

        status = await controller.refresh()

        assert status.is_complete is True

    async def test_closed_controller_stops_publishing(self, seeded_store, transfer):
        controller = make_controller(seeded_store, transfer)
        controller.close()

        await controller.migrate()

        assert controller.status.get() == MigrationStatus()
        assert controller.observe_auth(True, True) is None
