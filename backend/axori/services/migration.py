"""Learning hub migration controller.

Moves an account's locally staged learning hub data into the database
exactly once.  The order of checks in `migrate()` is fixed:

    signed in? -> marker already set? -> anything staged? -> transfer

so a finished account never touches the staging data or the network
again.  Failures are surfaced on `MigrationStatus.error`; staged data is
only purged after a successful run and only when asked to.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable

from axori.learning_hub.migration import LearningHubTransfer, migrate_to_database
from axori.learning_hub.staging import StagingStore
from axori.middleware.exceptions import MigrationError, UnauthenticatedError
from axori.schemas.learning_hub import MigrationResult
from axori.services.timing import InFlightGuard
from axori.utils.observable import Observable

logger = logging.getLogger(__name__)

MigrateFn = Callable[[StagingStore, LearningHubTransfer], Awaitable[MigrationResult]]


@dataclass(frozen=True)
class MigrationStatus:
    is_migrating: bool = False
    is_complete: bool = False
    result: MigrationResult | None = None
    error: Exception | None = None


class MigrationController:
    """Owns one account's MigrationStatus and the one-shot transfer."""

    def __init__(
        self,
        store: StagingStore,
        transfer: LearningHubTransfer,
        *,
        auto_migrate: bool = True,
        clear_after_migration: bool = False,
        migrate_fn: MigrateFn = migrate_to_database,
    ):
        self.store = store
        self.transfer = transfer
        self.auto_migrate = auto_migrate
        self.clear_after_migration = clear_after_migration
        self._migrate_fn = migrate_fn

        self.status = Observable(MigrationStatus())
        self.is_signed_in = False
        self._auth_ready = False
        self._guard = InFlightGuard("migrate")
        self._task: asyncio.Task | None = None
        self._closed = False

    # ── Observable surface ──

    @property
    def is_migrating(self) -> bool:
        return self.status.get().is_migrating

    @property
    def is_complete(self) -> bool:
        return self.status.get().is_complete

    @property
    def result(self) -> MigrationResult | None:
        return self.status.get().result

    @property
    def error(self) -> Exception | None:
        return self.status.get().error

    async def has_local_data(self) -> bool:
        return await self.store.has_local_data()

    async def refresh(self) -> MigrationStatus:
        """Load the persisted completion marker into status (call on mount)."""
        try:
            if await self.store.is_migration_complete():
                self._update(is_complete=True)
        except Exception:
            logger.exception("Could not read migration marker for %s", self.store.account_id)
        return self.status.get()

    # ── Operations ──

    async def migrate(self) -> None:
        """Run the transfer unless it already ran or nothing is staged.

        Overlapping calls are ignored while one is in flight.
        """
        with self._guard.enter() as entered:
            if not entered or self._closed:
                return

            if not self.is_signed_in:
                self._update(error=UnauthenticatedError("User must be signed in to migrate data"))
                return

            try:
                if await self.store.is_migration_complete():
                    self._update(is_complete=True)
                    return
                if not await self.store.has_local_data():
                    self._update(is_complete=True)
                    return

                self._update(is_migrating=True, error=None)
                result = await self._migrate_fn(self.store, self.transfer)
            except Exception as e:
                logger.exception("Learning hub migration failed for %s", self.store.account_id)
                error = MigrationError(f"Learning hub migration failed: {e}")
                error.__cause__ = e
                self._replace(MigrationStatus(is_migrating=False, is_complete=False, error=error))
                return

            self._replace(MigrationStatus(is_complete=result.success, result=result))

            if self.clear_after_migration and result.success:
                try:
                    await self.store.clear_migrated_data()
                except Exception:
                    logger.exception(
                        "Could not clear staged learning hub data for %s",
                        self.store.account_id,
                    )

    def observe_auth(self, auth_loaded: bool, is_signed_in: bool) -> asyncio.Task | None:
        """Feed the latest auth state; starts migration on becoming signed in.

        Returns the scheduled task, or None when nothing was started.
        """
        was_ready = self._auth_ready
        self.is_signed_in = is_signed_in
        self._auth_ready = auth_loaded and is_signed_in

        if not self.auto_migrate or not self._auth_ready or was_ready or self._closed:
            return None
        self._task = asyncio.create_task(self._auto_migrate())
        return self._task

    def close(self) -> None:
        """Stop publishing status; an in-flight transfer still finishes."""
        self._closed = True

    # ── Internals ──

    async def _auto_migrate(self) -> None:
        try:
            if await self.store.is_migration_complete() or not await self.store.has_local_data():
                return
        except Exception:
            logger.exception("Could not inspect staged data for %s", self.store.account_id)
            return
        await self.migrate()

    def _update(self, **changes) -> None:
        if self._closed:
            return
        self.status._set(replace(self.status.get(), **changes))

    def _replace(self, status: MigrationStatus) -> None:
        if self._closed:
            return
        self.status._set(status)
