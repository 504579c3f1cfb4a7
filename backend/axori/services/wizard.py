"""Add-property wizard controller.

Drives the six-step onboarding wizard.  Step 1 saves the draft property
and then enriches it with market data behind a loader that stays visible
for at least `wizard_min_display_ms`; later steps save and advance; the
final step marks the property complete.

Ordering inside one `advance()` is fixed:

    save -> enrichment -> minimum display floor -> settle delay -> step + 1

Nothing escapes `advance()`: save and completion failures leave the step
where it is, enrichment failures are logged and ignored, and a step-save
failure past step 1 is recorded on `WizardState.last_error`.

If `retreat()` or `sync_step()` moves the wizard while an advance is
waiting, that advance is dropped, so one advance never moves the step
by more than one.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Protocol

from axori.config import settings
from axori.middleware.exceptions import WizardSaveError
from axori.services.timing import (
    Clock,
    InFlightGuard,
    cancellable_sleep,
    hold_minimum,
    ms,
)
from axori.utils.observable import Observable

logger = logging.getLogger(__name__)

StepChangeCallback = Callable[[int, str | None], None]


# ── Gateways ────────────────────────────────────────────────


class PropertyPersistence(Protocol):
    async def save_step(self, form_data: Any, is_address_confirmed: bool) -> str | None:
        """Create or update the draft property; None means not saved."""
        ...

    async def complete_wizard(self, form_data: Any, is_address_confirmed: bool) -> bool:
        ...


class EnrichmentSource(Protocol):
    async def fetch_enrichment(self, property_id: str) -> Any:
        """Fetch market data for a saved property. May raise."""
        ...


# ── State ───────────────────────────────────────────────────


@dataclass(frozen=True)
class WizardState:
    step: int = 1
    is_fetching_enrichment: bool = False
    is_complete: bool = False
    last_error: Exception | None = None


class StepStore(Observable[WizardState]):
    """Observable holder for one wizard's WizardState."""

    def __init__(self, initial_step: int = 1):
        super().__init__(WizardState(step=initial_step))

    def _update(self, **changes) -> None:
        current = self.get()
        updated = replace(current, **changes)
        if updated != current:
            self._set(updated)


# ── Controller ──────────────────────────────────────────────


class PropertyWizardController:
    """Step sequencing for the add-property wizard.

    Inputs that change while the wizard is open (form data, address
    confirmation, owning user and portfolio) are plain attributes the
    caller keeps current; `advance()` reads them when it runs.
    """

    def __init__(
        self,
        persistence: PropertyPersistence,
        enrichment: EnrichmentSource,
        *,
        form_data: Any = None,
        is_address_confirmed: bool = False,
        user_id: str | None = None,
        portfolio_id: str | None = None,
        total_steps: int | None = None,
        initial_step: int = 1,
        on_step_change: StepChangeCallback | None = None,
        min_display_ms: int | None = None,
        settle_delay_ms: int | None = None,
        clock: Clock = time.monotonic,
    ):
        self.total_steps = total_steps or settings.wizard_total_steps
        if self.total_steps < 1:
            raise ValueError("total_steps must be at least 1")

        self.persistence = persistence
        self.enrichment = enrichment
        self.form_data = form_data
        self.is_address_confirmed = is_address_confirmed
        self.user_id = user_id
        self.portfolio_id = portfolio_id
        self.on_step_change = on_step_change

        self.min_display_ms = (
            settings.wizard_min_display_ms if min_display_ms is None else min_display_ms
        )
        self.settle_delay_ms = (
            settings.wizard_settle_delay_ms if settle_delay_ms is None else settle_delay_ms
        )
        self._clock = clock

        self.store = StepStore(self._clamp(initial_step))
        self._guard = InFlightGuard("advance")
        self._cancel = asyncio.Event()
        self._closed = False

    # ── Observable surface ──

    @property
    def state(self) -> WizardState:
        return self.store.get()

    @property
    def step(self) -> int:
        return self.state.step

    @property
    def is_fetching_enrichment(self) -> bool:
        return self.state.is_fetching_enrichment

    @property
    def is_complete(self) -> bool:
        return self.state.is_complete

    @property
    def is_advancing(self) -> bool:
        return self._guard.busy

    def subscribe(self, listener: Callable[[WizardState], None]) -> Callable[[], None]:
        return self.store.subscribe(listener)

    # ── Operations ──

    async def advance(self) -> None:
        """Save the current step and move forward, or finish on the last step.

        Calls made while a previous `advance()` is still running are ignored.
        """
        with self._guard.enter() as entered:
            if not entered or self._closed:
                return

            self._update(last_error=None)
            step = self.state.step

            if step >= self.total_steps:
                await self._complete()
            elif not self._ready():
                logger.debug("Wizard step %d not ready to advance", step)
            elif step == 1:
                await self._advance_with_enrichment()
            else:
                await self._advance_plain(step)

    def retreat(self) -> int:
        """Go back one step (never below 1) and notify the caller."""
        new_step = max(1, self.state.step - 1)
        self._update(step=new_step)
        self._notify(new_step, None)
        return new_step

    def sync_step(self, external_step: int) -> None:
        """Adopt a step tracked outside the controller (e.g. the URL)."""
        target = self._clamp(external_step)
        if target != self.state.step:
            logger.debug("Syncing wizard step %d -> %d", self.state.step, target)
            self._update(step=target)

    def close(self) -> None:
        """Tear down: pending delays return early and state stops changing."""
        self._closed = True
        self._cancel.set()

    # ── Internals ──

    def _ready(self) -> bool:
        return bool(self.is_address_confirmed and self.user_id and self.portfolio_id)

    def _clamp(self, step: int) -> int:
        return max(1, min(self.total_steps, step))

    def _update(self, **changes) -> None:
        # Writes after close() would land on state nobody renders any more
        if self._closed:
            return
        self.store._update(**changes)

    def _notify(self, step: int, property_id: str | None) -> None:
        if self._closed or self.on_step_change is None:
            return
        try:
            self.on_step_change(step, property_id)
        except Exception:
            logger.exception("on_step_change callback failed for step %d", step)

    def _move_to(self, step: int, property_id: str | None) -> None:
        if self._closed:
            return
        logger.info("Wizard moving from step %d to step %d", self.state.step, step)
        self._update(step=step)
        self._notify(step, property_id)

    async def _save(self) -> str | None:
        try:
            return await self.persistence.save_step(self.form_data, self.is_address_confirmed)
        except Exception:
            logger.exception("Saving wizard step %d raised", self.state.step)
            return None

    def _moved_away(self, step: int) -> bool:
        """True if retreat() or sync_step() changed the step mid-advance."""
        if self.state.step != step:
            logger.info(
                "Wizard left step %d while advancing (now %d); dropping advance",
                step,
                self.state.step,
            )
            return True
        return False

    async def _advance_with_enrichment(self) -> None:
        property_id = await self._save()
        if not property_id or self._moved_away(1):
            # Not saved yet (e.g. address not resolvable); stay on step 1
            return

        self._update(is_fetching_enrichment=True)
        started_at = self._clock()
        try:
            await self.enrichment.fetch_enrichment(property_id)
        except Exception:
            logger.warning(
                "Market data fetch failed for property %s; continuing",
                property_id,
                exc_info=True,
            )

        if not await hold_minimum(
            started_at, ms(self.min_display_ms), self._clock, self._cancel
        ):
            return
        self._update(is_fetching_enrichment=False)
        if self._moved_away(1):
            return

        if not await cancellable_sleep(ms(self.settle_delay_ms), self._cancel):
            return
        if self._moved_away(1):
            return
        self._move_to(2, property_id)

    async def _advance_plain(self, step: int) -> None:
        property_id = await self._save()
        if self._moved_away(step):
            return
        if not property_id:
            logger.warning("Wizard step %d was not saved; staying on step", step)
            self._update(last_error=WizardSaveError(step))
            return
        self._move_to(step + 1, property_id)

    async def _complete(self) -> None:
        if self.state.is_complete:
            return
        try:
            success = await self.persistence.complete_wizard(
                self.form_data, self.is_address_confirmed
            )
        except Exception:
            logger.exception("Completing the property wizard raised")
            success = False

        if success:
            logger.info("Property wizard complete")
            self._update(is_complete=True)
