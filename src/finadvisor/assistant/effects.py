"""Side effects of actionable events.

Reloads the affected financial collections, then (for created expenses)
builds the notification, aligns the selected period with the new items
and schedules navigation to the expenses view.
"""

import asyncio
import logging
from typing import Protocol

from ..config import EXPENSES_VIEW, NAVIGATION_DELAY_SECONDS, NOTIFICATION_ITEM_CAP
from ..finance.periods import is_all, period_of
from .events import ActionableEvent, BudgetCreated, ExpensesCreated, ExpensesDeleted
from .models import PendingNotification
from .ui import UIBridge

logger = logging.getLogger(__name__)


class FinanceDataLayer(Protocol):
    """Reload operations of the financial-data layer.

    Each refetches and replaces one in-memory collection; all are safe to
    call repeatedly and concurrently.
    """

    async def reload_expenses(self) -> None: ...

    async def reload_budgets(self) -> None: ...

    async def reload_subscriptions(self) -> None: ...


# Budget "spent" aggregates derive from expenses, so expense changes reload both.
RELOADS: dict[type, tuple[str, ...]] = {
    ExpensesCreated: ("reload_expenses", "reload_budgets"),
    ExpensesDeleted: ("reload_expenses", "reload_budgets"),
    BudgetCreated: ("reload_budgets",),
}


class SideEffectCoordinator:
    """Applies events to the data layer and the UI, in order."""

    def __init__(
        self,
        finance: FinanceDataLayer,
        ui: UIBridge,
        notification_cap: int = NOTIFICATION_ITEM_CAP,
        navigation_delay: float = NAVIGATION_DELAY_SECONDS
    ):
        self._finance = finance
        self._ui = ui
        self._notification_cap = notification_cap
        self._navigation_delay = navigation_delay
        self._navigation: asyncio.TimerHandle | None = None

    @property
    def navigation_pending(self) -> bool:
        return self._navigation is not None

    async def apply(self, event: ActionableEvent) -> PendingNotification | None:
        """Run the reloads for ``event``, then its UI effects.

        Reload failures are logged and do not stop the UI effects.

        Args:
            event: Actionable event interpreted from the turn's function result

        Returns:
            The notification to display for created expenses, otherwise None
        """
        await self._reload(event)
        if isinstance(event, ExpensesCreated):
            return self._expenses_created(event)
        return None

    def cancel_navigation(self) -> None:
        if self._navigation is not None:
            self._navigation.cancel()
            self._navigation = None

    async def _reload(self, event: ActionableEvent) -> None:
        names = RELOADS.get(type(event), ())
        if not names:
            return

        results = await asyncio.gather(
            *(getattr(self._finance, name)() for name in names),
            return_exceptions=True,
        )
        for name, result in zip(names, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.warning("%s failed after %s", name, event.kind, exc_info=result)
            else:
                logger.debug("%s completed after %s", name, event.kind)

    def _expenses_created(self, event: ExpensesCreated) -> PendingNotification:
        notification = PendingNotification.from_event(event, self._notification_cap)

        target = period_of(event.earliest_date)
        current = self._ui.selected_period
        if not is_all(current) and target != current:
            self._ui.change_period(target)

        self._schedule_navigation()
        return notification

    def _schedule_navigation(self) -> None:
        # Debounced: a newer request replaces one that has not fired yet
        self.cancel_navigation()
        loop = asyncio.get_running_loop()
        self._navigation = loop.call_later(self._navigation_delay, self._navigate)

    def _navigate(self) -> None:
        self._navigation = None
        try:
            self._ui.navigate(EXPENSES_VIEW)
        except Exception:
            logger.warning("Navigation to %s failed", EXPENSES_VIEW, exc_info=True)
