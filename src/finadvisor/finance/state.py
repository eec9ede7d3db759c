"""In-memory financial state for one signed-in user.

Holds the collections the UI renders and refetches them on demand.
Each reload replaces its collection wholesale, so reloads are idempotent
and may run concurrently.
"""

import asyncio
import logging
from collections import defaultdict

from .models import Budget, Expense, Subscription
from .repository import FinanceRepository

logger = logging.getLogger(__name__)


class FinanceState:
    """Expenses, budgets and subscriptions of the current user."""

    def __init__(self, repository: FinanceRepository, user_id: str):
        self._repository = repository
        self.user_id = user_id
        self.expenses: list[Expense] = []
        self.budgets: list[Budget] = []
        self.subscriptions: list[Subscription] = []

    async def reload_expenses(self) -> None:
        self.expenses = await self._repository.list_expenses(self.user_id)
        logger.debug("Reloaded %d expenses for %s", len(self.expenses), self.user_id)

    async def reload_budgets(self) -> None:
        """Refetch budgets and recompute each budget's spent amount.

        Spent is derived from the repository, not from ``self.expenses``,
        so this does not depend on ``reload_expenses`` having run first.
        """
        budgets = await self._repository.list_budgets(self.user_id)
        expenses = await self._repository.list_expenses(self.user_id)

        spent_by_category: dict[str, float] = defaultdict(float)
        for expense in expenses:
            spent_by_category[expense.category.lower()] += expense.amount

        self.budgets = [
            budget.model_copy(update={"spent": round(spent_by_category[budget.category.lower()], 2)})
            for budget in budgets
        ]
        logger.debug("Reloaded %d budgets for %s", len(self.budgets), self.user_id)

    async def reload_subscriptions(self) -> None:
        self.subscriptions = await self._repository.list_subscriptions(self.user_id)
        logger.debug("Reloaded %d subscriptions for %s", len(self.subscriptions), self.user_id)

    async def refresh_all(self) -> None:
        """Manual refresh of every collection."""
        await asyncio.gather(
            self.reload_expenses(),
            self.reload_budgets(),
            self.reload_subscriptions(),
        )

    def clear(self) -> None:
        """Forget all collections (sign-out)."""
        self.expenses = []
        self.budgets = []
        self.subscriptions = []
