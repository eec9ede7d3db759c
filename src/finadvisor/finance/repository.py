"""Financial-data repository.

The abstraction hides where expenses, budgets and subscriptions live.
The in-memory backend keeps everything in dicts keyed by user id and is
suitable for single-process use and testing.
"""

import datetime as dt
from abc import ABC, abstractmethod

from ..config import DEFAULT_CURRENCY
from .models import Budget, Expense, Subscription


class FinanceRepository(ABC):
    """Abstract store of a user's financial records."""

    @abstractmethod
    async def get_user_currency(self, user_id: str) -> str:
        """Return the user's default currency code."""

    @abstractmethod
    async def list_expenses(
        self,
        user_id: str,
        start: dt.date | None = None,
        end: dt.date | None = None,
        category: str | None = None
    ) -> list[Expense]:
        """List expenses, newest first, optionally filtered."""

    @abstractmethod
    async def add_expense(self, expense: Expense) -> Expense:
        """Persist a new expense and return it."""

    @abstractmethod
    async def delete_expenses(
        self,
        user_id: str,
        ids: list[str] | None = None,
        category: str | None = None,
        start: dt.date | None = None,
        end: dt.date | None = None,
        description: str | None = None
    ) -> list[Expense]:
        """Delete expenses matching every given filter and return them.

        At least one filter must be given.
        """

    @abstractmethod
    async def list_budgets(self, user_id: str) -> list[Budget]:
        """List budgets, newest first."""

    @abstractmethod
    async def save_budget(self, budget: Budget) -> Budget:
        """Create a budget, or update the allocation of an existing category."""

    @abstractmethod
    async def list_subscriptions(self, user_id: str) -> list[Subscription]:
        """List subscriptions ordered by next billing date."""

    @abstractmethod
    async def add_subscription(self, subscription: Subscription) -> Subscription:
        """Persist a new subscription and return it."""


def _in_range(day: dt.date, start: dt.date | None, end: dt.date | None) -> bool:
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


class InMemoryFinanceRepository(FinanceRepository):
    """Dict-backed repository (process lifetime only)."""

    def __init__(self, currencies: dict[str, str] | None = None, default_currency: str = DEFAULT_CURRENCY):
        self._currencies = dict(currencies or {})
        self._default_currency = default_currency
        self._expenses: dict[str, list[Expense]] = {}
        self._budgets: dict[str, list[Budget]] = {}
        self._subscriptions: dict[str, list[Subscription]] = {}

    def set_user_currency(self, user_id: str, currency: str) -> None:
        self._currencies[user_id] = currency.upper()

    async def get_user_currency(self, user_id: str) -> str:
        return self._currencies.get(user_id, self._default_currency)

    async def list_expenses(
        self,
        user_id: str,
        start: dt.date | None = None,
        end: dt.date | None = None,
        category: str | None = None
    ) -> list[Expense]:
        expenses = [
            e for e in self._expenses.get(user_id, [])
            if _in_range(e.date, start, end) and (category is None or e.category == category)
        ]
        return sorted(expenses, key=lambda e: e.date, reverse=True)

    async def add_expense(self, expense: Expense) -> Expense:
        self._expenses.setdefault(expense.user_id, []).append(expense)
        return expense

    async def delete_expenses(
        self,
        user_id: str,
        ids: list[str] | None = None,
        category: str | None = None,
        start: dt.date | None = None,
        end: dt.date | None = None,
        description: str | None = None
    ) -> list[Expense]:
        if not any([ids, category, start, end, description]):
            raise ValueError("delete_expenses requires at least one filter")

        needle = description.lower() if description else None
        kept: list[Expense] = []
        deleted: list[Expense] = []
        for expense in self._expenses.get(user_id, []):
            matches = (
                (not ids or expense.id in ids)
                and (category is None or expense.category == category)
                and _in_range(expense.date, start, end)
                and (needle is None or needle in expense.description.lower())
            )
            (deleted if matches else kept).append(expense)
        self._expenses[user_id] = kept
        return deleted

    async def list_budgets(self, user_id: str) -> list[Budget]:
        return sorted(self._budgets.get(user_id, []), key=lambda b: b.created_at, reverse=True)

    async def save_budget(self, budget: Budget) -> Budget:
        budgets = self._budgets.setdefault(budget.user_id, [])
        for index, existing in enumerate(budgets):
            if existing.category.lower() == budget.category.lower():
                updated = existing.model_copy(update={
                    "allocated_amount": budget.allocated_amount,
                    "currency": budget.currency,
                })
                budgets[index] = updated
                return updated
        budgets.append(budget)
        return budget

    async def list_subscriptions(self, user_id: str) -> list[Subscription]:
        return sorted(self._subscriptions.get(user_id, []), key=lambda s: s.next_billing_date)

    async def add_subscription(self, subscription: Subscription) -> Subscription:
        self._subscriptions.setdefault(subscription.user_id, []).append(subscription)
        return subscription
