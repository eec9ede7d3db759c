"""Actionable events: normalized function results that warrant side effects.

A closed tagged union of frozen records; consumers match on the type.
"""

import datetime as dt
from dataclasses import dataclass, field
from typing import Union

from ..llm.models import CreatedItem


@dataclass(frozen=True)
class ExpensesCreated:
    """One or more expenses were created during the turn."""

    items: tuple[CreatedItem, ...]
    total: float
    currency: str
    earliest_date: dt.date
    kind: str = field(default="expenses-created", init=False)

    @property
    def count(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class ExpensesDeleted:
    """Expenses were deleted; only a reload is needed."""

    kind: str = field(default="expenses-deleted", init=False)


@dataclass(frozen=True)
class BudgetCreated:
    """A budget was created or updated; only a reload is needed."""

    kind: str = field(default="budget-created", init=False)


ActionableEvent = Union[ExpensesCreated, ExpensesDeleted, BudgetCreated]
