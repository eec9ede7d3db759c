"""Domain records of the financial-data layer."""

import datetime as dt
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

EXPENSE_CATEGORIES = (
    "Food & Dining",
    "Transportation",
    "Groceries",
    "Entertainment",
    "Shopping",
    "Utilities",
    "Healthcare",
    "Housing",
    "Personal Care",
    "Miscellaneous",
)

SUPPORTED_CURRENCIES = ("USD", "EUR", "GBP", "JPY", "CNY", "SGD", "MYR")


class Expense(BaseModel):
    """A single recorded expense."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    description: str
    amount: float
    category: str = "Miscellaneous"
    date: dt.date = Field(default_factory=dt.date.today)
    currency: str = "USD"


class Budget(BaseModel):
    """Allocated amount for a category; ``spent`` is derived on reload."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    category: str
    allocated_amount: float
    currency: str = "USD"
    spent: float = 0.0
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))

    @property
    def remaining(self) -> float:
        return round(self.allocated_amount - self.spent, 2)


class Subscription(BaseModel):
    """A recurring charge."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    name: str
    amount: float
    currency: str = "USD"
    category: str = "Miscellaneous"
    billing_cycle: Literal["monthly", "yearly"] = "monthly"
    next_billing_date: dt.date
    description: str | None = None
    is_active: bool = True

    @property
    def monthly_cost(self) -> float:
        if self.billing_cycle == "yearly":
            return round(self.amount / 12, 2)
        return self.amount
