"""Financial-data layer: records, repository, reloadable state and model functions."""

from .embedders import ExpenseEmbedder, OpenAIExpenseEmbedder, create_expense_embedder
from .indexing import ExpenseIndex
from .models import Budget, Expense, Subscription
from .repository import FinanceRepository, InMemoryFinanceRepository
from .state import FinanceState
from .toolkit import MUTATING_FUNCTIONS, FinanceToolkit, summarize_results

__all__ = [
    "Budget",
    "Expense",
    "ExpenseEmbedder",
    "ExpenseIndex",
    "FinanceRepository",
    "FinanceState",
    "FinanceToolkit",
    "InMemoryFinanceRepository",
    "MUTATING_FUNCTIONS",
    "OpenAIExpenseEmbedder",
    "Subscription",
    "create_expense_embedder",
    "summarize_results",
]
