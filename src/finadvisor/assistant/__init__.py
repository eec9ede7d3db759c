"""Conversational finance assistant: interpretation, side effects and orchestration."""

from .charts import ChartSeries, RenderableChart, adapt_chart
from .effects import FinanceDataLayer, SideEffectCoordinator
from .events import ActionableEvent, BudgetCreated, ExpensesCreated, ExpensesDeleted
from .interpreter import interpret
from .models import PendingNotification, SendResult
from .orchestrator import ConversationOrchestrator
from .ui import SessionUIState, UIBridge

__all__ = [
    "ActionableEvent",
    "BudgetCreated",
    "ChartSeries",
    "ConversationOrchestrator",
    "ExpensesCreated",
    "ExpensesDeleted",
    "FinanceDataLayer",
    "PendingNotification",
    "RenderableChart",
    "SendResult",
    "SessionUIState",
    "SideEffectCoordinator",
    "UIBridge",
    "adapt_chart",
    "interpret",
]
