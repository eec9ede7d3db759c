"""Values the assistant hands to the UI layer."""

import datetime as dt
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..config import NOTIFICATION_ITEM_CAP
from ..llm.models import CreatedItem
from ..memory.models import ChatSession
from .events import ActionableEvent, ExpensesCreated


class PendingNotification(BaseModel):
    """Transient toast payload, displayed at most once and never persisted.

    ``count`` and ``total`` cover every created item; ``items`` holds only
    the first few for display.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["expenses-created"] = "expenses-created"
    count: int = Field(ge=1)
    total: float
    currency: str
    items: list[CreatedItem] = Field(min_length=1)
    earliest_date: dt.date

    @classmethod
    def from_event(cls, event: ExpensesCreated, cap: int = NOTIFICATION_ITEM_CAP) -> "PendingNotification":
        return cls(
            count=event.count,
            total=event.total,
            currency=event.currency,
            items=list(event.items[:max(1, cap)]),
            earliest_date=event.earliest_date,
        )

    @property
    def hidden_count(self) -> int:
        """Created items not shown in ``items``."""
        return self.count - len(self.items)


@dataclass
class SendResult:
    """Outcome of ``ConversationOrchestrator.send``.

    ``accepted`` is False when the call was a no-op (empty text, no
    signed-in user, or another send already in flight).
    """

    session: ChatSession
    notification: PendingNotification | None = None
    event: ActionableEvent | None = None
    accepted: bool = True
