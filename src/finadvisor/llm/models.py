"""Data models for the model-calling service contract."""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# A role-tagged content block exactly as the provider produced it.
# Held as plain JSON so provider continuation tokens ("thought signatures")
# survive persistence and are echoed back verbatim on the next call.
ConversationTurn = dict[str, Any]

# Chart specification as emitted by a function result, before adaptation.
ChartSpec = dict[str, Any]


class CreatedItem(BaseModel):
    """An item created by a mutating function call (currently an expense)."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    description: str
    amount: float
    currency: str | None = None
    date: dt.date
    category: str | None = None


class FunctionResult(BaseModel):
    """Structured outcome of the function calls made during one turn.

    Tagged by ``function_name``; function-specific fields are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    function_name: str = Field(description="Comma-joined names of the executed functions")
    success: bool
    succeeded_functions: list[str] | None = Field(
        default=None,
        description="Names of the calls that succeeded; None when not reported per call",
    )
    message: str | None = None
    chart_data: ChartSpec | None = None
    created_items: list[CreatedItem] | None = None
    item_total: float | None = None
    earliest_item_date: dt.date | None = None
    currency: str | None = None


class ChatReply(BaseModel):
    """Response of ``ChatService.chat``.

    ``history`` is the authoritative post-call context; callers replace
    their stored context with it rather than appending locally.
    """

    text: str = ""
    history: list[ConversationTurn] = Field(default_factory=list)
    function_called: str | None = None
    function_result: FunctionResult | None = None
