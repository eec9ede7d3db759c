"""Data models for conversation memory.

These models define the chat transcript and the threaded model context
of one user session, independent of the storage backend used.
"""

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import GREETING_FALLBACK_NAME, GREETING_TEMPLATE
from ..llm.models import ChartSpec, ConversationTurn, FunctionResult

Sender = Literal["user", "assistant"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """One transcript entry. Immutable once appended."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    text: str = ""
    sender: Sender
    created_at: datetime = Field(default_factory=_now)
    function_called: str | None = None
    function_result: FunctionResult | None = None
    chart_data: ChartSpec | None = None
    pending: bool = Field(default=False, description="Loading placeholder awaiting its reply")

    @model_validator(mode="after")
    def _assistant_has_text(self) -> "Message":
        if self.sender == "assistant" and not self.text.strip() and not self.pending:
            raise ValueError("assistant message needs text unless it is a pending placeholder")
        return self


class ChatSession(BaseModel):
    """Transcript and model context of one authenticated user.

    ``display_name``, ``typing`` and ``closed`` are runtime-only state and
    are never persisted. A closed session has been cleared or signed out
    and must not be written again.
    """

    user_id: str
    messages: list[Message] = Field(default_factory=list)
    context: list[ConversationTurn] = Field(default_factory=list)
    display_name: str | None = Field(default=None, exclude=True)
    typing: bool = Field(default=False, exclude=True)
    closed: bool = Field(default=False, exclude=True)

    def append_message(self, message: Message) -> None:
        if any(m.id == message.id for m in self.messages):
            raise ValueError(f"Duplicate message id {message.id}")
        self.messages.append(message)

    def replace_context(self, history: list[ConversationTurn]) -> None:
        """Adopt the service's post-call context wholesale."""
        self.context = list(history)

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None


def greeting_message(display_name: str | None = None) -> Message:
    return Message(
        text=GREETING_TEMPLATE.format(name=display_name or GREETING_FALLBACK_NAME),
        sender="assistant",
    )


def default_session(user_id: str, display_name: str | None = None) -> ChatSession:
    """A fresh session: one greeting, empty context."""
    return ChatSession(
        user_id=user_id,
        messages=[greeting_message(display_name)],
        display_name=display_name,
    )
