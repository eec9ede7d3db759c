"""Pytest configuration and shared fixtures."""
import asyncio
import datetime as dt
import os
from typing import Any

import numpy as np
import pytest

from finadvisor.assistant import ConversationOrchestrator, SessionUIState, SideEffectCoordinator
from finadvisor.finance.embedders import ExpenseEmbedder, unit
from finadvisor.llm import ChatReply, ChatService, CreatedItem, FunctionExecutor, FunctionResult
from finadvisor.memory import SessionWriter, create_conversation_store


class ScriptedChatService(ChatService):
    """Chat service that replays queued replies (or raises queued errors)."""

    def __init__(self, *script: ChatReply | Exception):
        self.script = list(script)
        self.calls: list[dict[str, Any]] = []
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def chat(self, user_text, user_id, prior_context, period_selector, **kwargs):
        self.calls.append({
            "user_text": user_text,
            "user_id": user_id,
            "prior_context": prior_context,
            "period_selector": period_selector,
        })
        if self.gate is not None:
            await self.gate.wait()
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    async def close(self):
        self.closed = True


class RecordingFinance:
    """Finance data layer that records which reloads ran."""

    def __init__(self, failing: set[str] | None = None):
        self.reloads: list[str] = []
        self.failing = failing or set()

    async def _reload(self, name: str) -> None:
        self.reloads.append(name)
        if name in self.failing:
            raise RuntimeError(f"{name} unavailable")

    async def reload_expenses(self):
        await self._reload("reload_expenses")

    async def reload_budgets(self):
        await self._reload("reload_budgets")

    async def reload_subscriptions(self):
        await self._reload("reload_subscriptions")


class KeywordEmbedder(ExpenseEmbedder):
    """Deterministic embedder: one dimension per known keyword."""

    KEYWORDS = ("coffee", "taxi", "rent", "groceries")

    @property
    def dimension(self) -> int:
        return len(self.KEYWORDS)

    async def embed_documents(self, documents):
        vectors = []
        for document in documents:
            lowered = document.lower()
            vector = np.array([1.0 if k in lowered else 0.0 for k in self.KEYWORDS], dtype=np.float32)
            vectors.append(unit(vector))
        return vectors


class ToolkitChatService(ChatService):
    """Chat service that runs planned function calls through a real executor.

    Each ``chat`` call consumes the next plan, a list of ``(name, args)``
    pairs, and folds their results the way a live service would.
    """

    def __init__(self, executor: FunctionExecutor, *plans: list[tuple[str, dict[str, Any]]]):
        self.executor = executor
        self.plans = list(plans)

    async def chat(self, user_text, user_id, prior_context, period_selector, **kwargs):
        executed = []
        for name, args in self.plans.pop(0):
            executed.append((name, await self.executor.execute(name, args, user_id)))
        result = self.executor.summarize(executed)
        return ChatReply(
            text="Done.",
            history=[
                *prior_context,
                {"role": "user", "parts": [{"text": user_text}]},
                {"role": "model", "parts": [{"text": "Done."}]},
            ],
            function_called=result.function_name if result else None,
            function_result=result,
        )

    async def close(self):
        pass


def expense_item(description: str, amount: float, day: dt.date, currency: str = "USD") -> CreatedItem:
    return CreatedItem(
        id=f"e-{description}",
        description=description,
        amount=amount,
        currency=currency,
        date=day,
        category="Miscellaneous",
    )


def created_reply(*items: CreatedItem, text: str = "Done.") -> ChatReply:
    """Reply of a turn whose function calls created ``items``."""
    names = ", ".join("create_expense" for _ in items)
    return ChatReply(
        text=text,
        history=[
            {"role": "user", "parts": [{"text": "add"}]},
            {"role": "model", "parts": [{"text": text}]},
        ],
        function_called=names,
        function_result=FunctionResult(
            function_name=names,
            success=True,
            message=f"Executed {len(items)} actions",
            created_items=list(items),
            item_total=round(sum(i.amount for i in items), 2),
            earliest_item_date=min(i.date for i in items),
            currency=items[0].currency,
        ),
    )


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "gemini": os.getenv("GEMINI_API_KEY"),
        "openai": os.getenv("OPENAI_API_KEY"),
    }


@pytest.fixture
def store():
    return create_conversation_store("memory")


@pytest.fixture
def finance():
    return RecordingFinance()


@pytest.fixture
def ui():
    return SessionUIState()


@pytest.fixture
def service():
    return ScriptedChatService()


@pytest.fixture
def writer(store):
    return SessionWriter(store)


@pytest.fixture
def coordinator(finance, ui):
    return SideEffectCoordinator(finance, ui, navigation_delay=0.01)


@pytest.fixture
def orchestrator(service, writer, coordinator, ui):
    return ConversationOrchestrator(service, writer, coordinator, ui)
