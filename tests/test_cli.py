"""Tests for the command-line interface."""
import datetime as dt

import pytest
from rich.console import Console
from typer.testing import CliRunner

from conftest import KeywordEmbedder, expense_item
from finadvisor.assistant import PendingNotification, RenderableChart
from finadvisor.cli import app
from finadvisor.cli.app import _load_finances, _Runtime
from finadvisor.cli.render import render_chart, render_message, render_notification
from finadvisor.finance import Expense, ExpenseIndex, FinanceState, InMemoryFinanceRepository
from finadvisor.memory import Message

runner = CliRunner()


@pytest.fixture(autouse=True)
def memory_backend(monkeypatch):
    monkeypatch.setenv("FINADVISOR_MEMORY_BACKEND", "memory")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


def rendered(renderable) -> str:
    console = Console(record=True, width=100)
    console.print(renderable)
    return console.export_text()


class TestCommands:
    """Tests for CLI commands."""

    def test_history_shows_greeting(self):
        """Test that a new user's history holds the greeting."""
        result = runner.invoke(app, ["history", "--user", "u1"])
        assert result.exit_code == 0
        assert "context turns stored" in result.output

    def test_clear_with_yes(self):
        """Test that clear runs without prompting when confirmed."""
        result = runner.invoke(app, ["clear", "--user", "u1", "--yes"])
        assert result.exit_code == 0
        assert "cleared" in result.output

    def test_ask_requires_api_key(self):
        """Test that a missing Gemini key exits with an error."""
        result = runner.invoke(app, ["ask", "hello"])
        assert result.exit_code == 1
        assert "GEMINI_API_KEY" in result.output

    def test_invalid_period(self):
        """Test that a malformed period is rejected."""
        result = runner.invoke(app, ["chat", "--period", "March"])
        assert result.exit_code == 1
        assert "Invalid period" in result.output


class TestRendering:
    """Tests for rich rendering helpers."""

    def test_chart_table(self):
        """Test that a chart renders one row per label."""
        chart = RenderableChart(
            title="Spending",
            labels=["Groceries", "Transportation"],
            series=[{"name": "Spending", "data": [80, 30]}],
        )
        text = rendered(render_chart(chart))
        assert "Groceries" in text
        assert "80.00" in text

    def test_assistant_message_with_action(self):
        """Test that the action name is shown under an assistant reply."""
        message = Message(text="Added.", sender="assistant", function_called="create_expense")
        assert "create_expense" in rendered(render_message(message))

    def test_notification_mentions_hidden_items(self):
        """Test that items beyond the cap are summarized."""
        items = [expense_item(f"item{i}", 1.0, dt.date(2025, 1, i + 1)) for i in range(7)]
        notification = PendingNotification(
            count=7, total=7.0, currency="USD", items=items[:5], earliest_date=dt.date(2025, 1, 1)
        )
        text = rendered(render_notification(notification))
        assert "Added 7 expenses" in text
        assert "2 more" in text


class TestLoadFinances:
    """Tests for loading financial data at the start of a session."""

    @staticmethod
    async def runtime(embedder) -> _Runtime:
        repository = InMemoryFinanceRepository()
        await repository.add_expense(Expense(
            user_id="u1", description="Coffee", amount=3.0, date=dt.date(2025, 3, 1)
        ))
        return _Runtime(
            store=None,
            service=None,
            finance=FinanceState(repository, "u1"),
            ui=None,
            writer=None,
            coordinator=None,
            orchestrator=None,
            index=ExpenseIndex(embedder),
        )

    @pytest.mark.asyncio
    async def test_loaded_expenses_are_indexed(self):
        """Test that loading the expenses also makes them searchable."""
        runtime = await self.runtime(KeywordEmbedder())

        await _load_finances(runtime)

        assert len(runtime.finance.expenses) == 1
        assert len(runtime.index) == 1
        [(expense_id, _)] = await runtime.index.search("u1", "coffee")
        assert expense_id == runtime.finance.expenses[0].id

    @pytest.mark.asyncio
    async def test_indexing_failure_keeps_expenses(self):
        """Test that an unavailable embedder only costs semantic search."""
        class BrokenEmbedder(KeywordEmbedder):
            async def embed_documents(self, documents):
                raise RuntimeError("embedding service down")

        runtime = await self.runtime(BrokenEmbedder())

        await _load_finances(runtime)

        assert len(runtime.finance.expenses) == 1
        assert len(runtime.index) == 0
