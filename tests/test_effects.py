"""Unit tests for the side-effect coordinator."""
import asyncio
import datetime as dt

import pytest

from conftest import RecordingFinance, expense_item
from finadvisor.assistant import (
    BudgetCreated,
    ExpensesCreated,
    ExpensesDeleted,
    SessionUIState,
    SideEffectCoordinator,
)


def created_event(*items):
    return ExpensesCreated(
        items=tuple(items),
        total=round(sum(i.amount for i in items), 2),
        currency="USD",
        earliest_date=min(i.date for i in items),
    )


class TestReloads:
    """Tests for which collections each event reloads."""

    @pytest.mark.asyncio
    async def test_expenses_deleted_reloads_expenses_and_budgets(self, coordinator, finance):
        """Test that deleting expenses refreshes expenses and budgets."""
        assert await coordinator.apply(ExpensesDeleted()) is None
        assert sorted(finance.reloads) == ["reload_budgets", "reload_expenses"]

    @pytest.mark.asyncio
    async def test_budget_created_reloads_budgets(self, coordinator, finance):
        """Test that creating a budget refreshes budgets only."""
        assert await coordinator.apply(BudgetCreated()) is None
        assert finance.reloads == ["reload_budgets"]

    @pytest.mark.asyncio
    async def test_reload_failure_is_not_raised(self, ui):
        """Test that a failed reload is logged and the other reloads still run."""
        finance = RecordingFinance(failing={"reload_expenses"})
        coordinator = SideEffectCoordinator(finance, ui, navigation_delay=0.01)
        item = expense_item("Coffee", 3.0, dt.date(2025, 3, 1))

        notification = await coordinator.apply(created_event(item))

        assert "reload_budgets" in finance.reloads
        assert notification is not None
        coordinator.cancel_navigation()


class TestExpensesCreated:
    """Tests for the UI effects of created expenses."""

    @pytest.mark.asyncio
    async def test_notification_is_capped(self, coordinator):
        """Test that at most five items are shown while count and total cover all."""
        items = [expense_item(f"item{i}", 10.0, dt.date(2025, 3, i + 1)) for i in range(7)]

        notification = await coordinator.apply(created_event(*items))

        assert notification.count == 7
        assert notification.total == 70.0
        assert len(notification.items) == 5
        assert notification.hidden_count == 2
        coordinator.cancel_navigation()

    @pytest.mark.asyncio
    async def test_period_unchanged_when_all(self, coordinator, ui):
        """Test that the "all" period is left alone."""
        await coordinator.apply(created_event(expense_item("Rent", 900, dt.date(2024, 12, 1))))

        assert ui.selected_period == "all"
        assert ui.period_changes == []
        coordinator.cancel_navigation()

    @pytest.mark.asyncio
    async def test_period_switches_to_earliest_item(self, finance):
        """Test that a specific period moves to the earliest created item's month."""
        ui = SessionUIState("2025-03")
        coordinator = SideEffectCoordinator(finance, ui, navigation_delay=0.01)
        items = [
            expense_item("Taxi", 15, dt.date(2025, 3, 4)),
            expense_item("Dinner", 40, dt.date(2025, 2, 20)),
        ]

        await coordinator.apply(created_event(*items))

        assert ui.selected_period == "2025-02"
        assert ui.period_changes == ["2025-02"]
        coordinator.cancel_navigation()

    @pytest.mark.asyncio
    async def test_period_kept_when_matching(self, finance):
        """Test that no period change is issued when already on the items' month."""
        ui = SessionUIState("2025-03")
        coordinator = SideEffectCoordinator(finance, ui, navigation_delay=0.01)

        await coordinator.apply(created_event(expense_item("Taxi", 15, dt.date(2025, 3, 4))))

        assert ui.period_changes == []
        coordinator.cancel_navigation()

    @pytest.mark.asyncio
    async def test_navigation_after_delay(self, coordinator, ui, finance):
        """Test that navigation to the expenses view happens after the reloads, delayed."""
        await coordinator.apply(created_event(expense_item("Coffee", 3, dt.date(2025, 3, 1))))

        assert finance.reloads
        assert ui.navigations == []
        assert coordinator.navigation_pending

        await asyncio.sleep(0.05)
        assert ui.navigations == ["/expenses"]
        assert ui.current_view == "/expenses"
        assert not coordinator.navigation_pending

    @pytest.mark.asyncio
    async def test_navigation_is_debounced(self, coordinator, ui):
        """Test that back-to-back creations navigate once."""
        for day in (1, 2):
            await coordinator.apply(created_event(expense_item("Coffee", 3, dt.date(2025, 3, day))))

        await asyncio.sleep(0.05)
        assert ui.navigations == ["/expenses"]

    @pytest.mark.asyncio
    async def test_cancelled_navigation_never_fires(self, coordinator, ui):
        """Test that a cancelled navigation does not reach the UI."""
        await coordinator.apply(created_event(expense_item("Coffee", 3, dt.date(2025, 3, 1))))
        coordinator.cancel_navigation()

        await asyncio.sleep(0.05)
        assert ui.navigations == []
