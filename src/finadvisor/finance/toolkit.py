"""Functions the model may call against the financial-data layer.

Each function has a JSON-schema declaration (``declarations``) and an
implementation reached through ``FinanceToolkit.execute``. Results are
JSON-serializable dicts; mutating functions report ``success``.
"""

import datetime as dt
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

from ..config import DEFAULT_CURRENCY
from ..llm.base import FunctionExecutor
from ..llm.models import CreatedItem, FunctionResult
from .indexing import ExpenseIndex
from .models import EXPENSE_CATEGORIES, SUPPORTED_CURRENCIES, Budget, Expense
from .periods import named_period_bounds, period_bounds, previous_bounds
from .repository import FinanceRepository

logger = logging.getLogger(__name__)

# Functions whose success means stored financial data changed
MUTATING_FUNCTIONS = frozenset({"create_expense", "create_budget", "delete_expenses"})

_CURRENCY_ALIASES = {"RM": "MYR", "$": "USD", "€": "EUR", "£": "GBP", "¥": "JPY"}


def normalize_currency(code: str | None, default: str = DEFAULT_CURRENCY) -> str:
    if not code:
        return default
    upper = code.strip().upper()
    return _CURRENCY_ALIASES.get(upper, upper)


def _date(value: Any) -> dt.date | None:
    if value in (None, ""):
        return None
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value))


def _round(value: float) -> float:
    return round(value, 2)


def _expense_payload(expense: Expense) -> dict[str, Any]:
    return expense.model_dump(mode="json", exclude={"user_id"})


_CATEGORY = {"type": "string", "description": "Expense category", "enum": list(EXPENSE_CATEGORIES)}
_CURRENCY = {
    "type": "string",
    "description": "Currency code (default: user default currency)",
    "enum": list(SUPPORTED_CURRENCIES),
}
_PERIOD = {
    "type": "string",
    "description": "Time period: this_month, last_month, this_year, last_30_days or a YYYY-MM month",
}

DECLARATIONS: list[dict[str, Any]] = [
    {
        "name": "get_expenses",
        "description": "Retrieve user expenses with optional filters for category, date range, or amount.",
        "parameters": {
            "type": "object",
            "properties": {
                "category": _CATEGORY,
                "start_date": {"type": "string", "description": "Start date (YYYY-MM-DD)"},
                "end_date": {"type": "string", "description": "End date (YYYY-MM-DD)"},
                "min_amount": {"type": "number", "description": "Minimum expense amount"},
                "max_amount": {"type": "number", "description": "Maximum expense amount"},
                "limit": {"type": "integer", "description": "Maximum number of expenses to return (default: 50)"},
                "sort_by": {"type": "string", "enum": ["date", "amount", "category"]},
                "sort_order": {"type": "string", "enum": ["asc", "desc"]},
            },
        },
    },
    {
        "name": "get_budget",
        "description": "Get budgets with spent and remaining amounts for a month.",
        "parameters": {
            "type": "object",
            "properties": {
                "month": {"type": "string", "description": "Month to report (YYYY-MM). Always required."},
                "category": {"type": "string", "description": "Only this budget category"},
                "include_spent": {"type": "boolean", "description": "Include spent and remaining amounts"},
            },
            "required": ["month"],
        },
    },
    {
        "name": "create_expense",
        "description": "Add a new expense to track spending. Call once per expense.",
        "parameters": {
            "type": "object",
            "properties": {
                "amount": {"type": "number", "description": "Expense amount"},
                "description": {"type": "string", "description": "Description of the expense"},
                "category": _CATEGORY,
                "date": {"type": "string", "description": "Date of expense (YYYY-MM-DD, defaults to today)"},
                "currency": _CURRENCY,
            },
            "required": ["amount", "description", "category"],
        },
    },
    {
        "name": "create_budget",
        "description": "Create or update a budget for a specific category.",
        "parameters": {
            "type": "object",
            "properties": {
                "category": {"type": "string", "description": "Budget category"},
                "amount": {"type": "number", "description": "Budget amount"},
                "currency": _CURRENCY,
            },
            "required": ["category", "amount"],
        },
    },
    {
        "name": "delete_expenses",
        "description": "Delete expenses by id or by matching category, date range and description.",
        "parameters": {
            "type": "object",
            "properties": {
                "ids": {"type": "array", "items": {"type": "string"}, "description": "Expense ids"},
                "category": _CATEGORY,
                "start_date": {"type": "string", "description": "Start date (YYYY-MM-DD)"},
                "end_date": {"type": "string", "description": "End date (YYYY-MM-DD)"},
                "description": {"type": "string", "description": "Text contained in the description"},
            },
        },
    },
    {
        "name": "get_spending_summary",
        "description": (
            "Get spending analysis with breakdown by category and comparison with the previous period. "
            "Use group_by: \"category\" and include_comparison: true."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "period": _PERIOD,
                "group_by": {"type": "string", "enum": ["category"]},
                "include_comparison": {"type": "boolean"},
            },
        },
    },
    {
        "name": "search_transactions",
        "description": "Search expenses by meaning or by text in their description.",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "What to look for"},
                "limit": {"type": "integer", "description": "Maximum results (default: 10)"},
            },
            "required": ["query"],
        },
    },
    {
        "name": "get_subscriptions",
        "description": "List recurring subscriptions with their monthly cost.",
        "parameters": {
            "type": "object",
            "properties": {
                "active_only": {"type": "boolean", "description": "Only active subscriptions (default: true)"},
            },
        },
    },
    {
        "name": "generate_chart",
        "description": "Produce a chart of spending by category for a period.",
        "parameters": {
            "type": "object",
            "properties": {
                "chart_type": {"type": "string", "enum": ["pie", "bar", "doughnut"]},
                "period": _PERIOD,
            },
        },
    },
]

_Handler = Callable[[str, dict[str, Any]], Awaitable[dict[str, Any]]]


class FinanceToolkit(FunctionExecutor):
    """Executes model function calls for one repository.

    Hidden design decisions:
    - Argument parsing and defaults (today's date, user currency)
    - Result shapes returned to the model
    - Semantic indexing of created expenses
    """

    def __init__(
        self,
        repository: FinanceRepository,
        index: ExpenseIndex | None = None,
        today: Callable[[], dt.date] = dt.date.today
    ):
        self._repository = repository
        self._index = index
        self._today = today
        self._handlers: dict[str, _Handler] = {
            "get_expenses": self._get_expenses,
            "get_budget": self._get_budget,
            "create_expense": self._create_expense,
            "create_budget": self._create_budget,
            "delete_expenses": self._delete_expenses,
            "get_spending_summary": self._get_spending_summary,
            "search_transactions": self._search_transactions,
            "get_subscriptions": self._get_subscriptions,
            "generate_chart": self._generate_chart,
        }

    @property
    def declarations(self) -> list[dict[str, Any]]:
        return [d for d in DECLARATIONS if d["name"] in self._handlers]

    async def user_currency(self, user_id: str) -> str:
        return normalize_currency(await self._repository.get_user_currency(user_id))

    def summarize(self, results: list[tuple[str, dict[str, Any]]]) -> FunctionResult | None:
        return summarize_results(results)

    async def execute(self, name: str, args: dict[str, Any] | None, user_id: str) -> dict[str, Any]:
        """Run one function call.

        Failures are reported as ``{"success": False, "error": ...}`` so the
        model can explain them to the user.
        """
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning("Model requested unknown function %r", name)
            return {"success": False, "error": f"Unknown function: {name}"}

        logger.debug("Executing %s with %s", name, args)
        try:
            return await handler(user_id, dict(args or {}))
        except Exception as e:
            logger.warning("Function %s failed", name, exc_info=True)
            return {"success": False, "error": str(e)}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def _get_expenses(self, user_id: str, args: dict[str, Any]) -> dict[str, Any]:
        expenses = await self._repository.list_expenses(
            user_id,
            start=_date(args.get("start_date")),
            end=_date(args.get("end_date")),
            category=args.get("category"),
        )
        if args.get("min_amount") is not None:
            expenses = [e for e in expenses if e.amount >= float(args["min_amount"])]
        if args.get("max_amount") is not None:
            expenses = [e for e in expenses if e.amount <= float(args["max_amount"])]

        sort_by = args.get("sort_by") or "date"
        if sort_by not in ("date", "amount", "category"):
            sort_by = "date"
        descending = (args.get("sort_order") or "desc") == "desc"
        expenses.sort(key=lambda e: getattr(e, sort_by), reverse=descending)
        expenses = expenses[: int(args.get("limit") or 50)]

        return {
            "expenses": [_expense_payload(e) for e in expenses],
            "count": len(expenses),
            "total": _round(sum(e.amount for e in expenses)),
            "currency": await self.user_currency(user_id),
        }

    async def _get_budget(self, user_id: str, args: dict[str, Any]) -> dict[str, Any]:
        month = args.get("month")
        if not month:
            raise ValueError("get_budget requires a month (YYYY-MM)")
        start, end = period_bounds(month)

        budgets = await self._repository.list_budgets(user_id)
        category = args.get("category")
        if category:
            budgets = [b for b in budgets if b.category.lower() == str(category).lower()]

        expenses = await self._repository.list_expenses(user_id, start=start, end=end)
        spent: dict[str, float] = defaultdict(float)
        for expense in expenses:
            spent[expense.category.lower()] += expense.amount

        include_spent = args.get("include_spent", True)
        payload = []
        for budget in budgets:
            entry: dict[str, Any] = {
                "id": budget.id,
                "category": budget.category,
                "allocated_amount": budget.allocated_amount,
                "currency": budget.currency,
            }
            if include_spent:
                used = _round(spent[budget.category.lower()])
                entry["spent"] = used
                entry["remaining"] = _round(budget.allocated_amount - used)
                entry["percent_used"] = (
                    round(used / budget.allocated_amount * 100, 1) if budget.allocated_amount else 0.0
                )
            payload.append(entry)
        return {"month": month, "budgets": payload}

    async def _get_spending_summary(self, user_id: str, args: dict[str, Any]) -> dict[str, Any]:
        period = args.get("period") or "this_month"
        start, end = named_period_bounds(period, self._today())
        expenses = await self._repository.list_expenses(user_id, start=start, end=end)
        total = sum(e.amount for e in expenses)

        summary: dict[str, Any] = {
            "period": period,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "total": _round(total),
            "currency": await self.user_currency(user_id),
            "count": len(expenses),
        }

        if args.get("group_by") == "category":
            by_category: dict[str, dict[str, Any]] = {}
            for expense in expenses:
                bucket = by_category.setdefault(expense.category, {"total": 0.0, "count": 0})
                bucket["total"] += expense.amount
                bucket["count"] += 1
            for bucket in by_category.values():
                bucket["total"] = _round(bucket["total"])
            summary["by_category"] = by_category

        if args.get("include_comparison"):
            prev_start, prev_end = previous_bounds(start, end)
            previous = await self._repository.list_expenses(user_id, start=prev_start, end=prev_end)
            prev_total = sum(e.amount for e in previous)
            change = total - prev_total
            summary["comparison"] = {
                "previous_total": _round(prev_total),
                "change": _round(change),
                "change_percent": round(change / prev_total * 100, 1) if prev_total > 0 else 0.0,
            }

        return summary

    async def _search_transactions(self, user_id: str, args: dict[str, Any]) -> dict[str, Any]:
        query = str(args.get("query") or "").strip()
        if not query:
            raise ValueError("search_transactions requires a query")
        limit = int(args.get("limit") or 10)
        expenses = await self._repository.list_expenses(user_id)

        if self._index is not None and len(self._index):
            by_id = {e.id: e for e in expenses}
            ranked = await self._index.search(user_id, query, limit=limit)
            matches = [
                {**_expense_payload(by_id[expense_id]), "score": round(score, 4)}
                for expense_id, score in ranked if expense_id in by_id
            ]
            return {"expenses": matches, "count": len(matches), "mode": "semantic"}

        needle = query.lower()
        matches = [
            _expense_payload(e) for e in expenses
            if needle in e.description.lower() or needle in e.category.lower()
        ][:limit]
        return {"expenses": matches, "count": len(matches), "mode": "text"}

    async def _get_subscriptions(self, user_id: str, args: dict[str, Any]) -> dict[str, Any]:
        subscriptions = await self._repository.list_subscriptions(user_id)
        if args.get("active_only", True):
            subscriptions = [s for s in subscriptions if s.is_active]
        return {
            "subscriptions": [s.model_dump(mode="json", exclude={"user_id"}) for s in subscriptions],
            "count": len(subscriptions),
            "monthly_total": _round(sum(s.monthly_cost for s in subscriptions)),
            "currency": await self.user_currency(user_id),
        }

    async def _generate_chart(self, user_id: str, args: dict[str, Any]) -> dict[str, Any]:
        period = args.get("period") or "this_month"
        chart_type = args.get("chart_type") or "pie"
        summary = await self._get_spending_summary(user_id, {"period": period, "group_by": "category"})
        by_category = summary.get("by_category", {})
        labels = sorted(by_category, key=lambda c: by_category[c]["total"], reverse=True)
        return {
            "success": True,
            "chart_data": {
                "type": chart_type,
                "title": f"Spending by category ({period})",
                "labels": labels,
                "series": [{"name": "Spending", "data": [by_category[c]["total"] for c in labels]}],
                "currency": summary["currency"],
            },
            "total": summary["total"],
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def _create_expense(self, user_id: str, args: dict[str, Any]) -> dict[str, Any]:
        currency = normalize_currency(args.get("currency"), await self.user_currency(user_id))
        expense = Expense(
            user_id=user_id,
            amount=float(args["amount"]),
            description=str(args["description"]),
            category=args.get("category") or "Miscellaneous",
            date=_date(args.get("date")) or self._today(),
            currency=currency,
        )
        expense = await self._repository.add_expense(expense)

        if self._index is not None:
            try:
                await self._index.add(expense)
            except Exception:
                logger.warning("Semantic indexing failed for expense %s", expense.id, exc_info=True)

        return {
            "success": True,
            "expense": _expense_payload(expense),
            "message": f"Added expense: {expense.description} - {expense.amount} {expense.currency}",
        }

    async def _create_budget(self, user_id: str, args: dict[str, Any]) -> dict[str, Any]:
        currency = normalize_currency(args.get("currency"), await self.user_currency(user_id))
        budget = await self._repository.save_budget(Budget(
            user_id=user_id,
            category=str(args["category"]),
            allocated_amount=float(args["amount"]),
            currency=currency,
        ))
        return {
            "success": True,
            "budget": budget.model_dump(mode="json", exclude={"user_id", "spent"}),
            "message": f"Created budget: {budget.category} - {budget.allocated_amount} {budget.currency}",
        }

    async def _delete_expenses(self, user_id: str, args: dict[str, Any]) -> dict[str, Any]:
        deleted = await self._repository.delete_expenses(
            user_id,
            ids=args.get("ids") or None,
            category=args.get("category"),
            start=_date(args.get("start_date")),
            end=_date(args.get("end_date")),
            description=args.get("description"),
        )
        if self._index is not None:
            self._index.remove(user_id, [e.id for e in deleted])
        return {
            "success": True,
            "deleted_count": len(deleted),
            "deleted": [_expense_payload(e) for e in deleted],
            "message": f"Deleted {len(deleted)} expense{'s' if len(deleted) != 1 else ''}",
        }


def _succeeded(result: dict[str, Any]) -> bool:
    if "success" in result:
        return bool(result["success"])
    return "error" not in result


def summarize_results(results: list[tuple[str, dict[str, Any]]]) -> FunctionResult | None:
    """Fold the (name, result) pairs of one turn into a single FunctionResult.

    A turn that changed data is successful even if some of its other calls
    failed, so the changes still reach the application state. Created
    expenses are collected from every successful ``create_expense`` call,
    with the total and earliest date computed over all of them.

    Args:
        results: (function name, result dict) of every call, in execution order

    Returns:
        The aggregate result, or None when no function was called
    """
    if not results:
        return None

    outcomes = [(name, _succeeded(result)) for name, result in results]
    succeeded = [name for name, ok in outcomes if ok]
    changed_data = any(ok and name in MUTATING_FUNCTIONS for name, ok in outcomes)

    created: list[CreatedItem] = []
    chart_data = None
    for (name, result), (_, ok) in zip(results, outcomes):
        if name == "create_expense" and ok and isinstance(result.get("expense"), dict):
            created.append(CreatedItem.model_validate(result["expense"]))
        if chart_data is None and isinstance(result.get("chart_data"), dict):
            chart_data = result["chart_data"]

    count = len(results)
    fields: dict[str, Any] = {
        "function_name": ", ".join(name for name, _ in results),
        "success": changed_data or len(succeeded) == count,
        "succeeded_functions": succeeded,
        "message": f"Executed {count} action{'s' if count > 1 else ''}",
        "chart_data": chart_data,
        "count": count,
    }
    if len(succeeded) < count:
        fields["failed_count"] = count - len(succeeded)
    if created:
        fields.update(
            created_items=created,
            item_total=_round(sum(item.amount for item in created)),
            earliest_item_date=min(item.date for item in created),
            currency=created[0].currency,
        )
    return FunctionResult(**fields)
