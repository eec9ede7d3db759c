"""Function result interpretation.

Maps the function names reported by the chat service, plus their
aggregate result, to an actionable event. The mapping is a table of
rows; supporting a new function means adding a row.
"""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from ..config import DEFAULT_CURRENCY
from ..llm.models import FunctionResult
from .events import ActionableEvent, BudgetCreated, ExpensesCreated, ExpensesDeleted

logger = logging.getLogger(__name__)


def _expenses_created(result: FunctionResult) -> ExpensesCreated | None:
    items = result.created_items or []
    if not items or result.earliest_item_date is None:
        # A "success" without created items is treated as non-actionable.
        # TODO: revisit with product once empty-match successes are distinguishable.
        logger.info("create_expense reported success without created items; ignoring")
        return None
    return ExpensesCreated(
        items=tuple(items),
        total=round(sum(item.amount for item in items), 2),
        currency=result.currency or items[0].currency or DEFAULT_CURRENCY,
        earliest_date=result.earliest_item_date,
    )


# (matches the called function names, builds event from a successful result).
# Rows are ordered so that the reloads of an earlier row cover those of any
# later row matching the same turn.
DISPATCH: list[tuple[Callable[[list[str]], bool], Callable[[FunctionResult], ActionableEvent | None]]] = [
    (lambda names: any("create_expense" in name for name in names), _expenses_created),
    (lambda names: "delete_expenses" in names, lambda result: ExpensesDeleted()),
    (lambda names: "create_budget" in names, lambda result: BudgetCreated()),
]


def function_names(function_called: str, result: FunctionResult) -> list[str]:
    """Split a comma-joined ``function_called`` into the names that succeeded.

    Args:
        function_called: One name, or several joined with ", "
        result: Aggregate result; its ``succeeded_functions`` (when reported)
            narrows the names to the calls that succeeded

    Returns:
        Function names in call order
    """
    names = [name.strip() for name in function_called.split(",") if name.strip()]
    if result.succeeded_functions is not None:
        succeeded = set(result.succeeded_functions)
        names = [name for name in names if name in succeeded]
    return names


def interpret(
    function_called: str | None,
    result: FunctionResult | dict[str, Any] | None
) -> ActionableEvent | None:
    """Return the event a function result warrants, or None.

    Pure: the same inputs always give an equal event. A missing or
    unsuccessful result is never actionable.

    Args:
        function_called: Name(s) of the functions called during the turn
        result: Aggregate result of those calls, as a model or plain dict

    Returns:
        The first event a matching row builds, or None
    """
    if not function_called or result is None:
        return None

    if not isinstance(result, FunctionResult):
        try:
            result = FunctionResult.model_validate(result)
        except ValidationError:
            logger.warning("Malformed function result for %s; ignoring", function_called, exc_info=True)
            return None

    if not result.success:
        return None

    names = function_names(function_called, result)
    for matches, build in DISPATCH:
        if matches(names):
            event = build(result)
            if event is not None:
                return event
    return None
