"""UI boundary used by the assistant for period selection and navigation."""

import logging
from abc import ABC, abstractmethod

from ..config import ALL_PERIODS

logger = logging.getLogger(__name__)


class UIBridge(ABC):
    """What the assistant may read from and ask of the host UI."""

    @property
    @abstractmethod
    def selected_period(self) -> str:
        """Period the user is viewing ("YYYY-MM" or "all")."""

    @abstractmethod
    def change_period(self, period: str) -> None:
        """Switch the UI context to ``period``."""

    @abstractmethod
    def navigate(self, view: str) -> None:
        """Show ``view`` (e.g. "/expenses")."""


class SessionUIState(UIBridge):
    """UI state kept in memory; records every instruction it receives."""

    def __init__(self, period: str = ALL_PERIODS):
        self._period = period
        self.current_view: str | None = None
        self.period_changes: list[str] = []
        self.navigations: list[str] = []

    @property
    def selected_period(self) -> str:
        return self._period

    def change_period(self, period: str) -> None:
        logger.debug("Period changed %s -> %s", self._period, period)
        self._period = period
        self.period_changes.append(period)

    def navigate(self, view: str) -> None:
        logger.debug("Navigating to %s", view)
        self.current_view = view
        self.navigations.append(view)
