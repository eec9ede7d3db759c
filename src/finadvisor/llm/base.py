from abc import ABC, abstractmethod
from typing import Any

from .models import ChatReply, ConversationTurn, FunctionResult


class ChatService(ABC):
    """Abstract base class for function-calling chat services.

    This module hides the design decision of which model provider answers
    the user. Implementations must handle provider-specific details like:
    - API client setup and authentication
    - Conversation format conversion (and continuation token passthrough)
    - Function-call execution rounds
    - Retries for empty responses

    Supports async context manager protocol for proper resource cleanup:
        async with service:
            reply = await service.chat("Add $12 for coffee", user_id, [], "2024-03")
    """

    @abstractmethod
    async def chat(
        self,
        user_text: str,
        user_id: str,
        prior_context: list[ConversationTurn],
        period_selector: str,
        **kwargs: Any
    ) -> ChatReply:
        """Send one user message and run any function calls it triggers.

        Args:
            user_text: The user's message
            user_id: Authenticated user the functions act on behalf of
            prior_context: Context returned by the previous call, unmodified
            period_selector: Selected month ("YYYY-MM") or "all"
            **kwargs: Provider-specific parameters

        Returns:
            ChatReply with text, the new authoritative history and the
            aggregated function result (if any function was called)

        Raises:
            TransportError: If the provider cannot be reached
            MalformedResponseError: If the provider returns no usable candidate
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "ChatService":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise


class FunctionExecutor(ABC):
    """Executes the functions a chat service offers to the model.

    Keeps the domain behind the functions out of the provider modules.
    """

    @property
    @abstractmethod
    def declarations(self) -> list[dict[str, Any]]:
        """JSON-schema function declarations ({name, description, parameters})."""
        pass

    @abstractmethod
    async def execute(self, name: str, args: dict[str, Any] | None, user_id: str) -> dict[str, Any]:
        """Run one function call and return a JSON-serializable result."""
        pass

    @abstractmethod
    async def user_currency(self, user_id: str) -> str:
        """Default currency code of the user (shown to the model)."""
        pass

    @abstractmethod
    def summarize(self, results: list[tuple[str, dict[str, Any]]]) -> FunctionResult | None:
        """Fold the (name, result) pairs of one turn into a FunctionResult."""
        pass
