from typing import Any

from .base import ChatService
from .providers import GeminiChatService


def create_chat_service(provider: str, **config: Any) -> ChatService:
    """Create a function-calling chat service.

    Args:
        provider: Provider type ('gemini')
        **config: Provider-specific configuration
            For Gemini:
                - api_key: str (required)
                - executor: FunctionExecutor (required)
                - model: str (default: 'gemini-2.5-flash')
                - max_function_rounds: int (default: 3)

    Returns:
        Initialized chat service

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> service = create_chat_service(
        ...     "gemini",
        ...     api_key="...",
        ...     executor=FinanceToolkit(repository),
        ... )
    """
    provider_lower = provider.lower()

    if provider_lower == "gemini":
        for key in ("api_key", "executor"):
            if key not in config:
                raise TypeError(f"Gemini provider requires '{key}' in config")
        return GeminiChatService(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'gemini'"
    )
