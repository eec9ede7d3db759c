from .base import ChatService, FunctionExecutor
from .errors import ChatServiceError, MalformedResponseError, TransportError
from .factory import create_chat_service
from .models import ChartSpec, ChatReply, ConversationTurn, CreatedItem, FunctionResult
from .providers import GeminiChatService

__all__ = [
    "ChatService",
    "FunctionExecutor",
    "create_chat_service",
    "ChartSpec",
    "ChatReply",
    "ChatServiceError",
    "ConversationTurn",
    "CreatedItem",
    "FunctionResult",
    "GeminiChatService",
    "MalformedResponseError",
    "TransportError",
]
