from .gemini import GeminiChatService

__all__ = ["GeminiChatService"]
