"""Conversation memory module.

Provides persistent chat transcripts and model context per user.
"""

from .base import ConversationStore, context_key, messages_key
from .factory import create_conversation_store
from .models import ChatSession, Message, default_session, greeting_message
from .writer import SessionWriter

__all__ = [
    "ChatSession",
    "ConversationStore",
    "Message",
    "SessionWriter",
    "context_key",
    "create_conversation_store",
    "default_session",
    "greeting_message",
    "messages_key",
]
