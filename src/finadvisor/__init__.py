"""
Finadvisor: a conversational finance assistant orchestrator.

Turns free-text user messages into function-calling model round trips,
interprets the structured function results and synchronizes the resulting
financial mutations back into application state and UI side effects.
"""

__version__ = "0.1.0"

from .assistant import (
    ConversationOrchestrator,
    PendingNotification,
    SendResult,
    SideEffectCoordinator,
    adapt_chart,
    interpret,
)
from .memory import ChatSession, ConversationStore, Message, create_conversation_store

__all__ = [
    "ChatSession",
    "ConversationOrchestrator",
    "ConversationStore",
    "Message",
    "PendingNotification",
    "SendResult",
    "SideEffectCoordinator",
    "adapt_chart",
    "create_conversation_store",
    "interpret",
]
