"""Abstract base class for conversation stores.

The abstraction hides:
- Storage format and location (dict, SQLite, JSON files)
- Connection management

Every backend persists two records per user, addressed by user-scoped
keys: ``{"messages": [...]}`` and ``{"context": [...]}``. Missing records
are a normal state and yield defaults.
"""

import json
import logging
from abc import ABC, abstractmethod

from pydantic import TypeAdapter, ValidationError

from ..config import CONTEXT_KEY_PREFIX, MESSAGES_KEY_PREFIX
from ..llm.models import ConversationTurn
from .models import ChatSession, Message, default_session

logger = logging.getLogger(__name__)

_messages_adapter = TypeAdapter(list[Message])


def messages_key(user_id: str) -> str:
    return f"{MESSAGES_KEY_PREFIX}{user_id}"


def context_key(user_id: str) -> str:
    return f"{CONTEXT_KEY_PREFIX}{user_id}"


class ConversationStore(ABC):
    """Load, save and clear chat sessions keyed by user id.

    Reads fail open (a default session is returned on any storage or
    deserialization error); write errors are logged and dropped so a
    conversational turn is never blocked by persistence.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the storage backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the storage backend gracefully."""

    @abstractmethod
    async def _read_record(self, key: str) -> str | None:
        """Return the stored payload for ``key`` or None if absent."""

    @abstractmethod
    async def _write_records(self, records: dict[str, str]) -> None:
        """Store every payload in ``records`` together."""

    @abstractmethod
    async def _delete_records(self, keys: list[str]) -> None:
        """Remove the given keys if present."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def load(self, user_id: str, display_name: str | None = None) -> ChatSession:
        """Read the persisted session of ``user_id``, or a default one.

        Fails open: unreadable or corrupt records yield the default session.

        Args:
            user_id: Owner of the conversation
            display_name: Name used in the greeting of a default session

        Returns:
            ChatSession with the stored transcript and context, or one
            greeting message and empty context
        """
        try:
            raw_messages = await self._read_record(messages_key(user_id))
            raw_context = await self._read_record(context_key(user_id))
        except Exception:
            logger.warning("Could not read chat history for %s; using defaults", user_id, exc_info=True)
            return default_session(user_id, display_name)

        try:
            messages = self._parse_messages(raw_messages)
            context = self._parse_context(raw_context)
        except (ValueError, ValidationError):
            logger.warning("Corrupt chat history for %s; using defaults", user_id, exc_info=True)
            return default_session(user_id, display_name)

        session = default_session(user_id, display_name)
        if messages:
            session.messages = messages
        session.context = context
        return session

    async def save(self, session: ChatSession) -> None:
        """Persist messages and context of ``session``.

        Write errors are logged and the write is dropped.

        Args:
            session: Session whose ``messages`` and ``context`` are stored
                under keys scoped to its user
        """
        messages = [m.model_dump(mode="json") for m in session.messages]
        records = {
            messages_key(session.user_id): json.dumps({"messages": messages}),
            context_key(session.user_id): json.dumps({"context": session.context}),
        }
        try:
            await self._write_records(records)
        except Exception:
            logger.warning("Dropped chat history write for %s", session.user_id, exc_info=True)

    async def clear(self, user_id: str, display_name: str | None = None) -> ChatSession:
        """Delete persisted history and return a fresh default session.

        Args:
            user_id: Owner of the conversation
            display_name: Name used in the new greeting

        Returns:
            ChatSession with one greeting message and empty context
        """
        try:
            await self._delete_records([messages_key(user_id), context_key(user_id)])
        except Exception:
            logger.warning("Could not clear chat history for %s", user_id, exc_info=True)
        return default_session(user_id, display_name)

    @staticmethod
    def _parse_messages(raw: str | None) -> list[Message]:
        if raw is None:
            return []
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError("messages record must be an object")
        return _messages_adapter.validate_python(payload.get("messages") or [])

    @staticmethod
    def _parse_context(raw: str | None) -> list[ConversationTurn]:
        if raw is None:
            return []
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError("context record must be an object")
        context = payload.get("context") or []
        if not isinstance(context, list) or not all(isinstance(turn, dict) for turn in context):
            raise ValueError("context must be a list of turns")
        return context
