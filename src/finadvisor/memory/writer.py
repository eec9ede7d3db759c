"""Fire-and-forget, per-user serialized session persistence.

Each user has a mailbox of depth one. Submitting a session replaces any
snapshot still waiting in the mailbox; a single drain task per user
writes snapshots one at a time, so writes never interleave and the
newest submitted state is always the last one written.
"""

import asyncio
import logging

from .base import ConversationStore
from .models import ChatSession

logger = logging.getLogger(__name__)


class SessionWriter:
    """Serializes background saves of chat sessions per user."""

    def __init__(self, store: ConversationStore):
        self._store = store
        self._pending: dict[str, ChatSession] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def store(self) -> ConversationStore:
        return self._store

    def submit(self, session: ChatSession) -> None:
        """Queue a snapshot of ``session`` for saving without waiting.

        Must be called from within a running event loop.

        Args:
            session: Session to persist; a deep copy is queued, replacing
                any snapshot of the same user not yet being written
        """
        user_id = session.user_id
        self._pending[user_id] = session.model_copy(deep=True)

        task = self._tasks.get(user_id)
        if task is None or task.done():
            self._tasks[user_id] = asyncio.get_running_loop().create_task(self._drain(user_id))

    def discard(self, user_id: str) -> None:
        """Drop a snapshot that has not started writing yet."""
        if self._pending.pop(user_id, None) is not None:
            logger.debug("Discarded queued chat history write for %s", user_id)

    def has_pending(self, user_id: str) -> bool:
        task = self._tasks.get(user_id)
        return user_id in self._pending or (task is not None and not task.done())

    async def flush(self, user_id: str | None = None) -> None:
        """Wait until queued writes (of one user, or all) have completed."""
        if user_id is None:
            tasks = list(self._tasks.values())
        else:
            tasks = [self._tasks[user_id]] if user_id in self._tasks else []
        await asyncio.gather(*(task for task in tasks if not task.done()))

    async def _drain(self, user_id: str) -> None:
        while (snapshot := self._pending.pop(user_id, None)) is not None:
            await self._store.save(snapshot)
            logger.debug("Saved chat history for %s (%d messages)", user_id, len(snapshot.messages))
