"""In-memory conversation store.

Keeps serialized records in a dict, so sessions survive reloads within
the process but are lost when the application exits. Suitable for
single-session use or testing.
"""

from .base import ConversationStore


class InMemoryConversationStore(ConversationStore):
    """Dict-backed conversation store (process lifetime only)."""

    def __init__(self) -> None:
        self._records: dict[str, str] = {}

    async def connect(self) -> None:
        """Initialize memory (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close memory (no-op for in-memory)."""
        pass

    async def _read_record(self, key: str) -> str | None:
        return self._records.get(key)

    async def _write_records(self, records: dict[str, str]) -> None:
        self._records.update(records)

    async def _delete_records(self, keys: list[str]) -> None:
        for key in keys:
            self._records.pop(key, None)

    @property
    def backend_type(self) -> str:
        return "memory"
