"""JSON-file conversation store.

One file per record under a base directory. Writes go to a temporary
file that is then moved into place, so a crash never leaves a
half-written record behind.
"""

import asyncio
import re
from pathlib import Path

from .base import ConversationStore

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


class FileConversationStore(ConversationStore):
    """Store chat records as JSON files."""

    def __init__(self, base_dir: str | Path = "./chat_history"):
        self.base_dir = Path(base_dir)

    async def connect(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)

    async def disconnect(self) -> None:
        pass

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{_UNSAFE.sub('_', key)}.json"

    async def _read_record(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    async def _write_records(self, records: dict[str, str]) -> None:
        await asyncio.to_thread(self._write_sync, records)

    def _write_sync(self, records: dict[str, str]) -> None:
        for key, payload in records.items():
            path = self._path(key)
            tmp_path = path.with_suffix(path.suffix + ".tmp")
            tmp_path.write_text(payload, encoding="utf-8")
            tmp_path.replace(path)

    async def _delete_records(self, keys: list[str]) -> None:
        for key in keys:
            self._path(key).unlink(missing_ok=True)

    @property
    def backend_type(self) -> str:
        return "file"
