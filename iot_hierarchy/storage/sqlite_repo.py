from __future__ import annotations
import json
from datetime import datetime, timezone
from typing import Any, Optional

import aiosqlite

from ..domain.interfaces import StorageError
from ..domain.models import Kind


class SQLiteRepository:
    def __init__(self, path: str) -> None:
        self._path = path

    async def init(self) -> None:
        try:
            async with aiosqlite.connect(self._path) as db:
                await db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS collections (
                        name TEXT PRIMARY KEY,
                        body TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                    """
                )
                await db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Cannot initialise {self._path}: {e}") from e

    async def load(self) -> Optional[dict[str, Any]]:
        try:
            async with aiosqlite.connect(self._path) as db:
                cur = await db.execute("SELECT name, body FROM collections")
                rows = await cur.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(f"Cannot read {self._path}: {e}") from e
        if not rows:
            return None
        try:
            return {name: json.loads(body) for name, body in rows}
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt collection body in {self._path}: {e}") from e

    async def save(self, document: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            async with aiosqlite.connect(self._path) as db:
                # one transaction: all five collections land together or not at all
                for kind in Kind:
                    await db.execute(
                        "INSERT INTO collections(name, body, updated_at) VALUES (?, ?, ?) "
                        "ON CONFLICT(name) DO UPDATE SET body=excluded.body, updated_at=excluded.updated_at",
                        (kind.value, json.dumps(document.get(kind.value, []), ensure_ascii=False), now),
                    )
                await db.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Cannot write {self._path}: {e}") from e
