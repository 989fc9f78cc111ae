from __future__ import annotations
import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from ..domain.interfaces import StorageError

logger = logging.getLogger(__name__)


class JsonFileRepository:
    """Whole-document JSON file; every save rewrites the file atomically."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)

    async def init(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._ensure_dir)

    async def load(self) -> Optional[dict[str, Any]]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read)

    async def save(self, document: dict[str, Any]) -> None:
        payload = json.dumps(document, ensure_ascii=False, indent=2)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write, payload)

    def _ensure_dir(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self._path.parent}: {e}") from e

    def _read(self) -> Optional[dict[str, Any]]:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            logger.warning("Database file %s not found, starting empty", self._path)
            return None
        except json.JSONDecodeError as e:
            raise StorageError(f"Database file {self._path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read database file {self._path}: {e}") from e

    def _write(self, payload: str) -> None:
        self._ensure_dir()
        fd, tmp = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self._path)
        except OSError as e:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise StorageError(f"Cannot write database file {self._path}: {e}") from e
