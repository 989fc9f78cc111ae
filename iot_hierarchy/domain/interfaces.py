from __future__ import annotations
from typing import Any, Optional, Protocol, runtime_checkable


class StorageError(Exception):
    """The durable document could not be read or written."""


@runtime_checkable
class Repository(Protocol):
    async def init(self) -> None:
        ...

    async def load(self) -> Optional[dict[str, Any]]:
        """Return the stored document, or None when nothing was stored yet."""
        ...

    async def save(self, document: dict[str, Any]) -> None:
        ...
