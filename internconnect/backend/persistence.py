"""Where the backend client keeps its serialized auth session."""

from typing import Protocol


class SessionStorage(Protocol):
    """Key/value store for the serialized session (browser-storage shaped)."""

    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...


class MemorySessionStorage:
    """Process-local session storage; lost on restart."""

    def __init__(self):
        self._items: dict[str, str] = {}

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
