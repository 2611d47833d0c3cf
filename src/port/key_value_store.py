from typing import Protocol


class KeyValueStore(Protocol):
    """Client-side string key-value storage tier (durable or session-scoped)."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...
