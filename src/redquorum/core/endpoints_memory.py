"""In-process endpoint with precise TTL semantics and an injectable clock."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from redquorum.core.endpoints import Clock, monotonic_ms


class InMemoryEndpoint:
    """Single-instance key/value store honouring the endpoint contract.

    Every operation runs to completion without awaiting, so on one event loop
    the compare-and-delete is as atomic as the Redis script it stands in for.
    Setting ``reachable`` to False makes the primitives raise ``ConnectionError``.
    """

    def __init__(self, address: str = "memory", *, clock: Optional[Clock] = None, reachable: bool = True) -> None:
        self.address = address
        self.reachable = reachable
        self._clock = clock or monotonic_ms
        # resource -> (token, expires_at_ms)
        self._data: Dict[str, Tuple[str, int]] = {}

    def _ensure_reachable(self) -> None:
        if not self.reachable:
            raise ConnectionError(f"{self.address} is unreachable")

    def _purge(self, resource: str) -> None:
        entry = self._data.get(resource)
        if entry is not None and entry[1] <= self._clock():
            del self._data[resource]

    async def connect(self) -> bool:
        return self.reachable

    async def set_if_absent(self, resource: str, token: str, ttl_ms: int) -> bool:
        self._ensure_reachable()
        self._purge(resource)
        if resource in self._data:
            return False
        self._data[resource] = (token, self._clock() + ttl_ms)
        return True

    async def compare_and_delete(self, resource: str, token: str) -> int:
        self._ensure_reachable()
        self._purge(resource)
        entry = self._data.get(resource)
        if entry is None or entry[0] != token:
            return 0
        del self._data[resource]
        return 1

    async def close(self) -> None:
        return None

    def get(self, resource: str) -> Optional[str]:
        """Current token stored under ``resource`` (for inspection)."""
        self._purge(resource)
        entry = self._data.get(resource)
        return entry[0] if entry else None

    def __repr__(self) -> str:
        return f"InMemoryEndpoint({self.address})"
