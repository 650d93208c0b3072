"""Interface every store instance taking part in the quorum must offer."""

from __future__ import annotations

import time
from typing import Callable, Protocol, runtime_checkable

# Returns monotonic milliseconds.
Clock = Callable[[], int]


def monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


# Deletes the key only while it still holds our token.
UNLOCK_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


@runtime_checkable
class StoreEndpoint(Protocol):
    address: str

    async def connect(self) -> bool:
        """Open (or verify) the connection; False when the instance is unreachable."""
        ...

    async def set_if_absent(self, resource: str, token: str, ttl_ms: int) -> bool:
        """Store ``token`` under ``resource`` only if absent, expiring after ``ttl_ms``."""
        ...

    async def compare_and_delete(self, resource: str, token: str) -> int:
        """Atomically delete ``resource`` if it holds ``token``; return the deletion count."""
        ...

    async def close(self) -> None:
        ...
