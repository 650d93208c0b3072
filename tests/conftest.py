from __future__ import annotations

import itertools
from typing import List, Tuple

import pytest

from redquorum.core.endpoints_memory import InMemoryEndpoint


class FakeClock:
    """Monotonic millisecond clock that advances ``step`` on every read."""

    def __init__(self, start: int = 0, step: int = 0) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


class CountingTokens:
    """Deterministic stand-in for a random byte source."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def __call__(self, size: int) -> bytes:
        return next(self._counter).to_bytes(size, "big")


class RecordingEndpoint(InMemoryEndpoint):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.sets: List[Tuple[str, str, int]] = []
        self.deletes: List[Tuple[str, str]] = []

    async def set_if_absent(self, resource: str, token: str, ttl_ms: int) -> bool:
        self.sets.append((resource, token, ttl_ms))
        return await super().set_if_absent(resource, token, ttl_ms)

    async def compare_and_delete(self, resource: str, token: str) -> int:
        self.deletes.append((resource, token))
        return await super().compare_and_delete(resource, token)


@pytest.fixture
def endpoints() -> List[RecordingEndpoint]:
    return [RecordingEndpoint(f"memory-{i}") for i in range(3)]
