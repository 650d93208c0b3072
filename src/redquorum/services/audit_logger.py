"""JSON Lines trail of lock grants, failed acquisitions and releases."""

from __future__ import annotations

import asyncio
import datetime as dt
import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from redquorum.core.models import Lock

# Hex characters of a token kept in the trail; the full token grants ownership.
TOKEN_FINGERPRINT_CHARS = 8


class LockEvent(str, Enum):
    ACQUIRED = "lock_acquired"
    FAILED = "lock_failed"
    RELEASED = "lock_released"


def fingerprint(token: str) -> str:
    return token[:TOKEN_FINGERPRINT_CHARS]


class AuditLogger:
    """Append one record per lock event so contention on a resource can be reviewed."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or Path(os.getenv("REDQUORUM_AUDIT_LOG", "artifacts/locks.log"))
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def acquired(self, lock: Lock, *, ttl: int, accepted: int, attempt: int) -> None:
        await self._record(
            LockEvent.ACQUIRED,
            lock.resource,
            token=fingerprint(lock.token),
            ttl=ttl,
            validity=lock.validity,
            accepted=accepted,
            attempt=attempt,
        )

    async def failed(self, resource: str, *, ttl: int, attempts: int) -> None:
        await self._record(LockEvent.FAILED, resource, ttl=ttl, attempts=attempts)

    async def released(self, lock: Lock, *, deleted: int) -> None:
        await self._record(LockEvent.RELEASED, lock.resource, token=fingerprint(lock.token), deleted=deleted)

    async def _record(self, event: LockEvent, resource: str, **payload: Any) -> None:
        record = {
            "timestamp": dt.datetime.now(dt.timezone.utc).isoformat(),
            "event": event.value,
            "resource": resource,
            "payload": payload,
        }
        async with self._lock:
            await asyncio.to_thread(self._append_line, record)

    def _append_line(self, record: Dict[str, Any]) -> None:
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=True))
            fh.write("\n")
