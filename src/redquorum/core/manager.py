"""Quorum lock manager over independent store instances.

A lock on ``resource`` is granted when a strict majority of endpoints accepted
``SET resource token NX PX ttl`` and enough of ``ttl`` is left once the time
spent talking to them and a clock-drift allowance are subtracted. Failed rounds
release whatever they managed to set before backing off and retrying with a
fresh token.
"""

from __future__ import annotations

import asyncio
import random
import secrets
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional, Sequence, Tuple, Union

from redquorum.core.endpoints import Clock, StoreEndpoint, monotonic_ms
from redquorum.core.endpoints_redis import RedisEndpoint
from redquorum.core.models import TOKEN_BYTES, EndpointConfig, Lock, LockOptions
from redquorum.core.settings import ManagerSettings
from redquorum.services.audit_logger import AuditLogger
from redquorum.utils.logging import get_logger

TokenSource = Callable[[int], bytes]
EndpointLike = Union[StoreEndpoint, EndpointConfig]


def quorum_for(count: int) -> int:
    """Number of endpoints that must accept a write: a strict majority."""
    if count < 1:
        raise ValueError("At least one endpoint is required")
    if count == 1:
        return 1
    return count // 2 + 1


class LockManager:
    """Acquire and release locks across a fixed set of endpoints."""

    def __init__(
        self,
        endpoints: Sequence[EndpointLike],
        options: Optional[Union[LockOptions, Mapping[str, Any]]] = None,
        *,
        clock: Optional[Clock] = None,
        token_source: Optional[TokenSource] = None,
        rng: Optional[random.Random] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        if not endpoints:
            raise ValueError("LockManager requires at least one endpoint")
        self._endpoints: Tuple[StoreEndpoint, ...] = tuple(
            RedisEndpoint(item) if isinstance(item, EndpointConfig) else item for item in endpoints
        )
        if options is None:
            options = LockOptions()
        elif not isinstance(options, LockOptions):
            options = LockOptions.model_validate(dict(options))
        self.options: LockOptions = options
        self.quorum = quorum_for(len(self._endpoints))
        self._clock = clock or monotonic_ms
        self._token_source = token_source or secrets.token_bytes
        self._random = rng or random.Random(self._clock())
        self._audit = audit_logger
        self.logger = get_logger("LockManager")

    @classmethod
    def from_settings(cls, settings: ManagerSettings, **kwargs: Any) -> "LockManager":
        if settings.audit_log_path and "audit_logger" not in kwargs:
            kwargs["audit_logger"] = AuditLogger(settings.audit_log_path)
        return cls(settings.endpoints, settings.lock, **kwargs)

    @property
    def endpoints(self) -> Tuple[StoreEndpoint, ...]:
        return self._endpoints

    async def connect(self) -> bool:
        """Connect every endpoint in order; False as soon as one fails."""
        for endpoint in self._endpoints:
            if not await endpoint.connect():
                self.logger.error("Could not connect to %s", endpoint.address)
                return False
        return True

    async def close(self) -> None:
        results = await asyncio.gather(
            *(endpoint.close() for endpoint in self._endpoints), return_exceptions=True
        )
        for endpoint, result in zip(self._endpoints, results):
            if isinstance(result, BaseException):
                self.logger.debug("Error closing %s: %s", endpoint.address, result)

    async def lock(self, resource: str, ttl: int) -> Optional[Lock]:
        """Try to lock ``resource`` for ``ttl`` milliseconds.

        Returns the granted :class:`Lock`, or None once every retry round has
        failed. Contention is an expected outcome and never raises.
        """
        self._validate(resource, ttl)
        retry_count = self.options.retry_count
        drift = self.options.drift_for(ttl)

        for attempt in range(1, retry_count + 1):
            token = self._new_token()
            try:
                start = self._clock()
                accepted = await self._lock_instances(resource, token, ttl)
                validity = ttl - (self._clock() - start) - drift
                if accepted >= self.quorum and validity > 0:
                    lock = Lock(resource=resource, token=token, validity=validity)
                    self.logger.debug(
                        "Locked %s (validity %dms, %d/%d endpoints)", resource, validity, accepted, len(self._endpoints)
                    )
                    # The caller only owns the lock once it is returned.
                    if self._audit:
                        await self._audit_safely(
                            self._audit.acquired(lock, ttl=ttl, accepted=accepted, attempt=attempt)
                        )
                    return lock
                self.logger.debug(
                    "Round %d/%d on %s failed (%d/%d accepted, quorum %d, validity %dms)",
                    attempt,
                    retry_count,
                    resource,
                    accepted,
                    len(self._endpoints),
                    self.quorum,
                    validity,
                )
                await self._unlock_instances(resource, token)
            except asyncio.CancelledError:
                self.logger.warning("Lock on %s cancelled; releasing partial writes", resource)
                await asyncio.shield(self._unlock_instances(resource, token))
                raise
            if attempt < retry_count:
                await asyncio.sleep(self._random.randint(1, self.options.retry_delay) / 1000)

        self.logger.warning("Could not lock %s after %d attempts", resource, retry_count)
        if self._audit:
            await self._audit_safely(self._audit.failed(resource, ttl=ttl, attempts=retry_count))
        return None

    async def unlock(self, lock: Lock) -> bool:
        """Release ``lock`` on every endpoint. Best-effort; always returns True."""
        deleted = await self._unlock_instances(lock.resource, lock.token)
        self.logger.debug("Unlocked %s (%d keys removed)", lock.resource, deleted)
        if self._audit:
            await self._audit_safely(self._audit.released(lock, deleted=deleted))
        return True

    @asynccontextmanager
    async def locked(self, resource: str, ttl: int) -> AsyncIterator[Optional[Lock]]:
        """Hold ``resource`` for the duration of the block if it can be locked.

        Yields None when the lock could not be obtained.
        """
        lock = await self.lock(resource, ttl)
        try:
            yield lock
        finally:
            if lock is not None:
                await self.unlock(lock)

    def _validate(self, resource: str, ttl: int) -> None:
        if not isinstance(resource, str) or not resource:
            raise ValueError("resource must be a non-empty string")
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
            raise ValueError(f"ttl must be a positive integer number of milliseconds, got {ttl!r}")

    def _new_token(self) -> str:
        return self._token_source(TOKEN_BYTES).hex().upper()

    async def _lock_instances(self, resource: str, token: str, ttl: int) -> int:
        results = await asyncio.gather(
            *(endpoint.set_if_absent(resource, token, ttl) for endpoint in self._endpoints),
            return_exceptions=True,
        )
        accepted = 0
        for endpoint, result in zip(self._endpoints, results):
            if isinstance(result, BaseException):
                self.logger.debug("SET on %s failed: %s", endpoint.address, result)
            elif result:
                accepted += 1
        return accepted

    async def _unlock_instances(self, resource: str, token: str) -> int:
        # Sent to every endpoint, including those that refused this token.
        results = await asyncio.gather(
            *(endpoint.compare_and_delete(resource, token) for endpoint in self._endpoints),
            return_exceptions=True,
        )
        deleted = 0
        for endpoint, result in zip(self._endpoints, results):
            if isinstance(result, BaseException):
                self.logger.debug("Unlock on %s failed: %s", endpoint.address, result)
            else:
                deleted += int(result)
        return deleted

    async def _audit_safely(self, record: Awaitable[None]) -> None:
        try:
            await record
        except Exception:
            self.logger.debug("Failed to persist audit log", exc_info=True)
