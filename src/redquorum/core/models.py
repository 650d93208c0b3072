"""Value objects shared across the lock manager."""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_DELAY = 200
CLOCK_DRIFT_FACTOR = 0.01
# Fixed allowance (ms) for rounding and scheduling jitter.
DRIFT_CONSTANT_MS = 2
TOKEN_BYTES = 32


class EndpointConfig(BaseModel):
    """Connection descriptor for one independent Redis instance."""

    host: str = "localhost"
    port: int = Field(default=6379, ge=1, le=65535)
    db: int = Field(default=0, ge=0)
    password: Optional[str] = None
    socket_timeout: Optional[float] = Field(default=None, gt=0)
    options: Dict[str, Any] = Field(default_factory=dict)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def from_url(cls, url: str) -> "EndpointConfig":
        parsed = urlparse(url)
        if parsed.scheme not in ("redis", "rediss"):
            raise ValueError(f"Unsupported endpoint URL scheme: {url!r}")
        path = parsed.path.lstrip("/")
        try:
            db = int(path) if path else 0
        except ValueError as exc:
            raise ValueError(f"Invalid database index in endpoint URL: {url!r}") from exc
        options: Dict[str, Any] = {}
        if parsed.scheme == "rediss":
            options["ssl"] = True
        return cls(
            host=parsed.hostname or "localhost",
            port=parsed.port or 6379,
            db=db,
            password=unquote(parsed.password) if parsed.password else None,
            options=options,
        )


class LockOptions(BaseModel):
    """Retry policy and timing allowances for acquisition."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    retry_count: int = Field(default=DEFAULT_RETRY_COUNT, ge=1)
    # Upper bound (ms) of the randomized pause between rounds.
    retry_delay: int = Field(default=DEFAULT_RETRY_DELAY, ge=1)
    clock_drift_factor: float = Field(default=CLOCK_DRIFT_FACTOR, ge=0, lt=1)

    def drift_for(self, ttl: int) -> int:
        """Milliseconds subtracted from ``ttl`` to absorb clock skew."""
        return int(ttl * self.clock_drift_factor) + DRIFT_CONSTANT_MS


class Lock(BaseModel):
    """A granted lock. ``validity`` is the remaining safe hold time in ms."""

    model_config = ConfigDict(frozen=True)

    resource: str
    token: str
    validity: int
