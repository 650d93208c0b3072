"""Redis-backed endpoint using SET NX PX and a server-side unlock script."""

from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from redquorum.core.endpoints import UNLOCK_SCRIPT
from redquorum.core.models import EndpointConfig
from redquorum.utils.logging import get_logger


class RedisEndpoint:
    def __init__(self, config: EndpointConfig, *, client: Optional[Redis] = None) -> None:
        self.config = config
        self.address = config.address
        self.logger = get_logger("RedisEndpoint")
        self._redis = client or Redis(
            host=config.host,
            port=config.port,
            db=config.db,
            password=config.password,
            socket_timeout=config.socket_timeout,
            socket_connect_timeout=config.socket_timeout,
            **config.options,
        )

    async def connect(self) -> bool:
        try:
            await self._redis.ping()
        except (RedisError, OSError) as exc:
            self.logger.error("Could not connect to %s: %s", self.address, exc)
            return False
        return True

    async def set_if_absent(self, resource: str, token: str, ttl_ms: int) -> bool:
        return bool(await self._redis.set(resource, token, nx=True, px=ttl_ms))

    async def compare_and_delete(self, resource: str, token: str) -> int:
        return int(await self._redis.eval(UNLOCK_SCRIPT, 1, resource, token))

    async def close(self) -> None:
        await self._redis.aclose()

    def __repr__(self) -> str:
        return f"RedisEndpoint({self.address})"
