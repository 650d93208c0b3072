"""Lock protocol, endpoint adapters and their configuration."""

from .endpoints import UNLOCK_SCRIPT, StoreEndpoint
from .endpoints_memory import InMemoryEndpoint
from .endpoints_redis import RedisEndpoint
from .manager import LockManager, quorum_for
from .models import EndpointConfig, Lock, LockOptions
from .settings import ManagerSettings

__all__ = [
    "UNLOCK_SCRIPT",
    "StoreEndpoint",
    "InMemoryEndpoint",
    "RedisEndpoint",
    "LockManager",
    "quorum_for",
    "EndpointConfig",
    "Lock",
    "LockOptions",
    "ManagerSettings",
]
