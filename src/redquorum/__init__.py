"""Quorum-based distributed locks over independent Redis instances."""

from .core.manager import LockManager, quorum_for
from .core.models import EndpointConfig, Lock, LockOptions
from .core.settings import ManagerSettings

__all__ = [
    "__version__",
    "EndpointConfig",
    "Lock",
    "LockManager",
    "LockOptions",
    "ManagerSettings",
    "quorum_for",
]

__version__ = "0.1.0"
