"""Auxiliary services used by the lock manager."""

from .audit_logger import AuditLogger, LockEvent

__all__ = ["AuditLogger", "LockEvent"]
