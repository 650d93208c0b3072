"""Manager settings loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from redquorum.core.models import EndpointConfig, LockOptions
from redquorum.utils.env import get_float_env, get_int_env, get_list_env


class ManagerSettings(BaseModel):
    endpoints: List[EndpointConfig] = Field(min_length=1)
    lock: LockOptions = Field(default_factory=LockOptions)
    audit_log_path: Optional[Path] = None

    @classmethod
    def from_file(cls, path: Path) -> "ManagerSettings":
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid manager settings: expected a mapping in {path}, got {type(data).__name__}")
        # Endpoints may be given as URLs or as mappings.
        endpoints = data.get("endpoints")
        if isinstance(endpoints, list):
            try:
                data["endpoints"] = [
                    EndpointConfig.from_url(item) if isinstance(item, str) else item for item in endpoints
                ]
            except ValueError as exc:
                raise ValueError(f"Invalid manager settings: {exc}") from exc
        try:
            settings = cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid manager settings: {exc}") from exc
        if settings.audit_log_path and not settings.audit_log_path.is_absolute():
            settings.audit_log_path = (path.parent / settings.audit_log_path).resolve()
        return settings

    @classmethod
    def from_env(cls) -> "ManagerSettings":
        """Build settings from ``REDQUORUM_*`` environment variables."""
        urls = get_list_env("REDQUORUM_ENDPOINTS")
        lock_fields = {
            "retry_count": get_int_env("REDQUORUM_RETRY_COUNT"),
            "retry_delay": get_int_env("REDQUORUM_RETRY_DELAY"),
            "clock_drift_factor": get_float_env("REDQUORUM_CLOCK_DRIFT_FACTOR"),
        }
        audit = os.getenv("REDQUORUM_AUDIT_LOG")
        try:
            return cls(
                endpoints=[EndpointConfig.from_url(url) for url in urls],
                lock=LockOptions(**{k: v for k, v in lock_fields.items() if v is not None}),
                audit_log_path=Path(audit) if audit else None,
            )
        except ValidationError as exc:
            raise ValueError(f"Invalid manager settings: {exc}") from exc
