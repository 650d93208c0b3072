from __future__ import annotations

from pathlib import Path

import pytest

from redquorum.core.manager import LockManager
from redquorum.core.models import EndpointConfig, LockOptions
from redquorum.core.settings import ManagerSettings


def test_endpoint_config_from_url():
    config = EndpointConfig.from_url("redis://:s%40cret@cache-2:6380/3")
    assert config.host == "cache-2"
    assert config.port == 6380
    assert config.db == 3
    assert config.password == "s@cret"
    assert config.address == "cache-2:6380"

    assert EndpointConfig.from_url("rediss://cache").options == {"ssl": True}


@pytest.mark.parametrize("url", ["http://cache:6379", "redis://cache:6379/zero"])
def test_endpoint_config_rejects_bad_urls(url):
    with pytest.raises(ValueError):
        EndpointConfig.from_url(url)


def test_lock_options_defaults_and_drift():
    options = LockOptions()
    assert (options.retry_count, options.retry_delay, options.clock_drift_factor) == (3, 200, 0.01)
    assert options.drift_for(1000) == 12
    assert options.drift_for(50) == 2


@pytest.mark.parametrize(
    "fields",
    [{"retry_count": 0}, {"retry_delay": 0}, {"clock_drift_factor": -0.1}, {"clock_drift_factor": 1}],
)
def test_lock_options_reject_invalid_values(fields):
    with pytest.raises(ValueError):
        LockOptions(**fields)


def test_settings_from_file(tmp_path: Path):
    path = tmp_path / "manager.yml"
    path.write_text(
        "endpoints:\n"
        "  - redis://a:6379\n"
        "  - host: b\n"
        "    port: 6380\n"
        "    socket_timeout: 0.05\n"
        "  - redis://c:6381/1\n"
        "lock:\n"
        "  retry_count: 5\n"
        "audit_log_path: logs/locks.log\n"
    )
    settings = ManagerSettings.from_file(path)

    assert [e.address for e in settings.endpoints] == ["a:6379", "b:6380", "c:6381"]
    assert settings.endpoints[1].socket_timeout == 0.05
    assert settings.lock.retry_count == 5
    assert settings.lock.retry_delay == 200
    assert settings.audit_log_path == (tmp_path / "logs/locks.log").resolve()

    manager = LockManager.from_settings(settings)
    assert manager.quorum == 2
    assert manager.options.retry_count == 5


@pytest.mark.parametrize(
    "content",
    ["endpoints: []\n", "lock:\n  retry_count: 1\n", "endpoints:\n  - ftp://a\n"],
)
def test_settings_from_file_rejects_invalid(tmp_path: Path, content: str):
    path = tmp_path / "manager.yml"
    path.write_text(content)
    with pytest.raises(ValueError):
        ManagerSettings.from_file(path)


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("REDQUORUM_ENDPOINTS", "redis://a:6379 redis://b:6379 redis://c:6379")
    monkeypatch.setenv("REDQUORUM_RETRY_COUNT", "7")
    monkeypatch.setenv("REDQUORUM_CLOCK_DRIFT_FACTOR", "0.02")
    monkeypatch.delenv("REDQUORUM_RETRY_DELAY", raising=False)
    monkeypatch.delenv("REDQUORUM_AUDIT_LOG", raising=False)

    settings = ManagerSettings.from_env()
    assert len(settings.endpoints) == 3
    assert settings.lock == LockOptions(retry_count=7, clock_drift_factor=0.02)
    assert settings.audit_log_path is None


def test_settings_from_env_requires_endpoints(monkeypatch):
    monkeypatch.delenv("REDQUORUM_ENDPOINTS", raising=False)
    with pytest.raises(ValueError):
        ManagerSettings.from_env()

    monkeypatch.setenv("REDQUORUM_ENDPOINTS", "redis://a:6379")
    monkeypatch.setenv("REDQUORUM_RETRY_COUNT", "three")
    with pytest.raises(ValueError):
        ManagerSettings.from_env()


def test_settings_from_file_rejects_non_mapping(tmp_path: Path):
    path = tmp_path / "manager.yml"
    path.write_text("- redis://a:6379\n- redis://b:6379\n")
    with pytest.raises(ValueError):
        ManagerSettings.from_file(path)


def test_settings_from_file_rejects_unknown_lock_option(tmp_path: Path):
    path = tmp_path / "manager.yml"
    path.write_text("endpoints:\n  - redis://a:6379\nlock:\n  retry_cout: 10\n")
    with pytest.raises(ValueError):
        ManagerSettings.from_file(path)
