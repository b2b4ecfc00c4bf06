from __future__ import annotations

import pytest

from healthcare_client.config import (
    DEFAULT_HEALTHCARE_BASE_URL,
    DEFAULT_RESOURCE_MANAGER_BASE_URL,
    get_settings,
)


def test_defaults_when_env_is_empty() -> None:
    s = get_settings({})
    assert s.healthcare_base_url == DEFAULT_HEALTHCARE_BASE_URL
    assert s.resource_manager_base_url == DEFAULT_RESOURCE_MANAGER_BASE_URL
    assert s.access_token is None
    assert s.http_timeout == 30.0


def test_env_overrides() -> None:
    s = get_settings(
        {
            "HEALTHCARE_BASE_URL": "http://localhost:8000/",
            "RESOURCE_MANAGER_BASE_URL": "http://localhost:8000",
            "HEALTHCARE_ACCESS_TOKEN": "ya29.token",
            "HTTP_TIMEOUT": "5.5",
            "LOG_LEVEL": "debug",
        }
    )
    assert s.healthcare_base_url == "http://localhost:8000"
    assert s.resource_manager_base_url == "http://localhost:8000"
    assert s.access_token == "ya29.token"
    assert s.http_timeout == 5.5
    assert s.log_level == "DEBUG"


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEALTHCARE_ACCESS_TOKEN", "from-env")
    assert get_settings().access_token == "from-env"


@pytest.mark.parametrize("raw", ["zero", "0", "-1"])
def test_invalid_timeout(raw: str) -> None:
    with pytest.raises(ValueError):
        get_settings({"HTTP_TIMEOUT": raw})


def test_unknown_log_level_is_rejected() -> None:
    with pytest.raises(ValueError):
        get_settings({"LOG_LEVEL": "verbose"})
