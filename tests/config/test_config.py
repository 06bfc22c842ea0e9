from __future__ import annotations

import pytest

from spearmint.config import (
    BASE_DELAY_SECONDS,
    MAX_RETRIES,
    ConfigurationError,
    MissingConfigurationError,
    get_roblox_config,
    get_sync_config,
    require_env_var,
    require_env_vars,
)
from spearmint.config.sync import SyncConfig


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_raises_when_any_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR"])

    assert "MISSING_VAR" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_roblox_config_uses_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROBLOX_PRODUCTS_API_KEY", "key")

    config = get_roblox_config()

    assert config.api_key == "key"
    assert config.resilience.base_url == "https://apis.roblox.com"
    assert config.resilience.retry.status_forcelist == frozenset()


def test_sync_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SPEARMINT_MAX_RETRIES", raising=False)
    monkeypatch.delenv("SPEARMINT_RETRY_BASE_DELAY", raising=False)

    config = get_sync_config()

    assert config.max_retries == MAX_RETRIES == 5
    assert config.base_delay_seconds == BASE_DELAY_SECONDS == 0.5


def test_sync_config_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SPEARMINT_MAX_RETRIES", "2")
    monkeypatch.setenv("SPEARMINT_RETRY_BASE_DELAY", "0.1")

    config = get_sync_config()

    assert (config.max_retries, config.base_delay_seconds) == (2, 0.1)


def test_sync_config_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SPEARMINT_MAX_RETRIES", "many")

    with pytest.raises(ConfigurationError, match="SPEARMINT_MAX_RETRIES"):
        get_sync_config()


def test_sync_config_validates_ranges() -> None:
    with pytest.raises(ConfigurationError):
        SyncConfig(max_retries=-1)
    with pytest.raises(ConfigurationError):
        SyncConfig(jitter=2.0)
