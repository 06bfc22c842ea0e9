"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_var, require_env_vars
from .errors import ConfigInconsistentError, ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .roblox import RobloxConfig, get_roblox_config
from .sync import (
    BASE_DELAY_SECONDS,
    DEFAULT_CONFIG_PATH,
    DEFAULT_MAPPING_PATH,
    MAX_RETRIES,
    SyncConfig,
    get_sync_config,
)

__all__ = [
    "BASE_DELAY_SECONDS",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_MAPPING_PATH",
    "MAX_RETRIES",
    "ConfigInconsistentError",
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "RobloxConfig",
    "SyncConfig",
    "configure_logging",
    "get_roblox_config",
    "get_sync_config",
    "require_env_var",
    "require_env_vars",
]
