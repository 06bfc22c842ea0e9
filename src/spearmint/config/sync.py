"""Synchronization defaults for reconciliation runs."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from spearmint.domain.retry import BASE_DELAY_SECONDS, MAX_RETRIES

from .env import env_float, env_int
from .errors import ConfigurationError

DEFAULT_CONFIG_PATH: Final[Path] = Path("spearmint.toml")
DEFAULT_MAPPING_PATH: Final[Path] = Path("spearmint.lock.json")

BACKOFF_JITTER: Final[float] = 0.1


@dataclass(frozen=True, slots=True)
class SyncConfig:
    max_retries: int = MAX_RETRIES
    base_delay_seconds: float = BASE_DELAY_SECONDS
    jitter: float = BACKOFF_JITTER
    checkpoint_each_resource: bool = True

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be non-negative")
        if self.base_delay_seconds < 0:
            raise ConfigurationError("base_delay_seconds must be non-negative")
        if not 0 <= self.jitter <= 1:
            raise ConfigurationError("jitter must be between 0 and 1")


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        max_retries=env_int("SPEARMINT_MAX_RETRIES", MAX_RETRIES),
        base_delay_seconds=env_float("SPEARMINT_RETRY_BASE_DELAY", BASE_DELAY_SECONDS),
    )
