"""Roblox Open Cloud configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

ROBLOX_API_KEY_ENV = "ROBLOX_PRODUCTS_API_KEY"
ROBLOX_BASE_URL = "https://apis.roblox.com"
ROBLOX_TIMEOUT_SECONDS = 30.0


def default_roblox_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="roblox",
        base_url=ROBLOX_BASE_URL,
        timeout_seconds=ROBLOX_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
    )


@dataclass(frozen=True)
class RobloxConfig:
    """Holds Roblox Open Cloud credentials and client settings."""

    api_key: str
    resilience: ResilienceConfig

    def __repr__(self) -> str:
        return f"RobloxConfig(api_key='***', resilience={self.resilience!r})"


def get_roblox_config(*, resilience: ResilienceConfig | None = None) -> RobloxConfig:
    values = require_env_vars((ROBLOX_API_KEY_ENV,))
    return RobloxConfig(
        api_key=values[ROBLOX_API_KEY_ENV],
        resilience=resilience or default_roblox_resilience(),
    )
