from __future__ import annotations

import pytest

_RUN_ENV_VARS = (
    "ROBLOX_PRODUCTS_API_KEY",
    "SPEARMINT_MAX_RETRIES",
    "SPEARMINT_RETRY_BASE_DELAY",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _RUN_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
