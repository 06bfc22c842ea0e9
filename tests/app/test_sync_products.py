from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003

import pytest

from spearmint.app import init_config, list_products, sync_products
from spearmint.config.errors import ConfigInconsistentError, MissingConfigurationError
from spearmint.config.sync import SyncConfig
from spearmint.domain.errors import MappingFileError, RemoteRejectedError
from spearmint.domain.retry import CancellationToken
from spearmint.domain.types import OutcomeStatus, ResourceKind
from tests.helpers.fakes import FakeGateway

CONFIG = """\
universe_id = 42

[products.coins]
type = "dev_product"
name = "100 Coins"
price = 25

[products.vip]
type = "gamepass"
name = "VIP"
price = 400
"""


@pytest.fixture
def workspace(tmp_path: Path) -> tuple[Path, Path]:
    config_path = tmp_path / "spearmint.toml"
    config_path.write_text(CONFIG, encoding="utf-8")
    return config_path, tmp_path / "spearmint.lock.json"


def _no_wait() -> SyncConfig:
    return SyncConfig(max_retries=1, base_delay_seconds=0.0, jitter=0.0)


def test_sync_creates_and_persists_mapping(workspace: tuple[Path, Path]) -> None:
    config_path, mapping_path = workspace
    gateway = FakeGateway(next_id=10)
    universes: list[int] = []

    def factory(universe_id: int) -> FakeGateway:
        universes.append(universe_id)
        return gateway

    result = sync_products(
        config_path=config_path,
        mapping_path=mapping_path,
        gateway_factory=factory,
        sync_config=_no_wait(),
    )

    assert universes == [42]
    assert gateway.entered is True
    assert gateway.exited is True
    assert [outcome.status for outcome in result.reconciliation.outcomes] == [
        OutcomeStatus.CREATED,
        OutcomeStatus.CREATED,
    ]
    lock = json.loads(mapping_path.read_text(encoding="utf-8"))
    assert lock["coins"] == {"name": "100 Coins", "price": 25, "roblox_id": 11}
    assert lock["vip"] == {"name": "VIP", "offsale": False, "price": 400, "roblox_id": 12}


def test_second_sync_is_idempotent(workspace: tuple[Path, Path]) -> None:
    config_path, mapping_path = workspace
    sync_products(
        config_path=config_path,
        mapping_path=mapping_path,
        gateway_factory=lambda _universe: FakeGateway(),
        sync_config=_no_wait(),
    )
    before = mapping_path.read_text(encoding="utf-8")
    second = FakeGateway()

    result = sync_products(
        config_path=config_path,
        mapping_path=mapping_path,
        gateway_factory=lambda _universe: second,
        sync_config=_no_wait(),
    )

    assert result.reconciliation.skipped == 2
    assert second.calls == []
    assert mapping_path.read_text(encoding="utf-8") == before


def test_failures_are_reported_and_successes_still_saved(workspace: tuple[Path, Path]) -> None:
    config_path, mapping_path = workspace

    def reject(_attempt: int) -> None:
        raise RemoteRejectedError("Failed to create gamepass: 403 - forbidden", status_code=403)

    result = sync_products(
        config_path=config_path,
        mapping_path=mapping_path,
        gateway_factory=lambda _universe: FakeGateway(failures={"VIP": reject}),
        sync_config=_no_wait(),
    )

    assert result.reconciliation.has_failures is True
    assert set(json.loads(mapping_path.read_text(encoding="utf-8"))) == {"coins"}


def test_cancelled_run_still_writes_mapping(workspace: tuple[Path, Path]) -> None:
    config_path, mapping_path = workspace
    token = CancellationToken()
    token.cancel()

    result = sync_products(
        config_path=config_path,
        mapping_path=mapping_path,
        gateway_factory=lambda _universe: FakeGateway(),
        sync_config=_no_wait(),
        cancellation=token,
    )

    assert result.reconciliation.failed == 2
    assert json.loads(mapping_path.read_text(encoding="utf-8")) == {}


def test_malformed_mapping_is_fatal_before_any_call(workspace: tuple[Path, Path]) -> None:
    config_path, mapping_path = workspace
    mapping_path.write_text("{not json", encoding="utf-8")
    gateway = FakeGateway()

    with pytest.raises(MappingFileError):
        sync_products(
            config_path=config_path,
            mapping_path=mapping_path,
            gateway_factory=lambda _universe: gateway,
        )

    assert gateway.entered is False
    assert mapping_path.read_text(encoding="utf-8") == "{not json"


def test_duplicate_names_prevent_reconciliation(tmp_path: Path) -> None:
    config_path = tmp_path / "spearmint.toml"
    config_path.write_text(
        CONFIG + '\n[products.more_coins]\ntype = "dev_product"\nname = "100 Coins"\nprice = 5\n',
        encoding="utf-8",
    )
    gateway = FakeGateway()

    with pytest.raises(ConfigInconsistentError):
        sync_products(
            config_path=config_path,
            mapping_path=tmp_path / "spearmint.lock.json",
            gateway_factory=lambda _universe: gateway,
        )

    assert gateway.calls == []
    assert not (tmp_path / "spearmint.lock.json").exists()


def test_missing_api_key_is_fatal(
    workspace: tuple[Path, Path],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    config_path, mapping_path = workspace
    monkeypatch.delenv("ROBLOX_PRODUCTS_API_KEY", raising=False)

    with pytest.raises(MissingConfigurationError):
        sync_products(config_path=config_path, mapping_path=mapping_path)

    assert not mapping_path.exists()


def test_list_products_reports_id_sources(workspace: tuple[Path, Path]) -> None:
    config_path, mapping_path = workspace
    mapping_path.write_text(json.dumps({"coins": {"roblox_id": 7}}), encoding="utf-8")

    universe_id, statuses = list_products(config_path=config_path, mapping_path=mapping_path)

    assert universe_id == 42
    by_key = {status.key: status for status in statuses}
    assert (by_key["coins"].remote_id, by_key["coins"].source) == (7, "mapping")
    assert (by_key["vip"].remote_id, by_key["vip"].source) == (None, None)
    assert by_key["vip"].kind is ResourceKind.GAMEPASS


def test_init_config_writes_template(tmp_path: Path) -> None:
    path = init_config(tmp_path / "spearmint.toml")

    assert path.exists()
    _, statuses = list_products(config_path=path, mapping_path=tmp_path / "missing.json")
    assert len(statuses) == 2
