"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from spearmint.adapters.declarations import load_declared_config, write_default_config
from spearmint.adapters.lockfile import JsonMappingStore
from spearmint.adapters.roblox import RobloxGateway
from spearmint.config.roblox import get_roblox_config
from spearmint.config.sync import DEFAULT_CONFIG_PATH, DEFAULT_MAPPING_PATH, get_sync_config
from spearmint.domain.reconciler import ReconciliationResult, Reconciler
from spearmint.domain.retry import CancellationToken, RetryOrchestrator

if TYPE_CHECKING:
    from pathlib import Path

    from spearmint.config.sync import SyncConfig
    from spearmint.domain.ports.gateway import RemoteMutationGateway
    from spearmint.domain.types import RemoteId, ResourceKind

type GatewayFactory = Callable[[int], AbstractContextManager[RemoteMutationGateway]]

log = getLogger(__name__)


def _default_gateway_factory(universe_id: int) -> RobloxGateway:
    return RobloxGateway(universe_id=universe_id, config=get_roblox_config())


@dataclass(frozen=True, slots=True)
class SyncRunResult:
    universe_id: int
    mapping_path: Path
    reconciliation: ReconciliationResult


@dataclass(frozen=True, slots=True)
class ProductStatus:
    key: str
    kind: ResourceKind
    name: str
    price: int
    remote_id: RemoteId | None
    source: str | None


def init_config(path: Path = DEFAULT_CONFIG_PATH, *, force: bool = False) -> Path:
    """Write a starter configuration file."""

    written = write_default_config(path, force=force)
    log.info(f"Created config file: {written}")
    return written


def sync_products(
    *,
    config_path: Path = DEFAULT_CONFIG_PATH,
    mapping_path: Path = DEFAULT_MAPPING_PATH,
    gateway_factory: GatewayFactory | None = None,
    sync_config: SyncConfig | None = None,
    cancellation: CancellationToken | None = None,
) -> SyncRunResult:
    """Reconcile every declared resource and persist the resulting mapping.

    Configuration, mapping and credential problems raise before any remote call.
    The mapping is written even when the run is interrupted, since it only ever
    holds successfully synchronized state.
    """

    declared = load_declared_config(config_path)
    store = JsonMappingStore.load(mapping_path)
    settings = sync_config or get_sync_config()
    factory = gateway_factory or _default_gateway_factory
    gateway_context = factory(declared.universe_id)

    retry = RetryOrchestrator(
        max_retries=settings.max_retries,
        base_delay=settings.base_delay_seconds,
        jitter=settings.jitter,
        cancellation=cancellation or CancellationToken(),
    )
    log.info(
        f"Syncing {len(declared.resources)} products for universe {declared.universe_id}"
    )

    try:
        with gateway_context as gateway:
            reconciler = Reconciler(
                gateway=gateway,
                retry=retry,
                checkpoint_each_resource=settings.checkpoint_each_resource,
            )
            result = reconciler.reconcile_all(declared.resources, store)
    finally:
        store.save()
        log.info(f"Mapping saved to: {mapping_path}")

    return SyncRunResult(
        universe_id=declared.universe_id,
        mapping_path=mapping_path,
        reconciliation=result,
    )


def list_products(
    *,
    config_path: Path = DEFAULT_CONFIG_PATH,
    mapping_path: Path = DEFAULT_MAPPING_PATH,
) -> tuple[int, list[ProductStatus]]:
    """Return the universe id and the known remote id of every declared resource."""

    declared = load_declared_config(config_path)
    store = JsonMappingStore.load(mapping_path)

    statuses: list[ProductStatus] = []
    for resource in declared.resources:
        record = store.get(resource.key)
        if resource.product_id is not None:
            remote_id, source = resource.product_id, "config"
        elif record is not None:
            remote_id, source = record.remote_id, "mapping"
        else:
            remote_id, source = None, None
        statuses.append(
            ProductStatus(
                key=resource.key,
                kind=resource.kind,
                name=resource.name,
                price=resource.price,
                remote_id=remote_id,
                source=source,
            )
        )
    return declared.universe_id, statuses
