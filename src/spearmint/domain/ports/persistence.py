"""Port for the store holding synchronization records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from spearmint.domain.types import ResourceKey, SynchronizationRecord


@runtime_checkable
class MappingStore(Protocol):
    """Owns the key -> record mapping for the duration of one run.

    Records handed out by ``get`` are mutated in place by the reconciler;
    ``checkpoint`` persists whatever is currently held.
    """

    @property
    def records(self) -> Mapping[ResourceKey, SynchronizationRecord]: ...

    def get(self, key: ResourceKey) -> SynchronizationRecord | None: ...

    def put(self, key: ResourceKey, record: SynchronizationRecord) -> None: ...

    def checkpoint(self) -> None: ...


__all__ = ["MappingStore"]
