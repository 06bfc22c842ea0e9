"""Port for mutating resources on the remote platform."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from spearmint.domain.types import ResourceKind

if TYPE_CHECKING:
    from pathlib import Path

    from spearmint.domain.types import DeclaredResource, RemoteId


@dataclass(frozen=True, slots=True)
class ResourceFields:
    """Field set pushed to the remote side on create or update."""

    name: str
    price: int
    description: str | None = None
    for_sale: bool | None = None

    @classmethod
    def from_declared(cls, resource: DeclaredResource) -> ResourceFields:
        return cls(
            name=resource.name,
            price=resource.price,
            description=resource.description,
            for_sale=not resource.offsale if resource.kind is ResourceKind.GAMEPASS else None,
        )


@runtime_checkable
class RemoteMutationGateway(Protocol):
    """Creates and updates resources remotely.

    Implementations raise ``RateLimitedError`` when throttled and
    ``RemoteRejectedError`` for every other failure.
    On ``update`` a ``None`` description clears the remote description.
    """

    def create(
        self,
        kind: ResourceKind,
        fields: ResourceFields,
        *,
        image: Path | None = None,
    ) -> RemoteId: ...

    def update(
        self,
        kind: ResourceKind,
        remote_id: RemoteId,
        fields: ResourceFields,
        *,
        image: Path | None = None,
    ) -> None: ...


__all__ = ["RemoteMutationGateway", "ResourceFields"]
