"""Domain model for declared resources and their synchronized state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

type ResourceKey = str
type RemoteId = int
type ContentDigest = str


class ResourceKind(StrEnum):
    """Categories of monetizable resources a universe can sell."""

    DEV_PRODUCT = "dev_product"
    GAMEPASS = "gamepass"

    @property
    def label(self) -> str:
        return "DevProduct" if self is ResourceKind.DEV_PRODUCT else "Gamepass"


class OutcomeStatus(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


class FailureReason(StrEnum):
    """Why a resource could not be synchronized during a run."""

    ASSET_UNREADABLE = "asset_unreadable"
    RATE_LIMIT_EXHAUSTED = "rate_limit_exhausted"
    REMOTE_REJECTED = "remote_rejected"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class DeclaredResource:
    """The user's intent for one resource, as read from the configuration."""

    key: ResourceKey
    kind: ResourceKind
    name: str
    price: int
    description: str | None = None
    image: Path | None = None
    product_id: RemoteId | None = None
    offsale: bool = False

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValueError(f"Price for {self.key!r} must be non-negative")


@dataclass(slots=True)
class SynchronizationRecord:
    """Last-known synchronized state for one resource key.

    ``remote_id`` is authoritative once set; the remaining fields always hold the
    values of the most recent successful remote mutation.
    """

    remote_id: RemoteId
    name: str | None = None
    price: int | None = None
    description: str | None = None
    image_hash: ContentDigest | None = None
    offsale: bool | None = None

    @classmethod
    def from_declared(
        cls,
        remote_id: RemoteId,
        resource: DeclaredResource,
        image_hash: ContentDigest | None,
    ) -> SynchronizationRecord:
        record = cls(remote_id=remote_id)
        record.apply(resource, image_hash)
        return record

    def apply(self, resource: DeclaredResource, image_hash: ContentDigest | None) -> None:
        self.name = resource.name
        self.price = resource.price
        self.description = resource.description
        self.image_hash = image_hash
        self.offsale = resource.offsale if resource.kind is ResourceKind.GAMEPASS else None


@dataclass(frozen=True, slots=True)
class ResourceOutcome:
    """Terminal result for one declared resource in one run."""

    key: ResourceKey
    kind: ResourceKind
    status: OutcomeStatus
    remote_id: RemoteId | None = None
    reason: FailureReason | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED


__all__ = [
    "ContentDigest",
    "DeclaredResource",
    "FailureReason",
    "OutcomeStatus",
    "RemoteId",
    "ResourceKey",
    "ResourceKind",
    "ResourceOutcome",
    "SynchronizationRecord",
]
