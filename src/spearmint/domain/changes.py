"""Detect whether a declared resource drifted from its last synchronized state."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .hashing import hash_file
from .types import ContentDigest, DeclaredResource, ResourceKind, SynchronizationRecord


@dataclass(frozen=True, slots=True)
class ChangeSet:
    changed: bool
    asset_changed: bool
    image_hash: ContentDigest | None


@dataclass(slots=True)
class ChangeDetector:
    """Compares declarations against synchronization records.

    The asset is hashed once per ``detect`` call. A missing record counts as
    changed, so resources with unknown remote state are always pushed.
    """

    hasher: Callable[[Path], ContentDigest] = field(default=hash_file)

    def digest(self, resource: DeclaredResource) -> ContentDigest | None:
        if resource.image is None:
            return None
        return self.hasher(resource.image)

    def detect(
        self,
        resource: DeclaredResource,
        record: SynchronizationRecord | None,
    ) -> ChangeSet:
        image_hash = self.digest(resource)
        stored_hash = record.image_hash if record is not None else None
        asset_changed = resource.image is not None and (
            record is None or image_hash != stored_hash
        )
        changed = (
            record is None
            or _fields_differ(resource, record)
            or image_hash != stored_hash
        )
        return ChangeSet(changed=changed, asset_changed=asset_changed, image_hash=image_hash)

    def has_changed(
        self,
        resource: DeclaredResource,
        record: SynchronizationRecord | None,
    ) -> bool:
        return self.detect(resource, record).changed

    def asset_changed(
        self,
        resource: DeclaredResource,
        record: SynchronizationRecord | None,
    ) -> bool:
        return self.detect(resource, record).asset_changed


def _fields_differ(resource: DeclaredResource, record: SynchronizationRecord) -> bool:
    if (
        record.name != resource.name
        or record.price != resource.price
        or record.description != resource.description
    ):
        return True
    # Records written before offsale was tracked count as "on sale".
    return resource.kind is ResourceKind.GAMEPASS and bool(record.offsale) != resource.offsale


def has_changed(resource: DeclaredResource, record: SynchronizationRecord | None) -> bool:
    return ChangeDetector().has_changed(resource, record)


def asset_changed(resource: DeclaredResource, record: SynchronizationRecord | None) -> bool:
    return ChangeDetector().asset_changed(resource, record)
