"""Reconcile declared resources against their last synchronized state.

For every declared resource the reconciler decides between create, update and
skip, pushes the minimal mutation through the gateway (wrapped by the retry
orchestrator) and records the result in the mapping store. Records are only
touched after the remote call succeeded, so a failed resource leaves the store
exactly as it was.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .changes import ChangeDetector
from .errors import SyncCancelledError, SyncError
from .ports.gateway import ResourceFields
from .retry import RetryOrchestrator
from .types import OutcomeStatus, ResourceOutcome, SynchronizationRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .ports.gateway import RemoteMutationGateway
    from .ports.persistence import MappingStore
    from .types import DeclaredResource, RemoteId, ResourceKey

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """Outcomes in processing order plus the mapping they produced."""

    outcomes: tuple[ResourceOutcome, ...]
    records: Mapping[ResourceKey, SynchronizationRecord]

    def count(self, status: OutcomeStatus) -> int:
        return Counter(outcome.status for outcome in self.outcomes)[status]

    @property
    def created(self) -> int:
        return self.count(OutcomeStatus.CREATED)

    @property
    def updated(self) -> int:
        return self.count(OutcomeStatus.UPDATED)

    @property
    def skipped(self) -> int:
        return self.count(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(OutcomeStatus.FAILED)

    @property
    def has_failures(self) -> bool:
        return any(outcome.failed for outcome in self.outcomes)


@dataclass(slots=True)
class Reconciler:
    gateway: RemoteMutationGateway
    retry: RetryOrchestrator = field(default_factory=RetryOrchestrator)
    detector: ChangeDetector = field(default_factory=ChangeDetector)
    checkpoint_each_resource: bool = True

    def reconcile_all(
        self,
        resources: Iterable[DeclaredResource],
        store: MappingStore,
    ) -> ReconciliationResult:
        """Reconcile ``resources`` one at a time in key order.

        A failing resource never stops the run. Once the run is cancelled the
        remaining resources are reported as failed without any remote call.
        """

        outcomes: list[ResourceOutcome] = []
        for resource in sorted(resources, key=lambda item: item.key):
            if self.retry.cancellation.cancelled:
                outcome = _failure(resource, SyncCancelledError())
            else:
                outcome = self.reconcile(resource, store)
            _log_outcome(resource, outcome)
            outcomes.append(outcome)
        return ReconciliationResult(outcomes=tuple(outcomes), records=store.records)

    def reconcile(self, resource: DeclaredResource, store: MappingStore) -> ResourceOutcome:
        try:
            status, remote_id = self._sync(resource, store)
        except SyncError as exc:
            return _failure(resource, exc)

        if status is not OutcomeStatus.SKIPPED and self.checkpoint_each_resource:
            self._checkpoint(store)
        return ResourceOutcome(
            key=resource.key,
            kind=resource.kind,
            status=status,
            remote_id=remote_id,
        )

    def _sync(
        self,
        resource: DeclaredResource,
        store: MappingStore,
    ) -> tuple[OutcomeStatus, RemoteId]:
        record = store.get(resource.key)
        existing_id = resource.product_id
        if existing_id is None and record is not None:
            existing_id = record.remote_id

        if existing_id is None:
            return OutcomeStatus.CREATED, self._create(resource, store)
        return self._update(resource, existing_id, record, store), existing_id

    def _create(self, resource: DeclaredResource, store: MappingStore) -> RemoteId:
        # Hash before the remote call so an unreadable asset fails without side effects.
        image_hash = self.detector.digest(resource)
        fields = ResourceFields.from_declared(resource)
        remote_id = self.retry.attempt(
            lambda: self.gateway.create(resource.kind, fields, image=resource.image),
            description=f"create {resource.kind.label} {resource.key!r}",
        )
        store.put(resource.key, SynchronizationRecord.from_declared(remote_id, resource, image_hash))
        return remote_id

    def _update(
        self,
        resource: DeclaredResource,
        remote_id: RemoteId,
        record: SynchronizationRecord | None,
        store: MappingStore,
    ) -> OutcomeStatus:
        baseline = record
        if record is not None and record.remote_id != remote_id:
            # The mapping points elsewhere; its field values say nothing about remote_id.
            baseline = None

        changes = self.detector.detect(resource, baseline)
        if not changes.changed:
            return OutcomeStatus.SKIPPED

        fields = ResourceFields.from_declared(resource)
        image = resource.image if changes.asset_changed else None
        self.retry.attempt(
            lambda: self.gateway.update(resource.kind, remote_id, fields, image=image),
            description=f"update {resource.kind.label} {resource.key!r}",
        )

        if record is None:
            record = SynchronizationRecord(remote_id=remote_id)
            store.put(resource.key, record)
        elif record.remote_id != remote_id:
            log.info(
                f"Correcting mapping for {resource.key!r}: {record.remote_id} -> {remote_id}"
            )
            record.remote_id = remote_id
        record.apply(resource, changes.image_hash)
        return OutcomeStatus.UPDATED

    def _checkpoint(self, store: MappingStore) -> None:
        try:
            store.checkpoint()
        except OSError:
            # The in-memory mapping is intact and is written again at the end of the run.
            log.warning("Failed to checkpoint mapping", exc_info=True)


def _failure(resource: DeclaredResource, exc: SyncError) -> ResourceOutcome:
    return ResourceOutcome(
        key=resource.key,
        kind=resource.kind,
        status=OutcomeStatus.FAILED,
        remote_id=resource.product_id,
        reason=exc.reason,
        error=str(exc),
    )


def _log_outcome(resource: DeclaredResource, outcome: ResourceOutcome) -> None:
    if outcome.failed:
        log.error(f"[ERROR] {resource.kind.label} - {resource.key}: {outcome.error}")
    else:
        log.info(f"[{outcome.status}] {resource.kind.label} - {resource.key}")
