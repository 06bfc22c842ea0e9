"""Errors raised while reconciling a single resource.

Every ``SyncError`` is converted into a ``failed`` outcome at the reconciler
boundary; none of them abort a run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from .types import FailureReason

if TYPE_CHECKING:
    from pathlib import Path


class SyncError(RuntimeError):
    reason: ClassVar[FailureReason] = FailureReason.REMOTE_REJECTED


class AssetUnreadableError(SyncError):
    """Raised when a declared asset cannot be read from disk."""

    reason = FailureReason.ASSET_UNREADABLE

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Cannot read asset {path}: {cause.strerror or cause}")
        self.path = path


class RemoteRejectedError(SyncError):
    """Raised by gateways for non-retryable remote failures."""

    reason = FailureReason.REMOTE_REJECTED

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(SyncError):
    """Raised by gateways when the remote side asks the caller to slow down."""

    reason = FailureReason.RATE_LIMIT_EXHAUSTED

    def __init__(self, message: str = "Rate limited", *, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class RateLimitExhaustedError(SyncError):
    reason = FailureReason.RATE_LIMIT_EXHAUSTED

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Still rate limited after {attempts} attempts")
        self.attempts = attempts


class SyncCancelledError(SyncError):
    reason = FailureReason.CANCELLED

    def __init__(self, message: str = "Cancelled before completion") -> None:
        super().__init__(message)


class MappingFileError(RuntimeError):
    """Raised when the persisted mapping cannot be read or parsed."""
