"""Content digests for local assets."""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

from .errors import AssetUnreadableError

if TYPE_CHECKING:
    from pathlib import Path

    from .types import ContentDigest, DeclaredResource

_CHUNK_SIZE = 64 * 1024


def hash_file(path: Path) -> ContentDigest:
    """Return the SHA-256 hex digest of ``path``.

    Raises ``AssetUnreadableError`` if the file cannot be read.
    """

    digest = hashlib.sha256()
    try:
        with path.open("rb") as stream:
            for chunk in iter(lambda: stream.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as exc:
        raise AssetUnreadableError(path, exc) from exc
    return digest.hexdigest()


def asset_digest(resource: DeclaredResource) -> ContentDigest | None:
    if resource.image is None:
        return None
    return hash_file(resource.image)
