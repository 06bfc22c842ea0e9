"""JSON lock file holding the key -> synchronization record mapping."""

from __future__ import annotations

import json
import os
import tempfile
import tomllib
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, RootModel, ValidationError

from spearmint.domain.errors import MappingFileError
from spearmint.domain.types import SynchronizationRecord

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)


class LockEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    roblox_id: int
    name: str | None = None
    price: int | None = None
    description: str | None = None
    image_hash: str | None = None
    offsale: bool | None = None

    @classmethod
    def from_record(cls, record: SynchronizationRecord) -> LockEntry:
        return cls(
            roblox_id=record.remote_id,
            name=record.name,
            price=record.price,
            description=record.description,
            image_hash=record.image_hash,
            offsale=record.offsale,
        )

    def to_record(self) -> SynchronizationRecord:
        return SynchronizationRecord(
            remote_id=self.roblox_id,
            name=self.name,
            price=self.price,
            description=self.description,
            image_hash=self.image_hash,
            offsale=self.offsale,
        )


class LockDocument(RootModel[dict[str, LockEntry]]):
    pass


def parse_lock_file(text: str) -> dict[str, SynchronizationRecord]:
    try:
        document = LockDocument.model_validate_json(text)
    except ValidationError as exc:
        raise MappingFileError(f"Failed to parse mapping file: {exc}") from exc
    return {key: entry.to_record() for key, entry in document.root.items()}


def parse_legacy_lock_file(text: str) -> dict[str, SynchronizationRecord]:
    """Parse a TOML lock file written by earlier releases (same entry fields)."""

    try:
        document = LockDocument.model_validate(tomllib.loads(text))
    except (tomllib.TOMLDecodeError, ValidationError) as exc:
        raise MappingFileError(f"Failed to parse legacy mapping file: {exc}") from exc
    return {key: entry.to_record() for key, entry in document.root.items()}


def legacy_lock_path(path: Path) -> Path:
    return path.with_suffix(".toml")


def render_lock_file(records: Mapping[str, SynchronizationRecord]) -> str:
    payload = {
        key: LockEntry.from_record(record).model_dump(exclude_none=True)
        for key, record in records.items()
    }
    return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"


class JsonMappingStore:
    """Mapping store persisted as a sorted, indented JSON document."""

    def __init__(
        self,
        path: Path,
        records: dict[str, SynchronizationRecord] | None = None,
    ) -> None:
        self.path = path
        self._records: dict[str, SynchronizationRecord] = records if records is not None else {}

    @classmethod
    def load(cls, path: Path) -> JsonMappingStore:
        """Read ``path``; a missing file yields an empty mapping.

        When ``path`` does not exist yet but a TOML lock file with the same stem
        does (``spearmint.lock.toml``), its entries are imported. The next save
        writes them to ``path``; the TOML file is left untouched.
        """

        if not path.exists():
            legacy = legacy_lock_path(path)
            if legacy == path or not legacy.exists():
                return cls(path)
            records = parse_legacy_lock_file(_read(legacy))
            log.info(f"Imported {len(records)} mapping entries from legacy {legacy}")
            return cls(path, records)
        text = _read(path)
        records = parse_lock_file(text) if text.strip() else {}
        log.debug(f"Loaded {len(records)} mapping entries from {path}")
        return cls(path, records)

    @property
    def records(self) -> Mapping[str, SynchronizationRecord]:
        return self._records

    def get(self, key: str) -> SynchronizationRecord | None:
        return self._records.get(key)

    def put(self, key: str, record: SynchronizationRecord) -> None:
        self._records[key] = record

    def checkpoint(self) -> None:
        self.save()

    def save(self) -> None:
        """Atomically replace the lock file with the current mapping."""

        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = render_lock_file(self._records)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            tmp_path.replace(self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MappingFileError(f"Failed to read mapping file: {path}") from exc
