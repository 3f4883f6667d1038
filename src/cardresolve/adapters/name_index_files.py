"""JSON snapshots of per-locale name indices on local disk."""

from __future__ import annotations

import json
import os
import tempfile
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from cardresolve.domain.ports.remote import FetchedNameIndex

if TYPE_CHECKING:
    from cardresolve.config.storage import StorageConfig

log = getLogger(__name__)


class FileNameIndexSnapshotStore:
    """One ``<locale>.json`` file per locale, replaced atomically on save."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    @classmethod
    def from_storage(cls, storage: StorageConfig) -> FileNameIndexSnapshotStore:
        return cls(storage.name_index_dir())

    def path_for(self, locale: str) -> Path:
        return self.directory / f"{locale}.json"

    def load(self, locale: str) -> FetchedNameIndex | None:
        path = self.path_for(locale)
        if not path.exists():
            return None
        try:
            with path.open(encoding="utf-8") as handle:
                data = json.load(handle)
            entries = {name: tuple(int(i) for i in ids) for name, ids in data["entries"].items()}
            revision = data.get("revision")
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError):
            log.warning("Discarding unreadable %s name index snapshot at %s", locale, path)
            path.unlink(missing_ok=True)
            return None
        return FetchedNameIndex(
            locale=locale,
            entries=entries,
            revision=int(revision) if revision is not None else None,
        )

    def save(self, index: FetchedNameIndex) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = {
            "locale": index.locale,
            "revision": index.revision,
            "entries": {name: list(ids) for name, ids in index.entries.items()},
        }
        fd, temp_name = tempfile.mkstemp(
            dir=self.directory, prefix=f".{index.locale}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False)
            # atomic on POSIX and Windows
            os.replace(temp_name, self.path_for(index.locale))
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def delete(self, locale: str) -> None:
        self.path_for(locale).unlink(missing_ok=True)
