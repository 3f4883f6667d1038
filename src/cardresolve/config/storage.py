"""On-disk locations of the resolution caches.

Everything cardresolve persists lives under one data directory: the SQLite
cache database (term cache, card snapshot, rulings, manifest baseline), the
hishel HTTP cache for the artwork manifest, and one JSON name index snapshot
per locale.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_str

APP_DIR_NAME: Final[str] = "cardresolve"
DEFAULT_DB_FILENAME: Final[str] = "cardresolve.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"
NAME_INDEX_DIRNAME: Final[str] = "name_index"
SQLITE_URI_PREFIX: Final[str] = "sqlite+pysqlite:///"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Cache locations below ``data_dir``.

    Accessors create the directories they point into unless ``ensure=False``.
    """

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME
    http_cache_filename: str = HTTP_CACHE_FILENAME
    name_index_dirname: str = NAME_INDEX_DIRNAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_path(self, *, ensure: bool = True) -> Path:
        return self._under(self.database_filename, ensure=ensure)

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self._under(self.http_cache_filename, ensure=ensure)

    def name_index_dir(self, *, ensure: bool = True) -> Path:
        directory = self._under(self.name_index_dirname, ensure=ensure)
        if ensure:
            directory.mkdir(exist_ok=True)
        return directory

    def database_uri(self) -> str:
        return f"{SQLITE_URI_PREFIX}{self.database_path()}"

    def _under(self, name: str, *, ensure: bool) -> Path:
        data_dir = self.resolve_data_dir()
        if ensure:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / name


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _platform_data_root() -> Path:
    home = Path.home()
    if sys.platform == "win32":
        return Path(env_str("LOCALAPPDATA", str(home / "AppData" / "Local")))
    if sys.platform == "darwin":
        return home / "Library" / "Application Support"
    return Path(env_str("XDG_DATA_HOME", str(home / ".local" / "share")))


def get_storage_config() -> StorageConfig:
    """Use ``CARDRESOLVE_DATA_DIR`` when set, else the per-platform data root."""

    data_dir = env_str("CARDRESOLVE_DATA_DIR", "")
    if data_dir:
        return StorageConfig(data_dir=Path(data_dir))
    return StorageConfig(data_dir=_platform_data_root() / APP_DIR_NAME)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    uri = env_str("DATABASE_URI", "")
    if uri:
        return DatabaseConfig(uri=uri)
    return DatabaseConfig(uri=(storage or get_storage_config()).database_uri())


def get_http_cache_path(*, storage: StorageConfig | None = None) -> Path:
    return (storage or get_storage_config()).http_cache_path()
