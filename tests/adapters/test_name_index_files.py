from __future__ import annotations

from pathlib import Path  # noqa: TC003

from cardresolve.adapters.name_index_files import FileNameIndexSnapshotStore
from cardresolve.config import StorageConfig
from cardresolve.domain.ports import FetchedNameIndex


def test_save_then_load(tmp_path: Path) -> None:
    store = FileNameIndexSnapshotStore(tmp_path / "idx")
    index = FetchedNameIndex(
        locale="ja",
        entries={"ブラック・マジシャン": (4007,), "dark magician": (4007, 5000)},
        revision=42,
    )

    store.save(index)
    loaded = store.load("ja")

    assert loaded == index
    assert [path.name for path in (tmp_path / "idx").iterdir()] == ["ja.json"]


def test_missing_snapshot_loads_as_none(tmp_path: Path) -> None:
    assert FileNameIndexSnapshotStore(tmp_path).load("en") is None


def test_corrupt_snapshot_is_discarded(tmp_path: Path) -> None:
    store = FileNameIndexSnapshotStore(tmp_path)
    store.path_for("en").write_text("{not json", encoding="utf-8")

    assert store.load("en") is None
    assert not store.path_for("en").exists()


def test_delete_is_idempotent(tmp_path: Path) -> None:
    store = FileNameIndexSnapshotStore(tmp_path)
    store.save(FetchedNameIndex(locale="en", entries={"x": (1,)}))

    store.delete("en")
    store.delete("en")

    assert store.load("en") is None


def test_from_storage_uses_data_dir(tmp_path: Path) -> None:
    store = FileNameIndexSnapshotStore.from_storage(StorageConfig(data_dir=tmp_path))

    assert store.directory == (tmp_path / "name_index").resolve()
    assert store.directory.is_dir()
