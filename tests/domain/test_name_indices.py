from __future__ import annotations

import asyncio
from pathlib import Path  # noqa: TC003

from cardresolve.adapters.name_index_files import FileNameIndexSnapshotStore
from cardresolve.domain.model import ChangeDescriptor
from cardresolve.domain.name_indices import NameIndexRegistry
from tests.helpers.cards import FakeRemoteSource


def _source() -> FakeRemoteSource:
    return FakeRemoteSource(
        name_indices={
            "en": {"dark magician": (100,), "dark magician girl": (200,)},
            "fr": {"magicien sombre": (100,)},
        },
        revision=7,
    )


def test_search_loads_locales_lazily_once() -> None:
    source = _source()
    registry = NameIndexRegistry(source)

    first = asyncio.run(registry.search("dark magician", ["en"], limit=1))
    second = asyncio.run(registry.search("dark magician girl", ["en"], limit=1))

    assert [match.card_id for match in first] == [100]
    assert [match.card_id for match in second] == [200]
    assert source.name_index_calls == ["en"]
    assert registry.loaded_locales == frozenset({"en"})


def test_search_merges_locales() -> None:
    registry = NameIndexRegistry(_source())

    matches = asyncio.run(registry.search("magicien sombre", ["en", "fr"], limit=2))

    assert matches[0].card_id == 100
    assert matches[0].score == 1.0


def test_unavailable_locale_is_skipped() -> None:
    source = _source()
    registry = NameIndexRegistry(source)

    matches = asyncio.run(registry.search("dark magician", ["en", "ko"], limit=1))

    assert [match.card_id for match in matches] == [100]
    assert registry.get("ko") is None


def test_revision_is_reported_before_install() -> None:
    seen: list[tuple[int, frozenset[str]]] = []
    registry: NameIndexRegistry

    async def observe(revision: int) -> None:
        seen.append((revision, registry.loaded_locales))

    registry = NameIndexRegistry(_source(), on_revision=observe)

    asyncio.run(registry.ensure(["en", "fr"]))

    assert seen == [(7, frozenset())]
    assert registry.loaded_locales == frozenset({"en", "fr"})


def test_apply_changes_drops_changed_locales(tmp_path: Path) -> None:
    snapshots = FileNameIndexSnapshotStore(tmp_path)
    source = _source()
    registry = NameIndexRegistry(source, snapshots=snapshots)
    asyncio.run(registry.ensure(["en", "fr"]))
    assert snapshots.path_for("fr").exists()

    registry.apply_changes(ChangeDescriptor(revision=8, name_index_locales=frozenset({"fr"})))

    assert registry.loaded_locales == frozenset({"en"})
    assert not snapshots.path_for("fr").exists()
    assert snapshots.path_for("en").exists()


def test_snapshots_avoid_refetching(tmp_path: Path) -> None:
    snapshots = FileNameIndexSnapshotStore(tmp_path)
    asyncio.run(NameIndexRegistry(_source(), snapshots=snapshots).ensure(["en"]))
    source = _source()
    registry = NameIndexRegistry(source, snapshots=snapshots)

    matches = asyncio.run(registry.search("dark magician", ["en"]))

    assert source.name_index_calls == []
    assert [match.card_id for match in matches] == [100]


def test_concurrent_searches_share_one_load() -> None:
    source = _source()
    revisions: list[int] = []

    async def observe(revision: int) -> None:
        revisions.append(revision)

    registry = NameIndexRegistry(source, on_revision=observe)

    async def scenario() -> None:
        first, second, third = await asyncio.gather(
            registry.search("dark magician", ["en"], limit=1),
            registry.search("dark magician girl", ["en"], limit=1),
            registry.search("magicien sombre", ["en", "fr"], limit=1),
        )
        assert [match.card_id for match in first] == [100]
        assert [match.card_id for match in second] == [200]
        assert [match.card_id for match in third] == [100]

    asyncio.run(scenario())

    assert source.name_index_calls == ["en", "fr"]
    assert revisions == [7, 7]


def test_waiters_see_a_failed_load_and_can_retry() -> None:
    source = _source()
    registry = NameIndexRegistry(source)

    async def scenario() -> None:
        results = await asyncio.gather(
            registry.search("dark magician", ["ko"], limit=1),
            registry.search("dark magician", ["ko"], limit=1),
        )
        assert results == [[], []]

    asyncio.run(scenario())
    assert source.name_index_calls == ["ko"]

    source.name_indices["ko"] = {"dark magician": (100,)}
    matches = asyncio.run(registry.search("dark magician", ["ko"], limit=1))

    assert [match.card_id for match in matches] == [100]
    assert source.name_index_calls == ["ko", "ko"]
