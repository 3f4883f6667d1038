"""Callbacks handed to collaborators at construction time."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cardresolve.domain.model import ChangeDescriptor, Search

type RevisionObserver = Callable[[int], Awaitable[object]]


@runtime_checkable
class EvictionSink(Protocol):
    """Anything holding data that upstream changes can make stale."""

    def apply_changes(self, changes: ChangeDescriptor) -> None: ...


@runtime_checkable
class ConsolidationSink(Protocol):
    """Owner of a set of searches that can merge two of them into one."""

    def update_canonical_term(self, search: Search, new_term: str | int) -> bool: ...
