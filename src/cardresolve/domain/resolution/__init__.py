"""Tiered resolution of Searches."""

from __future__ import annotations

from .pipeline import ResolutionContext, ResolverStage, TieredResolver
from .sources import PEDIA_CATEGORIES, ArtworkStage, PediaStage, PriceStage, RulingStage
from .stages import (
    ALL_CATEGORIES,
    CARD_CATEGORIES,
    RemoteStage,
    SnapshotStage,
    TermCacheStage,
    bounded,
)

__all__ = [
    "ALL_CATEGORIES",
    "CARD_CATEGORIES",
    "PEDIA_CATEGORIES",
    "ArtworkStage",
    "PediaStage",
    "PriceStage",
    "RemoteStage",
    "ResolutionContext",
    "ResolverStage",
    "RulingStage",
    "SnapshotStage",
    "TermCacheStage",
    "TieredResolver",
    "bounded",
]
