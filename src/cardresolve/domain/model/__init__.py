"""Domain model for card resolution."""

from __future__ import annotations

from .card import Card, FaqBlock, PriceQuote
from .enums import Category, Locale, ManifestState, PriceRegion, ProvenanceTier
from .manifest import ChangeDescriptor
from .requirements import PRICE_CATEGORIES, REQUIRED_FIELDS, is_satisfied
from .ruling import Ruling
from .search import Query, Search, build_query, normalize_term, numeric_term
from .terms import TermCacheRow

__all__ = [
    "PRICE_CATEGORIES",
    "REQUIRED_FIELDS",
    "Card",
    "Category",
    "ChangeDescriptor",
    "FaqBlock",
    "Locale",
    "ManifestState",
    "PriceQuote",
    "PriceRegion",
    "ProvenanceTier",
    "Query",
    "Ruling",
    "Search",
    "TermCacheRow",
    "build_query",
    "is_satisfied",
    "normalize_term",
    "numeric_term",
]
