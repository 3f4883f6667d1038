"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Locale(StrEnum):
    DE = "de"
    EN = "en"
    ES = "es"
    FR = "fr"
    IT = "it"
    JA = "ja"
    KO = "ko"
    PT = "pt"

    @classmethod
    def parse(cls, value: str) -> Locale | None:
        """Return the locale for ``value`` (``jp`` is accepted for Japanese)."""

        normalized = value.strip().lower()
        if normalized == "jp":
            return cls.JA
        try:
            return cls(normalized)
        except ValueError:
            return None


class Category(StrEnum):
    """Result category a Search can require; values are the query prefix characters."""

    INFO = "i"
    RULING = "r"
    ART = "a"
    DATE = "d"
    PRICE_US = "$"
    PRICE_EU = "€"
    FAQ = "f"
    PEDIA = "p"
    QA = "q"


class ProvenanceTier(StrEnum):
    """Backing tier that holds the full card for a learned term."""

    SNAPSHOT = "snapshot"
    REMOTE = "remote"


class PriceRegion(StrEnum):
    US = "us"
    EU = "eu"


class ManifestState(StrEnum):
    IDLE = "idle"
    REFRESHING = "refreshing"
