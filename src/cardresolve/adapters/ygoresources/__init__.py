"""YGOResources card database and artwork repository adapters."""

from __future__ import annotations

from .artwork import YgoArtworkClient
from .client import YgoResourcesAPIError, YgoResourcesClient
from .schema import YgoArtworkManifest, YgoCardResponse, YgoManifestResponse, YgoQaResponse
from .translator import translate_card, translate_changes, translate_name_index, translate_ruling

__all__ = [
    "YgoArtworkClient",
    "YgoArtworkManifest",
    "YgoCardResponse",
    "YgoManifestResponse",
    "YgoQaResponse",
    "YgoResourcesAPIError",
    "YgoResourcesClient",
    "translate_card",
    "translate_changes",
    "translate_name_index",
    "translate_ruling",
]
