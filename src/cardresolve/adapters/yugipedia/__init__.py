"""Yugipedia wiki adapter."""

from __future__ import annotations

from .client import YugipediaAPIError, YugipediaClient
from .translator import find_property, select_page, translate_page

__all__ = [
    "YugipediaAPIError",
    "YugipediaClient",
    "find_property",
    "select_page",
    "translate_page",
]
