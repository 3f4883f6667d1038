"""TCGplayer marketplace adapter."""

from __future__ import annotations

from .client import TcgPlayerAPIError, TcgPlayerClient
from .translator import translate_prices

__all__ = ["TcgPlayerAPIError", "TcgPlayerClient", "translate_prices"]
