"""Availability classification for extracted pharmacy listings.

This module turns raw extracted text into decisions:
- Price text parsing into decimals
- Relevance of an extracted title to the searched product
- Stock status classification from locale phrase tables
- No-results and block-page detection
"""

from .phrases import ENGLISH, PHRASE_TABLES, SLOVAK, PhraseTable, get_phrase_table
from .rules import (
    AvailabilityClassifier,
    normalize_text,
    page_text,
    parse_price,
    slugify,
)
from .types import ScanStatus, StockStatus

__all__ = [
    "ScanStatus",
    "StockStatus",
    "PhraseTable",
    "SLOVAK",
    "ENGLISH",
    "PHRASE_TABLES",
    "get_phrase_table",
    "AvailabilityClassifier",
    "parse_price",
    "normalize_text",
    "page_text",
    "slugify",
]
