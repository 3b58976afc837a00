"""Relevance, stock-status and price rules applied to extracted fields."""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from bs4 import BeautifulSoup

from .phrases import SLOVAK, PhraseTable
from .types import ScanStatus, StockStatus

_PRICE_CHARS = re.compile(r"[^0-9.,]")
_WHITESPACE = re.compile(r"\s+")
_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")

MIN_STEMMED_KEY_LENGTH = 4


def parse_price(text: Optional[str]) -> Optional[Decimal]:
    """Parse price text such as ``12,50 €`` into a Decimal.

    Everything but digits, dots and commas is dropped and commas become dots;
    text that still does not form a number yields ``None``.
    """
    if not text:
        return None
    digits = _PRICE_CHARS.sub("", text).replace(",", ".")
    if not digits:
        return None
    try:
        value = Decimal(digits)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def normalize_text(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def slugify(name: Optional[str]) -> str:
    slug = _SLUG_SEPARATORS.sub("-", (name or "unknown").lower())
    return slug.strip("-")


def page_text(html: str) -> str:
    """Visible, lowercased text of an HTML document."""
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup.find_all(["script", "style", "noscript"]):
        tag.decompose()
    return _WHITESPACE.sub(" ", soup.get_text(separator=" ")).strip().lower()


class AvailabilityClassifier:
    """Applies one market's phrase table to search terms and page text."""

    def __init__(self, phrases: PhraseTable = SLOVAK):
        self.phrases = phrases

    def search_key(self, search_term: str) -> str:
        """The search term without dosage-form words and units."""
        key = normalize_text(search_term)
        for word in self.phrases.dosage_words:
            key = key.replace(word, "")
        return _WHITESPACE.sub(" ", key).strip()

    def is_relevant(self, search_term: str, title: Optional[str]) -> bool:
        """Whether an extracted title plausibly names the searched product."""
        search = normalize_text(search_term)
        found = normalize_text(title)
        if not search or not found:
            return False
        if search in found or found in search:
            return True
        key = self.search_key(search_term)
        return len(key) >= MIN_STEMMED_KEY_LENGTH and key in found

    def classify_stock(self, availability_text: Optional[str]) -> StockStatus:
        text = normalize_text(availability_text)
        if not text:
            return StockStatus.UNKNOWN
        if any(marker in text for marker in self.phrases.out_of_stock):
            return StockStatus.OUT_OF_STOCK
        if any(marker in text for marker in self.phrases.in_stock):
            return StockStatus.IN_STOCK
        return StockStatus.UNKNOWN

    def classify_status(
        self,
        availability_text: Optional[str],
        title: Optional[str],
        price: Optional[Decimal],
    ) -> ScanStatus:
        """Final scan status; unknown stock text is read optimistically."""
        if not normalize_text(title) or price is None:
            return ScanStatus.NOT_FOUND
        if self.classify_stock(availability_text) is StockStatus.OUT_OF_STOCK:
            return ScanStatus.NOT_FOUND
        return ScanStatus.OK

    def classify_row(self, availability_text: Optional[str]) -> ScanStatus:
        """Status of a results-table row: only an explicit stock marker is ``ok``."""
        text = normalize_text(availability_text)
        if any(marker in text for marker in self.phrases.row_in_stock):
            return ScanStatus.OK
        return ScanStatus.NOT_FOUND

    def has_no_results_text(self, text: str) -> bool:
        lowered = (text or "").lower()
        return any(phrase in lowered for phrase in self.phrases.no_results)

    def is_block_page(self, html: str) -> bool:
        return any(marker in (html or "") for marker in self.phrases.block_markers)
