"""Tests for price parsing, relevance and stock classification."""

from decimal import Decimal

import pytest

from pharmascan.classifier import (
    ENGLISH,
    SLOVAK,
    AvailabilityClassifier,
    ScanStatus,
    StockStatus,
    get_phrase_table,
    page_text,
    parse_price,
    slugify,
)


class TestParsePrice:
    """Test price text parsing."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("12,50 €", Decimal("12.50")),
            ("Cena: 3.99", Decimal("3.99")),
            ("4,20", Decimal("4.20")),
            ("od 7 €", Decimal("7")),
        ],
    )
    def test_parses_prices(self, text, expected):
        assert parse_price(text) == expected

    @pytest.mark.parametrize("text", ["N/A", "", None, "1.2.3", "zadarmo"])
    def test_unparseable_prices_are_unset(self, text):
        assert parse_price(text) is None


class TestRelevance:
    """Test the relevance heuristic."""

    @pytest.fixture
    def classifier(self):
        return AvailabilityClassifier()

    def test_stemmed_key_match(self, classifier):
        assert classifier.search_key("ibuprofen 400mg tablets") == "ibuprofen 400"
        assert classifier.is_relevant("ibuprofen 400mg tablets", "Ibuprofen 400 mg")

    def test_unrelated_product_is_not_relevant(self, classifier):
        assert not classifier.is_relevant("paracetamol", "Amoxicillin")

    def test_substring_either_direction(self, classifier):
        assert classifier.is_relevant("paralen", "PARALEN 500 mg 24 tabliet")
        assert classifier.is_relevant("paralen 500 mg tablety", "Paralen")

    def test_short_stemmed_key_is_ignored(self, classifier):
        # "abc tablety" stems to "abc", too short to count on its own.
        assert not classifier.is_relevant("abc tablety", "abc forte kapsuly")

    def test_empty_values_are_not_relevant(self, classifier):
        assert not classifier.is_relevant("", "Paralen")
        assert not classifier.is_relevant("paralen", None)


class TestStatusClassification:
    """Test stock and status decisions."""

    @pytest.fixture
    def classifier(self):
        return AvailabilityClassifier(SLOVAK)

    def test_in_stock_text(self, classifier):
        assert classifier.classify_status("Skladom", "Paralen", Decimal("4.20")) is ScanStatus.OK

    def test_out_of_stock_text(self, classifier):
        status = classifier.classify_status("Nie je na sklade", "Paralen", Decimal("4.20"))
        assert status is ScanStatus.NOT_FOUND

    def test_missing_text_is_optimistic(self, classifier):
        assert classifier.classify_status("", "Paralen", Decimal("4.20")) is ScanStatus.OK
        assert classifier.classify_status(None, "Paralen", Decimal("4.20")) is ScanStatus.OK

    def test_title_and_price_are_required(self, classifier):
        assert classifier.classify_status("Skladom", "", Decimal("1")) is ScanStatus.NOT_FOUND
        assert classifier.classify_status("Skladom", "Paralen", None) is ScanStatus.NOT_FOUND

    def test_stock_markers(self, classifier):
        assert classifier.classify_stock("Dostupné ihneď") is StockStatus.IN_STOCK
        assert classifier.classify_stock("Momentálne nedostupné") is StockStatus.OUT_OF_STOCK
        assert classifier.classify_stock("Na objednávku") is StockStatus.UNKNOWN
        assert classifier.classify_stock(None) is StockStatus.UNKNOWN

    def test_results_table_rows_need_explicit_stock(self, classifier):
        assert classifier.classify_row("Áno") is ScanStatus.OK
        assert classifier.classify_row(">0 ks") is ScanStatus.OK
        assert classifier.classify_row("na sklade") is ScanStatus.OK
        assert classifier.classify_row("") is ScanStatus.NOT_FOUND
        assert classifier.classify_row(None) is ScanStatus.NOT_FOUND


class TestPageSignals:
    """Test no-results and block-page detection."""

    @pytest.fixture
    def classifier(self):
        return AvailabilityClassifier()

    def test_no_results_text(self, classifier):
        text = page_text("<html><body><p>Žiadne výsledky pre váš dopyt</p></body></html>")

        assert classifier.has_no_results_text(text)
        assert not classifier.has_no_results_text("paralen 500 mg skladom")

    def test_page_text_ignores_scripts(self):
        html = (
            "<html><head><script>var t = 'no results';</script>"
            "<style>.x{}</style></head><body><h1>Paralen</h1>  <p>Skladom</p></body></html>"
        )

        assert page_text(html) == "paralen skladom"

    def test_block_markers(self, classifier):
        assert classifier.is_block_page("<h1>Access Denied</h1>")
        assert classifier.is_block_page("<title>Error 403</title>")
        assert not classifier.is_block_page("<h1>Paralen</h1>")


class TestPhraseTables:
    """Test locale lookup and helpers."""

    def test_locale_lookup(self):
        assert get_phrase_table("sk-SK") is SLOVAK
        assert get_phrase_table("en_US") is ENGLISH
        assert get_phrase_table("de-DE") is SLOVAK

    def test_english_table(self):
        classifier = AvailabilityClassifier(ENGLISH)

        assert classifier.classify_stock("Out of stock") is StockStatus.OUT_OF_STOCK
        assert classifier.classify_stock("In stock") is StockStatus.IN_STOCK

    def test_slugify(self):
        assert slugify("Lekáreň Dr. Max - Aupark!") == "lek-re-dr-max-aupark"
        assert slugify(None) == "unknown"
