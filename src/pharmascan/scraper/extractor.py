"""Field extraction from search-result and product pages."""

from typing import Optional

from playwright.async_api import ElementHandle, Page

from ..classifier.rules import page_text
from ..config import FieldType, ScanTarget
from ..utils.logging import get_structured_logger
from .types import RawObservation, StepOutcome

logger = get_structured_logger(__name__)

# URL fragments of search and listing pages; anything else is a product page.
SEARCH_PAGE_MARKERS = ("/search", "/vyhladavanie", "?q=", "/podla-ucinnej-latky")
LISTING_PAGE_MARKERS = ("kategoria",)
SITE_ROOT_SUFFIXES = (".sk/",)

# Cell selectors for results-table rows when the target sets none.
DEFAULT_ROW_NAME_SELECTOR = "td.name"
DEFAULT_ROW_PRICE_SELECTOR = "td.price"
DEFAULT_ROW_STOCK_SELECTOR = "td.stock"

ROW_WAIT_MS = 3000
LEGACY_TITLE_WAIT_MS = 2000


def is_product_detail_page(url: str) -> bool:
    if any(marker in url for marker in SEARCH_PAGE_MARKERS):
        return False
    if url.endswith(SITE_ROOT_SUFFIXES):
        return False
    return not any(marker in url for marker in LISTING_PAGE_MARKERS)


async def inner_text(element: Optional[ElementHandle]) -> Optional[str]:
    if element is None:
        return None
    text = await element.inner_text()
    return text.strip() if text is not None else None


class RowExtractor:
    """Reads product fields off the current page for one scan target."""

    def __init__(self, target: ScanTarget):
        self.target = target
        self.selectors = target.selectors

    async def extract_rows(self, page: Page, observation: RawObservation) -> StepOutcome:
        """Apply the declarative field rules to every row on a results page.

        Product detail pages are left alone; the legacy selectors read them.
        The first row's ``title``, ``price`` and ``stockStatus`` become the
        scan's top-level fields.
        """
        extraction = self.target.extraction
        if not extraction or not extraction.iterate_rows:
            return StepOutcome.skipped("extract_rows", "no row extraction configured")

        url = page.url
        if is_product_detail_page(url):
            logger.info("Detected product detail page, skipping row iteration", url=url)
            return StepOutcome.skipped("extract_rows", "product detail page")

        try:
            await page.wait_for_selector(extraction.iterate_rows, timeout=ROW_WAIT_MS)
            elements = await page.query_selector_all(extraction.iterate_rows)
        except Exception as e:
            logger.debug("Row extraction failed", target_id=self.target.id, error=str(e))
            return StepOutcome.skipped("extract_rows", e)

        if not elements:
            return StepOutcome.skipped("extract_rows", "no rows found")

        logger.info("Found product rows", target_id=self.target.id, count=len(elements))

        rows = []
        for element in elements:
            row = await self._extract_row(element)
            if row:
                rows.append(row)

        observation.extracted_rows = rows
        observation.row_count = len(rows)
        if rows:
            observation.promote_row(rows[0])

        return StepOutcome.succeeded("extract_rows")

    async def _extract_row(self, element: ElementHandle) -> dict[str, Optional[str]]:
        row: dict[str, Optional[str]] = {}
        for name, rule in self.target.extraction.fields.items():
            try:
                field_element = await element.query_selector(rule.selector)
                if field_element is None:
                    continue
                if rule.type is FieldType.HREF:
                    value = await field_element.get_attribute("href")
                else:
                    value = await field_element.inner_text()
                row[name] = (value or "").strip()
            except Exception as e:
                logger.debug("Failed to extract field", field=name, error=str(e))
        return row

    async def extract_legacy(self, page: Page, observation: RawObservation) -> StepOutcome:
        """Read title, price and availability with single-element selectors."""
        selectors = self.selectors
        if selectors.title:
            try:
                await page.wait_for_selector(selectors.title, timeout=LEGACY_TITLE_WAIT_MS)
            except Exception as e:
                logger.debug("Title selector did not appear", selector=selectors.title, error=str(e))

        observation.title = await self._read(page, selectors.title)
        observation.price_text = await self._read(page, selectors.price)
        observation.availability_text = await self._read(page, selectors.availability)
        return StepOutcome.succeeded("extract_legacy")

    async def _read(self, page: Page, selector: Optional[str]) -> Optional[str]:
        if not selector:
            return None
        try:
            return await inner_text(await page.query_selector(selector))
        except Exception as e:
            logger.debug("Failed to read selector", selector=selector, error=str(e))
            return None

    async def read_results_table(
        self, page: Page, observation: RawObservation, timeout_ms: int
    ) -> StepOutcome:
        """Collect ``name``/``priceText``/``availabilityText`` per table row."""
        selectors = self.selectors
        if not (selectors.results_table and selectors.result_row):
            return StepOutcome.skipped("results_table", "no results table configured")

        try:
            await page.wait_for_selector(selectors.results_table, timeout=timeout_ms)
        except Exception as e:
            logger.debug("Results table did not appear", error=str(e))

        try:
            elements = await page.query_selector_all(selectors.result_row)
        except Exception as e:
            return StepOutcome.skipped("results_table", e)

        rows = []
        for element in elements or []:
            try:
                rows.append(
                    {
                        "name": await inner_text(
                            await element.query_selector(selectors.title or DEFAULT_ROW_NAME_SELECTOR)
                        ),
                        "priceText": await inner_text(
                            await element.query_selector(selectors.price or DEFAULT_ROW_PRICE_SELECTOR)
                        ),
                        "availabilityText": await inner_text(
                            await element.query_selector(
                                selectors.availability or DEFAULT_ROW_STOCK_SELECTOR
                            )
                        ),
                    }
                )
            except Exception as e:
                logger.debug("Failed to read results row", error=str(e))

        observation.rows = rows
        logger.info("Read results table", target_id=self.target.id, count=len(rows))
        return StepOutcome.succeeded("results_table")

    async def no_results_selector_matches(self, page: Page) -> bool:
        if not self.selectors.no_results:
            return False
        try:
            return await page.query_selector(self.selectors.no_results) is not None
        except Exception as e:
            logger.debug("No-results selector check failed", error=str(e))
            return False

    async def visible_text(self, page: Page) -> str:
        return page_text(await page.content())
