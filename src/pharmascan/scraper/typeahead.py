"""Search-as-you-type widgets: type the term, pick a suggestion, read results."""

from typing import Optional

from playwright.async_api import ElementHandle, Page

from ..config import ScannerSettings, ScanTarget, get_settings
from ..utils.logging import get_structured_logger
from .extractor import RowExtractor
from .interceptor import ResponseInterceptor
from .navigation import type_like_human
from .types import RawObservation, StepOutcome

logger = get_structured_logger(__name__)

DEFAULT_SUGGESTION_ID_ATTRIBUTE = "data-id"
FALLBACK_SUGGESTION_ID_ATTRIBUTE = "data-product-id"


class TypeaheadHandler:
    """Drives the autocomplete flow of a target that defines an input selector.

    With a results container configured the handler types the term, picks
    the first suggestion containing it (or simply the first one), clicks it
    and then collects whatever the click loads. Without one it submits the
    input with Enter and waits for the network to settle.
    """

    def __init__(
        self,
        target: ScanTarget,
        settings: Optional[ScannerSettings] = None,
        interceptor: Optional[ResponseInterceptor] = None,
        extractor: Optional[RowExtractor] = None,
    ):
        self.target = target
        self.selectors = target.selectors
        self.settings = settings or get_settings().scanner
        self.interceptor = interceptor or ResponseInterceptor(target.persist_raw_response)
        self.extractor = extractor or RowExtractor(target)
        self.timeout_ms = target.step_timeout_ms(None, self.settings.default_step_timeout_ms)

    async def run(self, page: Page, search_term: str, observation: RawObservation) -> StepOutcome:
        if not self.selectors.input:
            return StepOutcome.skipped("typeahead", "no input selector configured")
        try:
            input_selector = await self.resolve_input(page)
            if self.selectors.results and self.selectors.result_item:
                await self._pick_suggestion(page, input_selector, search_term, observation)
            else:
                await self._submit(page, input_selector, search_term)
        except Exception as e:
            logger.debug("Typeahead flow failed", target_id=self.target.id, error=str(e))
            return StepOutcome.skipped("typeahead", e)
        return StepOutcome.succeeded("typeahead")

    async def resolve_input(self, page: Page) -> str:
        """The primary input selector, or the fallback when only it appears."""
        try:
            await page.wait_for_selector(self.selectors.input, timeout=self.timeout_ms)
            return self.selectors.input
        except Exception as e:
            if not self.selectors.input_fallback:
                logger.debug("Input selector did not appear", error=str(e))
                return self.selectors.input

        try:
            await page.wait_for_selector(self.selectors.input_fallback, timeout=self.timeout_ms)
        except Exception as e:
            logger.debug("Fallback input selector did not appear", error=str(e))
            return self.selectors.input
        return self.selectors.input_fallback

    async def _pick_suggestion(
        self,
        page: Page,
        input_selector: str,
        search_term: str,
        observation: RawObservation,
    ) -> None:
        await type_like_human(page, input_selector, search_term, self.settings.typing_delay_ms)

        try:
            await page.wait_for_selector(self.selectors.results, timeout=self.timeout_ms)
        except Exception as e:
            logger.debug("Suggestion list did not appear", error=str(e))

        items = await page.query_selector_all(self.selectors.result_item)
        if not items:
            logger.debug("No suggestions offered", target_id=self.target.id)
            return

        pick = await self.choose_item(items, search_term)
        await self._click_item(page, pick, input_selector)
        await self._read_suggestion_id(pick, observation)

        await self.interceptor.capture(
            page, observation, self.target.response_pattern(), self.timeout_ms
        )

        if self.target.has_results_table:
            await self.extractor.read_results_table(page, observation, self.timeout_ms)

    async def choose_item(self, items: list[ElementHandle], search_term: str) -> ElementHandle:
        """First item whose text contains the term, case-insensitively, else the first."""
        needle = search_term.lower()
        for item in items:
            try:
                text = (await item.inner_text() or "").strip()
            except Exception as e:
                logger.debug("Failed to read suggestion text", error=str(e))
                continue
            if text and needle in text.lower():
                return item
        return items[0]

    async def _click_item(self, page: Page, item: ElementHandle, input_selector: str) -> None:
        try:
            await item.click()
            return
        except Exception as e:
            logger.debug("Suggestion click failed, using keyboard", error=str(e))

        try:
            input_element = await page.query_selector(input_selector)
            if input_element is not None:
                await input_element.focus()
                await page.keyboard.press("ArrowDown")
                await page.keyboard.press("Enter")
        except Exception as e:
            logger.debug("Keyboard selection failed", error=str(e))

    async def _read_suggestion_id(self, item: ElementHandle, observation: RawObservation) -> None:
        attribute = self.selectors.suggestion_id_attribute or DEFAULT_SUGGESTION_ID_ATTRIBUTE
        try:
            product_id = await item.get_attribute(attribute)
            if not product_id:
                product_id = await item.get_attribute(FALLBACK_SUGGESTION_ID_ATTRIBUTE)
        except Exception as e:
            logger.debug("Failed to read suggestion id", error=str(e))
            return
        if product_id:
            observation.selected_product_id = product_id

    async def _submit(self, page: Page, input_selector: str, search_term: str) -> None:
        await page.fill(input_selector, search_term)
        input_element = await page.query_selector(input_selector)
        if input_element is None:
            return
        await input_element.press("Enter")
        try:
            await page.wait_for_load_state("networkidle", timeout=self.timeout_ms)
        except Exception as e:
            logger.debug("Network did not go idle after submit", error=str(e))
