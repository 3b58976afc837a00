"""Scan orchestration: one page per (target, search term), results to the sink."""

import asyncio
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional
from urllib.parse import urlsplit

from playwright.async_api import BrowserContext, Page

from ..classifier import AvailabilityClassifier, get_phrase_table, parse_price, slugify
from ..config import AppSettings, ConfigLoader, ScannerSettings, ScanTarget, get_settings
from ..notification import AvailabilityPayload, AvailabilitySink, get_availability_sink
from ..utils.async_utils import AsyncContextManager, gather_with_limit, run_with_timeout
from ..utils.logging import LoggingContextManager, get_structured_logger
from .browser import StealthBrowser, get_browser
from .extractor import RowExtractor
from .hashing import ChangeDetector, get_change_detector
from .interceptor import ResponseInterceptor
from .navigation import NavigationExecutor
from .typeahead import TypeaheadHandler
from .types import RawObservation, ScanResult, ScanStatus, SiteBlockedError

logger = get_structured_logger(__name__)

BLOCKED_PAGE_MESSAGE = "Website returned error page (possible bot detection)"

NOTE_NO_RESULTS_SELECTOR = "no_results_selector_matched"
NOTE_NO_RESULTS_TEXT = "no_results_text_found"
NOTE_MISSING_TITLE_OR_PRICE = "missing_title_or_price"
NOTE_PRODUCT_MISMATCH = "product_name_mismatch"
NOTE_PRICE_NOT_PARSEABLE = "price_not_parseable"


class PharmacyScanner:
    """Runs the full extraction pipeline for one target and search term.

    ``scan`` never raises for scan failures: a detected block page or any
    unexpected exception becomes a result with ``status=error`` and the
    message under ``raw["error"]``. Only cancellation propagates.
    """

    def __init__(
        self,
        browser: Optional[StealthBrowser] = None,
        settings: Optional[ScannerSettings] = None,
        classifier: Optional[AvailabilityClassifier] = None,
    ):
        self.settings = settings or get_settings().scanner
        self.browser = browser
        self.classifier = classifier or AvailabilityClassifier(
            get_phrase_table(self.settings.locale)
        )

    async def scan(
        self,
        target: ScanTarget,
        search_term: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ScanResult:
        observation = RawObservation()

        with LoggingContextManager(target_id=target.id, search_term=search_term):
            logger.info("Starting scan")
            try:
                result = await self._scan(target, search_term, observation, cancel_event)
            except SiteBlockedError as e:
                logger.warning("Detected error page", url=observation.page_url)
                observation.error = str(e)
                result = ScanResult.from_observation(ScanStatus.ERROR, observation)
            except Exception as e:
                logger.error("Scan failed", error=str(e))
                observation.error = str(e)
                result = ScanResult.from_observation(ScanStatus.ERROR, observation)

            logger.info(
                "Scan finished",
                status=result.status.value,
                price=str(result.price) if result.price is not None else None,
                note=result.raw.get("note"),
            )
            return result

    async def _scan(
        self,
        target: ScanTarget,
        search_term: str,
        observation: RawObservation,
        cancel_event: Optional[asyncio.Event],
    ) -> ScanResult:
        browser = self.browser or await get_browser()
        async with browser.create_page(target) as (context, page):
            work = self.scan_page(page, target, search_term, observation)
            if self.settings.scan_timeout_seconds:
                work = run_with_timeout(
                    work,
                    self.settings.scan_timeout_seconds,
                    f"Scan of {target.id} timed out after {self.settings.scan_timeout_seconds}s",
                )
            if cancel_event is None:
                return await work
            return await self._run_cancellable(work, context, cancel_event)

    async def _run_cancellable(
        self, work, context: BrowserContext, cancel_event: asyncio.Event
    ) -> ScanResult:
        """Await ``work`` unless ``cancel_event`` fires first.

        On cancellation the context is closed, which aborts any pending
        Playwright wait, and ``CancelledError`` is raised.
        """
        scan_task = asyncio.ensure_future(work)
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {scan_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            scan_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if scan_task in done:
            return scan_task.result()

        logger.info("Scan cancelled, closing browser context")
        try:
            await context.close()
        except Exception as e:
            logger.debug("Failed to close context on cancel", error=str(e))
        scan_task.cancel()
        await asyncio.gather(scan_task, return_exceptions=True)
        raise asyncio.CancelledError()

    async def scan_page(
        self,
        page: Page,
        target: ScanTarget,
        search_term: str,
        observation: RawObservation,
    ) -> ScanResult:
        """Drive ``page`` through search, navigation and extraction."""
        url = target.search_url(search_term)
        if self.settings.homepage_warmup:
            await self._warm_up(page, url)

        await page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=self.settings.search_page_timeout_ms,
        )
        if self.settings.settle_delay_seconds > 0:
            await asyncio.sleep(self.settings.settle_delay_seconds)

        if self.classifier.is_block_page(await page.content()):
            observation.page_url = page.url
            raise SiteBlockedError(BLOCKED_PAGE_MESSAGE)

        timeout_ms = target.step_timeout_ms(None, self.settings.default_step_timeout_ms)
        interceptor = ResponseInterceptor(target.persist_raw_response)
        extractor = RowExtractor(target)

        if target.navigation_flow:
            await NavigationExecutor(target, self.settings, interceptor).run(
                page, search_term, observation
            )
            if target.has_results_table:
                await extractor.read_results_table(page, observation, timeout_ms)

        if target.has_typeahead:
            await TypeaheadHandler(target, self.settings, interceptor, extractor).run(
                page, search_term, observation
            )

        if target.has_row_extraction:
            await extractor.extract_rows(page, observation)

        if not observation.title:
            if await extractor.no_results_selector_matches(page):
                return self._not_found(observation, NOTE_NO_RESULTS_SELECTOR)
            if self.classifier.has_no_results_text(await extractor.visible_text(page)):
                return self._not_found(observation, NOTE_NO_RESULTS_TEXT)
            await extractor.extract_legacy(page, observation)

        return self.finalize(target, search_term, observation, page.url)

    async def _warm_up(self, page: Page, url: str) -> None:
        """Visit the site root first, then pause like a reader would."""
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            return
        try:
            await page.goto(
                f"{parts.scheme}://{parts.netloc}",
                wait_until="domcontentloaded",
                timeout=self.settings.homepage_timeout_ms,
            )
            await asyncio.sleep(
                random.uniform(
                    self.settings.warmup_delay_min_seconds,
                    self.settings.warmup_delay_max_seconds,
                )
            )
        except Exception as e:
            logger.debug("Homepage warm-up failed", error=str(e))

    def finalize(
        self,
        target: ScanTarget,
        search_term: str,
        observation: RawObservation,
        page_url: str,
    ) -> ScanResult:
        """Turn the extracted fields into a status and price."""
        title = observation.title
        price_text = observation.price_text
        logger.info(
            "Extraction results",
            title=title,
            price=price_text,
            availability=observation.availability_text,
        )

        if not title or not price_text:
            observation.page_url = page_url
            logger.warning(
                "Missing title or price",
                url=page_url,
                title_selector=target.selectors.title,
                price_selector=target.selectors.price,
            )
            return self._not_found(observation, NOTE_MISSING_TITLE_OR_PRICE)

        if not self.classifier.is_relevant(search_term, title):
            logger.info(
                "Product mismatch",
                title=title,
                search_key=self.classifier.search_key(search_term),
            )
            return self._not_found(observation, NOTE_PRODUCT_MISMATCH)

        price = parse_price(price_text)
        if price is None:
            return self._not_found(observation, NOTE_PRICE_NOT_PARSEABLE)

        status = self.classifier.classify_status(observation.availability_text, title, price)
        return ScanResult.from_observation(status, observation, price)

    @staticmethod
    def _not_found(observation: RawObservation, note: str) -> ScanResult:
        observation.note = note
        return ScanResult.from_observation(ScanStatus.NOT_FOUND, observation)


@dataclass(frozen=True)
class AvailabilityRecord:
    """One deduplicated availability fact derived from a scan result."""

    pharmacy_id: str
    key: str
    status: ScanStatus
    price: Optional[Decimal]
    details: dict[str, Any]


def build_records(
    target: ScanTarget,
    search_term: str,
    result: ScanResult,
    classifier: AvailabilityClassifier,
) -> list[AvailabilityRecord]:
    """Split a result into records: one per results-table row, else one overall."""
    if "rows" not in result.raw:
        return [
            AvailabilityRecord(
                pharmacy_id=target.id,
                key=f"{target.id}:{search_term}",
                status=result.status,
                price=result.price,
                details=result.raw,
            )
        ]

    records = []
    for row in result.rows:
        name = row.get("name")
        price_text = row.get("priceText")
        availability_text = row.get("availabilityText")
        pharmacy_id = f"{target.id}:{slugify(name)}"
        records.append(
            AvailabilityRecord(
                pharmacy_id=pharmacy_id,
                key=f"{pharmacy_id}:{search_term}",
                status=classifier.classify_row(availability_text),
                price=parse_price(price_text),
                details={
                    "sourceName": name,
                    "priceText": price_text,
                    "availabilityText": availability_text,
                    "scannerRaw": result.raw,
                },
            )
        )
    return records


class ScanOrchestrator(AsyncContextManager):
    """Scans targets, deduplicates results and forwards changes to the sink."""

    def __init__(
        self,
        scanner: Optional[PharmacyScanner] = None,
        change_detector: Optional[ChangeDetector] = None,
        sink: Optional[AvailabilitySink] = None,
        loader: Optional[ConfigLoader] = None,
        settings: Optional[AppSettings] = None,
    ):
        self.settings = settings or get_settings()
        self.scanner = scanner or PharmacyScanner(settings=self.settings.scanner)
        self.change_detector = change_detector or get_change_detector(
            self.settings.state.hash_store_path, self.settings.state.hash_type
        )
        self.sink = sink or get_availability_sink()
        self.loader = loader or ConfigLoader(self.settings.worker.config_dir)

    async def cleanup(self) -> None:
        await self.change_detector.wait_for_flushes()
        await self.sink.close()

    def load_targets(self, target_ids: Optional[list[str]] = None) -> list[ScanTarget]:
        targets = self.loader.load_all()
        if target_ids:
            wanted = set(target_ids)
            targets = [t for t in targets if t.id in wanted]
        return targets

    async def scan_many(
        self,
        jobs: list[tuple[ScanTarget, str]],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> list[ScanResult]:
        """Scan (target, search term) pairs concurrently, one context each."""
        return await gather_with_limit(
            *(self.scanner.scan(target, term, cancel_event) for target, term in jobs),
            limit=self.settings.scanner.max_concurrent_scans,
        )

    async def scan_and_process(
        self,
        target: ScanTarget,
        search_term: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ScanResult:
        result = await self.scanner.scan(target, search_term, cancel_event)
        await self.process_result(target, search_term, result)
        return result

    async def process_result(
        self, target: ScanTarget, search_term: str, result: ScanResult
    ) -> int:
        """Post every record whose content changed; returns how many were posted."""
        posted = 0
        for record in build_records(target, search_term, result, self.scanner.classifier):
            digest = self.change_detector.compute_hash(
                record.status.value, record.price, record.details
            )
            if not self.change_detector.is_changed_and_update(record.key, digest):
                logger.debug("No change, skipping post", key=record.key)
                continue

            payload = AvailabilityPayload(
                product_name=search_term.lower(),
                pharmacy_external_id=record.pharmacy_id,
                status=record.status,
                price=record.price,
                details=record.details,
            )
            if await self.sink.post(payload):
                posted += 1
        return posted

    async def check_single_product(
        self,
        product: str,
        location: str,
        target_ids: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        """On-demand scan of one product across the configured targets."""
        logger.info("On-demand scan requested", product=product, location=location)

        results = []
        for target in self.load_targets(target_ids):
            result = await self.scanner.scan(target, product)
            if result.status is ScanStatus.ERROR:
                results.append(
                    {
                        "pharmacyId": target.id,
                        "status": result.status.value,
                        "error": result.raw.get("error"),
                    }
                )
                continue

            results.append(
                {
                    "pharmacyId": target.id,
                    "status": result.status.value,
                    "price": float(result.price) if result.price is not None else 0,
                    "details": result.raw,
                }
            )
            await self.sink.post(
                AvailabilityPayload(
                    product_name=product.lower(),
                    pharmacy_external_id=target.id,
                    status=result.status,
                    price=result.price,
                    details=result.raw,
                )
            )

        return {
            "product": product,
            "location": location,
            "scannedPharmacies": len(results),
            "results": results,
        }


# Global orchestrator instance
_orchestrator: Optional[ScanOrchestrator] = None


def get_scan_orchestrator() -> ScanOrchestrator:
    """Get or create the global scan orchestrator."""
    global _orchestrator

    if _orchestrator is None:
        _orchestrator = ScanOrchestrator()

    return _orchestrator


async def cleanup_scan_orchestrator() -> None:
    """Clean up the global scan orchestrator."""
    global _orchestrator

    if _orchestrator:
        await _orchestrator.cleanup()
        _orchestrator = None
