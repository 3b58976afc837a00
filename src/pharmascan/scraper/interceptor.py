"""Capture of in-flight availability API responses."""

import json
import re
from typing import Callable, Optional

from playwright.async_api import Page, Response

from ..utils.logging import get_structured_logger
from .types import RawObservation, StepOutcome

logger = get_structured_logger(__name__)

# URL fragments of the availability endpoint used when no pattern is configured.
DEFAULT_RESPONSE_MARKERS = ("/api/public/product/", "/availability")


def build_response_predicate(pattern: Optional[str]) -> Callable[[Response], bool]:
    """Predicate matching HTTP 200 responses whose URL matches ``pattern``.

    An empty or invalid pattern falls back to ``DEFAULT_RESPONSE_MARKERS``.
    """
    regex = None
    if pattern:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            logger.debug("Invalid response pattern, using default", pattern=pattern, error=str(e))

    def predicate(response: Response) -> bool:
        try:
            if response.status != 200:
                return False
            url = response.url
            if regex is not None:
                return regex.search(url) is not None
            return all(marker in url for marker in DEFAULT_RESPONSE_MARKERS)
        except Exception:
            return False

    return predicate


class ResponseInterceptor:
    """Waits for one matching network response and records its body."""

    def __init__(self, persist_raw: bool = False):
        self.persist_raw = persist_raw

    async def wait_for(
        self,
        page: Page,
        observation: RawObservation,
        pattern: Optional[str],
        timeout_ms: int,
    ) -> Response:
        """Await the first matching response; raises when none arrives in time.

        Reading or decoding the body is best-effort and never raises.
        """
        response = await page.wait_for_event(
            "response",
            predicate=build_response_predicate(pattern),
            timeout=timeout_ms,
        )
        logger.debug("Captured availability response", url=response.url)
        await self._record_body(response, observation)
        return response

    async def capture(
        self,
        page: Page,
        observation: RawObservation,
        pattern: Optional[str],
        timeout_ms: int,
    ) -> StepOutcome:
        try:
            await self.wait_for(page, observation, pattern, timeout_ms)
        except Exception as e:
            logger.debug("No availability response captured", error=str(e))
            return StepOutcome.skipped("wait_for_response", e)
        return StepOutcome.succeeded("wait_for_response")

    async def _record_body(self, response: Response, observation: RawObservation) -> None:
        try:
            text = await response.text()
        except Exception as e:
            logger.debug("Failed to read response body", error=str(e))
            return

        if not text:
            return

        if self.persist_raw:
            observation.availability_api_json_raw = text

        try:
            observation.availability_api_json = json.loads(text)
        except ValueError:
            logger.debug("Response body is not JSON", url=response.url)
