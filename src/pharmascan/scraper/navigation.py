"""Execution of a scan target's declarative navigation flow."""

from typing import Awaitable, Callable, Optional

from playwright.async_api import Page

from ..config import (
    ClickStep,
    NavigateStep,
    NavigationStep,
    ScannerSettings,
    ScanTarget,
    TypeStep,
    ValueSource,
    WaitForResponseStep,
    WaitForSelectorStep,
    get_settings,
)
from ..utils.logging import get_structured_logger
from .interceptor import ResponseInterceptor
from .types import RawObservation, StepError, StepOutcome

logger = get_structured_logger(__name__)


async def type_like_human(page: Page, selector: str, value: str, delay_ms: int) -> None:
    """Type ``value`` key by key; set it in one go if paced typing fails."""
    try:
        await page.locator(selector).press_sequentially(value, delay=delay_ms)
    except Exception as e:
        logger.debug("Paced typing failed, filling instead", selector=selector, error=str(e))
        await page.fill(selector, value)


class NavigationExecutor:
    """Runs navigation steps in order against one page.

    Steps are best-effort: a failing step is logged and reported as skipped,
    and the flow moves on to the next one. There are no retries.
    """

    def __init__(
        self,
        target: ScanTarget,
        settings: Optional[ScannerSettings] = None,
        interceptor: Optional[ResponseInterceptor] = None,
    ):
        self.target = target
        self.settings = settings or get_settings().scanner
        self.interceptor = interceptor or ResponseInterceptor(target.persist_raw_response)
        self._handlers: dict[
            type, Callable[[Page, NavigationStep, str, RawObservation], Awaitable[None]]
        ] = {
            NavigateStep: self._navigate,
            WaitForSelectorStep: self._wait_for_selector,
            TypeStep: self._type,
            ClickStep: self._click,
            WaitForResponseStep: self._wait_for_response,
        }

    async def run(
        self, page: Page, search_term: str, observation: RawObservation
    ) -> list[StepOutcome]:
        outcomes = []
        for index, step in enumerate(self.target.navigation_flow):
            outcome = await self.run_step(page, step, search_term, observation)
            if not outcome.ok:
                logger.debug(
                    "Navigation step skipped",
                    target_id=self.target.id,
                    step_index=index,
                    action=step.action,
                    error=outcome.error,
                )
            outcomes.append(outcome)
        return outcomes

    async def run_step(
        self,
        page: Page,
        step: NavigationStep,
        search_term: str,
        observation: RawObservation,
    ) -> StepOutcome:
        handler = self._handlers[type(step)]
        try:
            await handler(page, step, search_term, observation)
        except Exception as e:
            return StepOutcome.skipped(step.action, e)
        return StepOutcome.succeeded(step.action)

    def _timeout(self, step_timeout_ms: Optional[int]) -> int:
        return self.target.step_timeout_ms(
            step_timeout_ms, self.settings.default_step_timeout_ms
        )

    async def _navigate(
        self, page: Page, step: NavigateStep, search_term: str, observation: RawObservation
    ) -> None:
        if not step.url:
            raise StepError("navigate step has no url")
        await page.goto(
            step.url,
            wait_until="domcontentloaded",
            timeout=self.settings.navigate_timeout_ms,
        )

    async def _wait_for_selector(
        self,
        page: Page,
        step: WaitForSelectorStep,
        search_term: str,
        observation: RawObservation,
    ) -> None:
        if not step.selector:
            raise StepError("wait_for_selector step has no selector")
        await page.wait_for_selector(step.selector, timeout=self._timeout(step.timeout_ms))

    async def _type(
        self, page: Page, step: TypeStep, search_term: str, observation: RawObservation
    ) -> None:
        if not step.selector:
            raise StepError("type step has no selector")

        value = search_term if step.value_source is ValueSource.SEARCH_TERM else ""
        if step.clear_first:
            await page.fill(step.selector, "")
        await type_like_human(page, step.selector, value, self.settings.typing_delay_ms)

    async def _click(
        self, page: Page, step: ClickStep, search_term: str, observation: RawObservation
    ) -> None:
        if not step.selector:
            raise StepError("click step has no selector")

        element = await page.query_selector(step.selector)
        if element is None:
            raise StepError(f"no element matches {step.selector}")
        await element.click()

        extract = step.extract_attribute
        if not extract or not extract.attribute:
            return
        try:
            value = await element.get_attribute(extract.attribute)
        except Exception as e:
            logger.debug("Failed to read clicked attribute", attribute=extract.attribute, error=str(e))
            return
        if extract.name and value is not None:
            observation.store(extract.name, value)

    async def _wait_for_response(
        self,
        page: Page,
        step: WaitForResponseStep,
        search_term: str,
        observation: RawObservation,
    ) -> None:
        await self.interceptor.wait_for(
            page,
            observation,
            self.target.response_pattern(step.match_pattern),
            self._timeout(step.timeout_ms),
        )
