"""Mock Playwright pages, elements and browsers for scan tests."""

from contextlib import asynccontextmanager
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

SEARCH_PAGE_URL = "https://www.lekaren.sk/vyhladavanie?q=paralen"
EMPTY_HTML = "<html><body><div id='app'></div></body></html>"


def make_page(url: str = SEARCH_PAGE_URL, html: str = EMPTY_HTML) -> MagicMock:
    """Mock Playwright page; every awaitable method is an AsyncMock."""
    page = MagicMock()
    page.url = url
    page.goto = AsyncMock()
    page.content = AsyncMock(return_value=html)
    page.wait_for_selector = AsyncMock()
    page.query_selector = AsyncMock(return_value=None)
    page.query_selector_all = AsyncMock(return_value=[])
    page.fill = AsyncMock()
    page.wait_for_event = AsyncMock()
    page.wait_for_load_state = AsyncMock()

    locator = MagicMock()
    locator.press_sequentially = AsyncMock()
    page.locator = MagicMock(return_value=locator)

    page.keyboard = MagicMock()
    page.keyboard.press = AsyncMock()
    page.close = AsyncMock()
    return page


def make_element(
    text: Optional[str] = None,
    attributes: Optional[dict[str, str]] = None,
    children: Optional[dict[str, Any]] = None,
) -> MagicMock:
    """Mock element handle with fixed text, attributes and child elements."""
    attrs = attributes or {}
    kids = children or {}

    element = MagicMock()
    element.inner_text = AsyncMock(return_value=text)
    element.get_attribute = AsyncMock(side_effect=lambda name: attrs.get(name))
    element.query_selector = AsyncMock(side_effect=lambda selector: kids.get(selector))
    element.click = AsyncMock()
    element.focus = AsyncMock()
    element.press = AsyncMock()
    return element


def make_response(url: str, status: int = 200, body: str = "") -> MagicMock:
    response = MagicMock()
    response.url = url
    response.status = status
    response.text = AsyncMock(return_value=body)
    return response


def make_row(title: str, price: str, stock: str) -> MagicMock:
    """Results-list row carrying ``.title``, ``.price`` and ``.stock`` cells."""
    return make_element(
        children={
            ".title": make_element(title),
            ".price": make_element(price),
            ".stock": make_element(stock),
        }
    )


class FakeBrowser:
    """Stands in for ``StealthBrowser``; always hands out the same page."""

    def __init__(self, page: MagicMock):
        self.page = page
        self.context = MagicMock()
        self.context.close = AsyncMock()
        self.targets: list = []

    @asynccontextmanager
    async def create_page(self, target=None):
        self.targets.append(target)
        yield self.context, self.page
