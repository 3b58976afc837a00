"""Test configuration and fixtures for the pharmascan test suite."""

import pytest

from pharmascan.config import AppSettings, ScannerSettings, ScanTarget, get_settings
from pharmascan.scraper import reset_change_detector
from tests.mock_pages import make_page


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Keep cached settings and process-wide singletons from leaking between tests."""
    get_settings.cache_clear()
    reset_change_detector()
    yield
    get_settings.cache_clear()
    reset_change_detector()


@pytest.fixture
def scanner_settings() -> ScannerSettings:
    """Scanner settings without warm-up or settle pauses."""
    return ScannerSettings(
        homepage_warmup=False,
        settle_delay_seconds=0,
        default_step_timeout_ms=100,
    )


@pytest.fixture
def app_settings(tmp_path, scanner_settings) -> AppSettings:
    return AppSettings(
        scanner=scanner_settings,
        state={"hash_store_path": str(tmp_path / "state" / "hashes.json")},
        sink={"journal_path": str(tmp_path / "state" / "sent.ndjson")},
        worker={"config_dir": str(tmp_path / "pharmacies")},
    )


@pytest.fixture
def row_target() -> ScanTarget:
    """Target that reads product rows declaratively from a results page."""
    return ScanTarget.model_validate(
        {
            "id": "lekaren",
            "name": "Lekáreň",
            "searchUrlTemplate": "https://www.lekaren.sk/vyhladavanie?q={query}",
            "selectors": {
                "title": "h1.product-title",
                "price": ".product-price",
                "availability": ".product-stock",
            },
            "extraction": {
                "iterateRows": ".product-card",
                "fields": {
                    "title": {"selector": ".title", "type": "text"},
                    "price": {"selector": ".price", "type": "text"},
                    "stockStatus": {"selector": ".stock", "type": "text"},
                },
            },
        }
    )


@pytest.fixture
def page():
    return make_page()
