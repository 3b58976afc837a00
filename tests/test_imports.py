"""Test basic package imports to validate structure."""


def test_main_package_imports():
    """Test that main package components can be imported."""
    from pharmascan import __version__, get_settings, main_api, main_worker

    assert __version__ == "0.1.0"
    assert callable(main_worker)
    assert callable(main_api)
    assert callable(get_settings)


def test_config_imports():
    """Test configuration module imports."""
    from pharmascan.config import (
        AppSettings,
        ConfigError,
        ConfigLoader,
        ConfigLoadError,
        ConfigValidationError,
        ScanTarget,
        get_settings,
    )

    assert AppSettings is not None
    assert ScanTarget is not None
    assert callable(get_settings)
    assert ConfigLoader is not None
    assert issubclass(ConfigLoadError, ConfigError)
    assert issubclass(ConfigValidationError, ConfigError)


def test_utils_imports():
    """Test utility module imports."""
    from pharmascan.utils import (
        AsyncTimeoutError,
        UtilityError,
        gather_with_limit,
        get_logger,
        run_with_timeout,
        setup_logging,
    )

    assert callable(setup_logging)
    assert callable(get_logger)
    assert callable(run_with_timeout)
    assert callable(gather_with_limit)
    assert issubclass(AsyncTimeoutError, UtilityError)


def test_scraper_imports():
    """Test scraper module imports."""
    from pharmascan.scraper import (
        ChangeDetector,
        NavigationExecutor,
        PharmacyScanner,
        ScanOrchestrator,
        ScrapingError,
        SiteBlockedError,
        StepError,
    )

    assert PharmacyScanner is not None
    assert ScanOrchestrator is not None
    assert NavigationExecutor is not None
    assert ChangeDetector is not None
    assert issubclass(StepError, ScrapingError)
    assert issubclass(SiteBlockedError, ScrapingError)


def test_classifier_imports():
    """Test classifier module imports."""
    from pharmascan.classifier import AvailabilityClassifier, ScanStatus, StockStatus

    assert AvailabilityClassifier is not None
    assert ScanStatus.OK.value == "ok"
    assert StockStatus.OUT_OF_STOCK.value == "out_of_stock"


def test_notification_imports():
    """Test notification module imports."""
    from pharmascan.notification import (
        AvailabilityPayload,
        AvailabilitySink,
        NotificationError,
        SinkError,
    )

    assert AvailabilitySink is not None
    assert AvailabilityPayload is not None
    assert issubclass(SinkError, NotificationError)


def test_scheduler_and_api_imports():
    """Test scheduler and API module imports."""
    from pharmascan.api import ScrapeRequest, create_app
    from pharmascan.scheduler import SchedulerError, ScanWorker

    assert callable(create_app)
    assert ScrapeRequest is not None
    assert ScanWorker is not None
    assert issubclass(SchedulerError, Exception)
