"""Browser-driven availability scanning for PharmaScan.

This module provides the scan pipeline:
- Playwright browser automation with stealth configuration
- Declarative navigation flows and response capture
- Typeahead handling and row/field extraction
- Content hashing and change detection
- Orchestrated scanning with forwarding to the availability sink
"""

from .browser import StealthBrowser, cleanup_browser, get_browser
from .extractor import RowExtractor, is_product_detail_page
from .hashing import (
    ChangeDetector,
    ContentHasher,
    JsonFileSnapshotStore,
    MemorySnapshotStore,
    SnapshotStore,
    canonical_json,
    get_change_detector,
    reset_change_detector,
)
from .interceptor import ResponseInterceptor, build_response_predicate
from .navigation import NavigationExecutor
from .orchestrator import (
    AvailabilityRecord,
    PharmacyScanner,
    ScanOrchestrator,
    build_records,
    cleanup_scan_orchestrator,
    get_scan_orchestrator,
)
from .typeahead import TypeaheadHandler
from .types import (
    RawObservation,
    ScanResult,
    ScanStatus,
    ScrapingError,
    SiteBlockedError,
    StepError,
    StepOutcome,
    StepStatus,
)

__all__ = [
    # Types
    "ScrapingError",
    "StepError",
    "SiteBlockedError",
    "ScanStatus",
    "StepStatus",
    "StepOutcome",
    "RawObservation",
    "ScanResult",
    "AvailabilityRecord",
    # Browser automation
    "StealthBrowser",
    "get_browser",
    "cleanup_browser",
    # Navigation and extraction
    "NavigationExecutor",
    "ResponseInterceptor",
    "build_response_predicate",
    "TypeaheadHandler",
    "RowExtractor",
    "is_product_detail_page",
    # Change detection
    "ContentHasher",
    "ChangeDetector",
    "SnapshotStore",
    "JsonFileSnapshotStore",
    "MemorySnapshotStore",
    "canonical_json",
    "get_change_detector",
    "reset_change_detector",
    # Orchestration
    "PharmacyScanner",
    "ScanOrchestrator",
    "build_records",
    "get_scan_orchestrator",
    "cleanup_scan_orchestrator",
]
