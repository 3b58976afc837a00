"""Type definitions for the scraper module."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from ..classifier.types import ScanStatus


class ScrapingError(Exception):
    """Base exception for scraping-related errors."""

    pass


class StepError(ScrapingError):
    """A single navigation or extraction step could not do its work."""

    pass


class SiteBlockedError(ScrapingError):
    """The site answered with an error or bot-detection page."""

    pass


class StepStatus(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StepOutcome:
    """Result of one best-effort step; a failed step is skipped, not raised."""

    step: str
    status: StepStatus
    error: Optional[str] = None

    @classmethod
    def succeeded(cls, step: str) -> "StepOutcome":
        return cls(step=step, status=StepStatus.SUCCEEDED)

    @classmethod
    def skipped(cls, step: str, error: Any = None) -> "StepOutcome":
        return cls(
            step=step,
            status=StepStatus.SKIPPED,
            error=str(error) if error is not None else None,
        )

    @property
    def ok(self) -> bool:
        return self.status is StepStatus.SUCCEEDED


# Wire names of the typed observation fields, in output order.
_FIELD_KEYS = {
    "title": "title",
    "price_text": "priceText",
    "availability_text": "availabilityText",
    "rows": "rows",
    "extracted_rows": "extractedRows",
    "row_count": "rowCount",
    "selected_product_id": "selectedProductId",
    "availability_api_json": "availabilityApiJson",
    "availability_api_json_raw": "availabilityApiJsonRaw",
    "page_url": "pageUrl",
    "note": "note",
    "error": "error",
}
_ATTRS_BY_KEY = {key: attr for attr, key in _FIELD_KEYS.items()}


@dataclass
class RawObservation:
    """Everything one scan extracted, accumulated step by step.

    Typed fields cover what the pipeline itself reads back. ``extras`` is the
    side channel for values a recipe asks to capture (e.g. a clicked element's
    attribute) and other diagnostics. ``store`` routes a wire name to its typed
    field when there is one, so extras never shadow a typed field.
    """

    title: Optional[str] = None
    price_text: Optional[str] = None
    availability_text: Optional[str] = None
    rows: Optional[list[dict[str, Optional[str]]]] = None
    extracted_rows: Optional[list[dict[str, Optional[str]]]] = None
    row_count: Optional[int] = None
    selected_product_id: Optional[str] = None
    availability_api_json: Any = None
    availability_api_json_raw: Optional[str] = None
    page_url: Optional[str] = None
    note: Optional[str] = None
    error: Optional[str] = None
    extras: dict[str, Any] = field(default_factory=dict)

    def set_extra(self, key: str, value: Any) -> None:
        self.extras[key] = value

    def store(self, key: str, value: Any) -> None:
        """Store a value under its wire name, typed field first."""
        attr = _ATTRS_BY_KEY.get(key)
        if attr is None:
            self.set_extra(key, value)
        else:
            setattr(self, attr, value)

    def promote_row(self, row: dict[str, Optional[str]]) -> None:
        """Use a declarative row's fields as the scan's top-level fields."""
        self.title = row.get("title")
        self.price_text = row.get("price")
        self.availability_text = row.get("stockStatus")

    def to_dict(self) -> dict[str, Any]:
        """Render with wire (camelCase) keys, omitting unset fields."""
        data = {k: v for k, v in self.extras.items() if k not in _FIELD_KEYS.values()}
        for attr, key in _FIELD_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class ScanResult:
    """Finalized output of one (target, search term) scan."""

    status: ScanStatus
    price: Optional[Decimal] = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_observation(
        cls,
        status: ScanStatus,
        observation: RawObservation,
        price: Optional[Decimal] = None,
    ) -> "ScanResult":
        return cls(status=status, price=price, raw=observation.to_dict())

    @property
    def title(self) -> Optional[str]:
        return self.raw.get("title")

    @property
    def rows(self) -> list[dict[str, Optional[str]]]:
        return list(self.raw.get("rows") or [])
