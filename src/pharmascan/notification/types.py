"""Type definitions for the notification module."""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from ..classifier.types import ScanStatus


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class SinkError(NotificationError):
    """Exception raised when the availability endpoint rejects a payload."""

    pass


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@dataclass
class AvailabilityPayload:
    """Body posted to the availability ingestion endpoint."""

    product_name: str
    pharmacy_external_id: str
    status: ScanStatus
    price: Optional[Decimal] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "productName": self.product_name,
            "pharmacyExternalId": self.pharmacy_external_id,
            "status": self.status.value,
            "price": self.price,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=_json_default)
