"""Type definitions for the classifier module."""

from enum import Enum


class ScanStatus(str, Enum):
    """Outcome of one scan as reported to the availability sink."""

    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"


class StockStatus(str, Enum):
    """What a piece of availability text says about stock."""

    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"
    UNKNOWN = "unknown"
