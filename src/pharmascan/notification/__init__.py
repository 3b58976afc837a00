"""Delivery of availability records to the backend."""

from .sink import AvailabilitySink, cleanup_availability_sink, get_availability_sink
from .types import AvailabilityPayload, NotificationError, SinkError

__all__ = [
    "AvailabilitySink",
    "get_availability_sink",
    "cleanup_availability_sink",
    "AvailabilityPayload",
    "NotificationError",
    "SinkError",
]
