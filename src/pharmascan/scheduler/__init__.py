"""Periodic scanning of every configured target and product."""

from .types import CycleStats, SchedulerError
from .worker import ScanWorker

__all__ = ["ScanWorker", "CycleStats", "SchedulerError"]
