"""Periodic scan worker driven by APScheduler."""

import asyncio
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..classifier import ScanStatus
from ..config import WorkerSettings, get_settings
from ..scraper import ScanOrchestrator, get_scan_orchestrator
from ..utils.async_utils import AsyncContextManager
from ..utils.logging import get_structured_logger
from .types import CycleStats, SchedulerError

logger = get_structured_logger(__name__)

SCAN_JOB_ID = "scan-all-targets"


class ScanWorker(AsyncContextManager):
    """Scans every target for every configured product, on an interval.

    Products are scanned one after another per target with the target's
    rate-limit pause between them. With ``run_once`` a single cycle runs and
    no scheduler is started.
    """

    def __init__(
        self,
        orchestrator: Optional[ScanOrchestrator] = None,
        settings: Optional[WorkerSettings] = None,
    ):
        self.settings = settings or get_settings().worker
        self.orchestrator = orchestrator or get_scan_orchestrator()
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.is_running = False
        self.last_cycle: Optional[CycleStats] = None
        self._stop_event = asyncio.Event()

    async def run_cycle(self) -> CycleStats:
        """One pass over all targets; failures are logged and counted."""
        stats = CycleStats()
        targets = self.orchestrator.load_targets(self.settings.target_ids or None)
        stats.targets = len(targets)
        logger.info(
            "Starting scan cycle",
            targets=len(targets),
            products=len(self.settings.products),
        )

        for target in targets:
            for product in self.settings.products:
                logger.info("Scanning", target_id=target.id, product=product)
                try:
                    result = await self.orchestrator.scanner.scan(target, product)
                    stats.scans += 1
                    if result.status is ScanStatus.ERROR:
                        stats.errors += 1
                    stats.posted += await self.orchestrator.process_result(
                        target, product, result
                    )
                except Exception as e:
                    stats.errors += 1
                    logger.error(
                        "Failed to process result",
                        target_id=target.id,
                        product=product,
                        error=str(e),
                    )

                await asyncio.sleep(target.rate_limit_seconds)

        stats.completed_at = datetime.utcnow()
        self.last_cycle = stats
        logger.info(
            "Scan cycle complete",
            scans=stats.scans,
            errors=stats.errors,
            posted=stats.posted,
        )
        return stats

    async def setup(self) -> None:
        """Start the interval job; the first cycle runs immediately."""
        if self.is_running:
            return

        logger.info(
            "Starting scan worker",
            interval_seconds=self.settings.scan_interval_seconds,
        )
        try:
            self.scheduler = AsyncIOScheduler(
                job_defaults={"coalesce": True, "max_instances": 1},
                timezone="UTC",
            )
            self.scheduler.add_job(
                self.run_cycle,
                trigger="interval",
                seconds=self.settings.scan_interval_seconds,
                id=SCAN_JOB_ID,
                next_run_time=datetime.utcnow(),
                replace_existing=True,
            )
            self.scheduler.start()
        except Exception as e:
            logger.error(f"Failed to start scheduler: {str(e)}")
            raise SchedulerError(f"Scheduler startup failed: {str(e)}") from e

        self.is_running = True

    async def cleanup(self) -> None:
        if not self.is_running:
            return

        logger.info("Stopping scan worker")
        if self.scheduler:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None
        self.is_running = False
        self._stop_event.set()

    def stop(self) -> None:
        self._stop_event.set()

    async def run(self) -> None:
        """Run until stopped, or for one cycle with ``run_once``."""
        if self.settings.run_once:
            await self.run_cycle()
            logger.info("Run-once set, exiting after single scan cycle")
            return

        async with self:
            await self._stop_event.wait()
