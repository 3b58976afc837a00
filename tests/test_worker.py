"""Tests for the periodic scan worker."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pharmascan.config import ScanTarget, WorkerSettings
from pharmascan.scheduler import ScanWorker, SchedulerError
from pharmascan.scheduler.worker import SCAN_JOB_ID
from pharmascan.scraper import ScanResult, ScanStatus


def make_orchestrator(targets, results, posted=1):
    orchestrator = MagicMock()
    orchestrator.load_targets = MagicMock(return_value=targets)
    orchestrator.scanner.scan = AsyncMock(side_effect=list(results))
    orchestrator.process_result = AsyncMock(return_value=posted)
    return orchestrator


def fast_target(target_id):
    return ScanTarget(id=target_id, rate_limit_seconds=0)


class TestRunCycle:
    """Test one pass over targets and products."""

    @pytest.mark.asyncio
    async def test_scans_every_target_and_product(self):
        orchestrator = make_orchestrator(
            [fast_target("benu"), fast_target("dr-max")],
            [
                ScanResult(status=ScanStatus.OK),
                ScanResult(status=ScanStatus.ERROR, raw={"error": "blocked"}),
                ScanResult(status=ScanStatus.NOT_FOUND),
                ScanResult(status=ScanStatus.OK),
            ],
        )
        settings = WorkerSettings(products=["paralen", "ibalgin"], target_ids=["benu", "dr-max"])

        stats = await ScanWorker(orchestrator, settings).run_cycle()

        assert stats.targets == 2
        assert stats.scans == 4
        assert stats.errors == 1
        assert stats.posted == 4
        assert stats.completed_at is not None
        orchestrator.load_targets.assert_called_once_with(["benu", "dr-max"])
        scanned = [(c.args[0].id, c.args[1]) for c in orchestrator.scanner.scan.await_args_list]
        assert scanned == [
            ("benu", "paralen"),
            ("benu", "ibalgin"),
            ("dr-max", "paralen"),
            ("dr-max", "ibalgin"),
        ]

    @pytest.mark.asyncio
    async def test_failure_is_counted_and_cycle_continues(self):
        orchestrator = make_orchestrator(
            [fast_target("benu")],
            [RuntimeError("browser died"), ScanResult(status=ScanStatus.OK)],
        )
        settings = WorkerSettings(products=["paralen", "ibalgin"])

        stats = await ScanWorker(orchestrator, settings).run_cycle()

        assert stats.scans == 1
        assert stats.errors == 1
        orchestrator.load_targets.assert_called_once_with(None)

    @pytest.mark.asyncio
    async def test_rate_limit_pause_between_scans(self):
        orchestrator = make_orchestrator(
            [ScanTarget(id="benu", rate_limit_seconds=1.5)],
            [ScanResult(status=ScanStatus.OK)],
        )
        settings = WorkerSettings(products=["paralen"])

        with patch("pharmascan.scheduler.worker.asyncio.sleep", new=AsyncMock()) as sleep:
            await ScanWorker(orchestrator, settings).run_cycle()

        sleep.assert_awaited_once_with(1.5)

    @pytest.mark.asyncio
    async def test_run_once(self):
        orchestrator = make_orchestrator([fast_target("benu")], [ScanResult(status=ScanStatus.OK)])
        worker = ScanWorker(orchestrator, WorkerSettings(products=["paralen"], run_once=True))

        await worker.run()

        assert worker.last_cycle.scans == 1
        assert worker.scheduler is None


class TestScheduling:
    """Test the interval job lifecycle."""

    @pytest.mark.asyncio
    async def test_interval_job_is_registered(self):
        worker = ScanWorker(MagicMock(), WorkerSettings(scan_interval_seconds=600))

        with patch("pharmascan.scheduler.worker.AsyncIOScheduler") as scheduler_class:
            scheduler = scheduler_class.return_value
            async with worker:
                assert worker.is_running
                kwargs = scheduler.add_job.call_args.kwargs
                assert scheduler.add_job.call_args.args == (worker.run_cycle,)
                assert kwargs["trigger"] == "interval"
                assert kwargs["seconds"] == 600
                assert kwargs["id"] == SCAN_JOB_ID
                assert kwargs["next_run_time"] is not None
                scheduler.start.assert_called_once()

        scheduler.shutdown.assert_called_once_with(wait=False)
        assert not worker.is_running

    @pytest.mark.asyncio
    async def test_startup_failure(self):
        worker = ScanWorker(MagicMock(), WorkerSettings())

        with patch("pharmascan.scheduler.worker.AsyncIOScheduler") as scheduler_class:
            scheduler_class.return_value.start.side_effect = RuntimeError("no loop")
            with pytest.raises(SchedulerError):
                await worker.setup()

        assert not worker.is_running

    @pytest.mark.asyncio
    async def test_stop_ends_run(self):
        worker = ScanWorker(MagicMock(), WorkerSettings())

        with patch("pharmascan.scheduler.worker.AsyncIOScheduler"):
            worker.stop()
            await worker.run()

        assert not worker.is_running
