"""Main entry points for PharmaScan processes."""

import asyncio
import sys

from .config import get_settings
from .utils.logging import setup_logging


async def _run_worker() -> None:
    from .scheduler import ScanWorker
    from .scraper import cleanup_browser, cleanup_scan_orchestrator

    worker = ScanWorker()
    try:
        await worker.run()
    finally:
        await cleanup_scan_orchestrator()
        await cleanup_browser()


def main_worker() -> None:
    """Entry point for the periodic scan worker."""
    try:
        settings = get_settings()
        setup_logging(settings.log_level, settings.json_logs)
        asyncio.run(_run_worker())
    except KeyboardInterrupt:
        print("\nScan worker stopped by user")
        sys.exit(0)
    except Exception as e:
        print(f"Error running scan worker: {str(e)}")
        sys.exit(1)


def main_api() -> None:
    """Entry point for the API application."""
    try:
        from .api.app import main

        main()
    except KeyboardInterrupt:
        print("\nAPI server stopped by user")
        sys.exit(0)
    except Exception as e:
        print(f"Error starting API server: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main_worker()
