"""FastAPI application exposing on-demand availability scans."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from ..config import AppSettings, get_settings
from ..scraper import (
    ScanOrchestrator,
    cleanup_browser,
    cleanup_scan_orchestrator,
    get_scan_orchestrator,
)
from ..utils.logging import get_structured_logger, setup_logging
from .types import APIError, ErrorResponse, ScrapeRequest, ScrapeResponse

logger = get_structured_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan events."""
    logger.info("Starting PharmaScan API application")

    owns_orchestrator = getattr(app.state, "orchestrator", None) is None
    if owns_orchestrator:
        app.state.orchestrator = get_scan_orchestrator()

    try:
        yield
    finally:
        logger.info("Shutting down PharmaScan API application")
        if owns_orchestrator:
            try:
                await cleanup_scan_orchestrator()
                await cleanup_browser()
            except Exception as e:
                logger.error(f"Error during application shutdown: {str(e)}")

        logger.info("PharmaScan API application shutdown complete")


def get_orchestrator_from_state(request: Request) -> ScanOrchestrator:
    """Get the scan orchestrator from app state."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise APIError("Orchestrator not initialized")
    return orchestrator


def create_app(
    settings: Optional[AppSettings] = None,
    orchestrator: Optional[ScanOrchestrator] = None,
) -> FastAPI:
    """Create and configure FastAPI application."""
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="PharmaScan API",
        description="On-demand pharmacy availability scans",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator

    setup_middleware(app)
    setup_exception_handlers(app)
    setup_routes(app)

    logger.info("FastAPI application created and configured")
    return app


def setup_middleware(app: FastAPI) -> None:
    """Request/response logging."""

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = asyncio.get_event_loop().time()
        response = await call_next(request)
        logger.info(
            "HTTP request",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            process_time=asyncio.get_event_loop().time() - start_time,
        )
        return response


def setup_exception_handlers(app: FastAPI) -> None:
    """Setup global exception handlers."""

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=request.url.path,
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        logger.error("API error", error=str(exc), path=request.url.path)
        error_response = ErrorResponse(error="API_ERROR", message=str(exc))
        return JSONResponse(status_code=500, content=error_response.model_dump(mode="json"))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unexpected error",
            error=str(exc),
            path=request.url.path,
            method=request.method,
        )
        error_response = ErrorResponse(
            error="INTERNAL_ERROR",
            message=str(exc),
            details={"type": type(exc).__name__},
        )
        return JSONResponse(status_code=500, content=error_response.model_dump(mode="json"))


def setup_routes(app: FastAPI) -> None:
    """Register the scan and health endpoints."""

    @app.get("/health")
    async def health_check() -> dict:
        return {"status": "ok"}

    @app.post("/api/scrape", response_model=ScrapeResponse)
    async def scrape(
        body: ScrapeRequest,
        request: Request,
        target_ids: Optional[list[str]] = Query(default=None),
    ) -> ScrapeResponse:
        if not body.is_complete:
            raise HTTPException(status_code=400, detail="Product and Location are required")

        orchestrator = get_orchestrator_from_state(request)
        settings: AppSettings = request.app.state.settings
        result = await orchestrator.check_single_product(
            body.product.strip(),
            body.location.strip(),
            target_ids or settings.worker.target_ids or None,
        )
        return ScrapeResponse(success=True, product=body.product, result=result)


def main() -> None:
    """Run the FastAPI application."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.json_logs)

    logger.info(
        "Starting PharmaScan API server",
        host=settings.api_host,
        port=settings.api_port,
    )

    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
