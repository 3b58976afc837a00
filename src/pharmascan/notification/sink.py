"""HTTP sink for availability records."""

import asyncio
import threading
from pathlib import Path
from typing import Optional

import httpx

from ..config import SinkSettings, get_settings
from ..utils.logging import get_structured_logger
from .types import AvailabilityPayload, SinkError

logger = get_structured_logger(__name__)


class AvailabilitySink:
    """Posts availability payloads to the backend and journals them locally."""

    def __init__(self, settings: Optional[SinkSettings] = None):
        self.settings = settings or get_settings().sink
        self._http_client: Optional[httpx.AsyncClient] = None
        self._journal_lock = threading.Lock()

    @property
    def endpoint(self) -> str:
        return f"{self.settings.backend_api_url}{self.settings.availability_path}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.timeout_seconds)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def post(self, payload: AvailabilityPayload) -> bool:
        """Send one payload; failures are logged and reported as ``False``."""
        body = payload.to_json()
        await self.journal(body)

        try:
            await self._send(body)
        except (httpx.HTTPError, SinkError) as e:
            logger.warning(
                "Failed to post availability",
                pharmacy=payload.pharmacy_external_id,
                product=payload.product_name,
                error=str(e),
            )
            return False

        logger.info(
            "Posted availability",
            pharmacy=payload.pharmacy_external_id,
            product=payload.product_name,
            status=payload.status.value,
        )
        return True

    async def _send(self, body: str) -> None:
        client = await self._get_client()
        response = await client.post(
            self.endpoint,
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        if response.status_code >= 400:
            raise SinkError(f"Backend returned {response.status_code}")

    async def journal(self, body: str) -> None:
        """Append the payload as one line of the NDJSON journal, if configured."""
        if not self.settings.journal_path:
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write_journal, body)

    def _write_journal(self, body: str) -> None:
        try:
            path = Path(self.settings.journal_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            with self._journal_lock, open(path, "a", encoding="utf-8") as f:
                f.write(body + "\n")
        except OSError as e:
            logger.debug("Failed to journal payload", error=str(e))


# Global sink instance
_sink: Optional[AvailabilitySink] = None


def get_availability_sink() -> AvailabilitySink:
    """Get or create the global availability sink."""
    global _sink

    if _sink is None:
        _sink = AvailabilitySink()

    return _sink


async def cleanup_availability_sink() -> None:
    """Close the global availability sink."""
    global _sink

    if _sink:
        await _sink.close()
        _sink = None
