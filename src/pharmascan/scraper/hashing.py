"""Content hashing and change detection for scan results."""

import asyncio
import hashlib
import json
import threading
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Protocol, Union

import blake3

from ..config import get_settings
from ..utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def canonical_json(status: Any, price: Optional[Decimal], details: Any) -> str:
    """Serialize the (status, price, details) triple with sorted keys."""
    payload = {"status": status, "price": price, "details": details}
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_default,
    )


class ContentHasher:
    """Hashes the canonical form of an observation."""

    def __init__(self, hash_type: str = "sha256"):
        if hash_type not in ("sha256", "blake3"):
            raise ValueError(f"Unsupported hash type: {hash_type}")
        self.hash_type = hash_type

    def hash_text(self, text: str) -> str:
        data = text.encode("utf-8")
        if self.hash_type == "blake3":
            hasher = blake3.blake3()
            hasher.update(data)
            return hasher.hexdigest()
        return hashlib.sha256(data).hexdigest()

    def hash_observation(
        self, status: Any, price: Optional[Decimal], details: Any
    ) -> str:
        return self.hash_text(canonical_json(status, price, details))


class SnapshotStore(Protocol):
    """Where the key -> digest map is persisted between runs."""

    def load(self) -> dict[str, str]:
        ...

    def save(self, hashes: dict[str, str]) -> None:
        ...


class JsonFileSnapshotStore:
    """Flat JSON object of key -> hex digest on disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> dict[str, str]:
        """Read the snapshot; a missing or corrupt file is an empty store."""
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.debug("Ignoring unreadable hash snapshot", path=str(self.path), error=str(e))
            return {}

        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if isinstance(v, str)}

    def save(self, hashes: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(hashes, f, ensure_ascii=False)
        tmp_path.replace(self.path)


class MemorySnapshotStore:
    """Keeps the snapshot in memory."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.saved: dict[str, str] = dict(initial or {})
        self.save_count = 0

    def load(self) -> dict[str, str]:
        return dict(self.saved)

    def save(self, hashes: dict[str, str]) -> None:
        self.saved = dict(hashes)
        self.save_count += 1


class ChangeDetector:
    """Decides whether an observation differs from the last one seen per key.

    The map holds at most one digest per key (last write wins). Compare-and-set
    runs under a lock so concurrent scans of the same key cannot both report a
    change for one digest. Persisting to the
    snapshot store is fire-and-forget.
    """

    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        hasher: Optional[ContentHasher] = None,
    ):
        self.store = store
        self.hasher = hasher or ContentHasher()
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._pending: set[asyncio.Future] = set()
        self._hashes: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if self.store is None:
            return {}
        try:
            hashes = dict(self.store.load())
        except Exception as e:
            logger.debug("Failed to load hash snapshot", error=str(e))
            return {}
        logger.info("Loaded hash snapshot", entries=len(hashes))
        return hashes

    def compute_hash(self, status: Any, price: Optional[Decimal], details: Any) -> str:
        return self.hasher.hash_observation(status, price, details)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._hashes.get(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._hashes)

    def is_changed_and_update(self, key: str, digest: str) -> bool:
        """Store ``digest`` for ``key`` and return True unless it is already stored."""
        with self._lock:
            if self._hashes.get(key) == digest:
                return False
            self._hashes[key] = digest

        logger.debug("Hash changed", key=key)
        self._schedule_flush()
        return True

    def flush(self) -> None:
        """Write the current map to the store; failures are logged and dropped."""
        if self.store is None:
            return
        with self._flush_lock:
            with self._lock:
                snapshot = dict(self._hashes)
            try:
                self.store.save(snapshot)
            except Exception as e:
                logger.debug("Failed to persist hash snapshot", error=str(e))

    def _schedule_flush(self) -> None:
        if self.store is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            threading.Thread(target=self.flush, name="hash-flush", daemon=True).start()
            return

        future = loop.run_in_executor(None, self.flush)
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

    async def wait_for_flushes(self) -> None:
        """Await flushes scheduled from the running loop (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


_change_detector: Optional[ChangeDetector] = None


def get_change_detector(
    state_path: Union[str, Path, None] = None, hash_type: Optional[str] = None
) -> ChangeDetector:
    """Get or create the process-wide change detector."""
    global _change_detector

    if _change_detector is None:
        if state_path is None or hash_type is None:
            state = get_settings().state
            state_path = state_path or state.hash_store_path
            hash_type = hash_type or state.hash_type
        _change_detector = ChangeDetector(
            JsonFileSnapshotStore(state_path), ContentHasher(hash_type)
        )

    return _change_detector


def reset_change_detector() -> None:
    global _change_detector
    _change_detector = None
