"""Durable idempotency cache for batch runs.

Maps item identity to a :class:`CacheRecord`. The JSON file format is::

    {"<identity>": {"to": "<destination>", "txid": "<id>", "date": "<ISO-8601>"}}

Writes go through a temp file + ``os.replace`` so a reader never observes a
partially written cache. A record that already carries a transaction id is
final and is never replaced.
"""

from __future__ import annotations

import json
import os
import stat
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from platyplex.config.constants import DEFAULT_CACHE_SUFFIX
from platyplex.core.errors import PersistenceError
from platyplex.core.models import CacheRecord
from platyplex.infra.logger import setup_logger

try:  # pragma: no cover - windows fallback
    import fcntl
except ImportError:  # pragma: no cover
    fcntl = None  # type: ignore[assignment]

logger = setup_logger(__name__)

_RECORDS = TypeAdapter(Dict[str, CacheRecord])


def default_cache_path(input_path: Path, suffix: str = DEFAULT_CACHE_SUFFIX) -> Path:
    """Derive the cache path from a batch input file (``drops.json`` -> ``drops-cache.json``)."""
    input_path = Path(input_path)
    return input_path.with_name(f"{input_path.stem}{suffix}")


def load_cache(path: Path) -> Dict[str, CacheRecord]:
    """Load and validate a cache file.

    A missing file is an empty cache. Unreadable JSON or any record that does
    not match the schema raises :class:`PersistenceError`.
    """
    path = Path(path)
    if not path.exists():
        return {}
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"Could not read cache {path}: {e}") from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"Cache {path} is not valid JSON: {e}") from e
    try:
        return _RECORDS.validate_python(data)
    except SchemaError as e:
        raise PersistenceError(f"Cache {path} does not match the record schema: {e}") from e


def _existing_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return 0o644


def persist_cache(path: Path, records: Dict[str, CacheRecord]) -> None:
    """Atomically write *records* to *path*."""
    path = Path(path)
    payload = {identity: rec.to_json_dict() for identity, rec in records.items()}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
    except OSError as e:
        raise PersistenceError(f"Could not write cache {path}: {e}") from e
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
            handle.flush()
            os.fsync(handle.fileno())
        # mkstemp creates 0600; keep the mode the cache file already had
        os.chmod(tmp_path, _existing_mode(path))
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise PersistenceError(f"Could not write cache {path}: {e}") from e


class CacheStore:
    """In-memory view of the idempotency cache with write-through persistence.

    ``path=None`` gives a memory-only cache (used by one-off transfers that
    were not asked to keep a retry cache); ``persist`` is then a no-op.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path else None
        self._records: Dict[str, CacheRecord] = {}

    @property
    def durable(self) -> bool:
        return self.path is not None

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, identity: object) -> bool:
        return identity in self._records

    @property
    def records(self) -> Dict[str, CacheRecord]:
        return dict(self._records)

    def load(self) -> "CacheStore":
        """Merge the persisted state into memory.

        Completed records already in memory are kept; anything on disk fills
        the gaps or replaces a pending in-memory record.
        """
        if self.path is None:
            return self
        on_disk = load_cache(self.path)
        for identity, record in on_disk.items():
            current = self._records.get(identity)
            if current is None or not current.is_complete:
                self._records[identity] = record
        completed = sum(1 for r in self._records.values() if r.is_complete)
        logger.info("Loaded cache %s: %d record(s), %d completed", self.path, len(self._records), completed)
        return self

    def get(self, identity: str) -> Optional[CacheRecord]:
        return self._records.get(identity)

    def completed(self, identity: str) -> Optional[CacheRecord]:
        """Return the record for *identity* only if it carries a transaction id."""
        record = self._records.get(identity)
        return record if record is not None and record.is_complete else None

    def ensure_pending(self, identity: str, destination: Optional[str]) -> CacheRecord:
        """Create the in-memory record on first encounter of *identity*."""
        record = self._records.get(identity)
        if record is None:
            record = CacheRecord(destination=destination or "")
            self._records[identity] = record
        return record

    def record_success(
        self,
        identity: str,
        destination: Optional[str],
        transaction_id: str,
        timestamp: Optional[datetime] = None,
    ) -> CacheRecord:
        existing = self._records.get(identity)
        if existing is not None and existing.is_complete:
            raise PersistenceError(
                f"Refusing to overwrite completed record for {identity} (txid {existing.transaction_id})"
            )
        record = CacheRecord(
            destination=destination or "",
            transaction_id=transaction_id,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        self._records[identity] = record
        return record

    def persist(self) -> None:
        """Flush the complete map to disk (no-op for memory-only caches)."""
        if self.path is None:
            return
        persist_cache(self.path, self._records)
        logger.debug("Persisted %d cache record(s) to %s", len(self._records), self.path)

    @contextmanager
    def lock(self) -> Iterator["CacheStore"]:
        """Hold an exclusive, non-blocking lock guarding this cache for one run."""
        if self.path is None or fcntl is None:
            yield self
            return
        lock_path = self.path.with_name(f"{self.path.name}.lock")
        try:
            lock_path.parent.mkdir(parents=True, exist_ok=True)
            handle = lock_path.open("a+b")
        except OSError as e:
            raise PersistenceError(f"Could not open cache lock {lock_path}: {e}") from e
        try:
            try:
                fcntl.flock(handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError as e:
                raise PersistenceError(
                    f"Cache {self.path} is in use by another run"
                ) from e
            try:
                yield self
            finally:
                fcntl.flock(handle, fcntl.LOCK_UN)
        finally:
            handle.close()
