"""Persist the latest insight per resource in a JSON file with file locking."""
from __future__ import annotations

import fcntl
import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from talentmatch.log import get_logger
from talentmatch.models import StoredInsight

log = get_logger(__name__)


class InsightStoreError(RuntimeError):
    pass


class InsightStore:
    """Keyed-by-resource, last-write-wins insight cache.

    ``upsert`` holds an exclusive advisory lock on a sidecar ``.lock`` file
    for the whole read-modify-write cycle, so concurrent writers on the same
    host serialize instead of clobbering each other.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    @contextmanager
    def _locked(self, exclusive: bool = True) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.lock_path, "a+") as lock:
            fcntl.flock(lock.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            try:
                yield
            finally:
                fcntl.flock(lock.fileno(), fcntl.LOCK_UN)

    def ensure(self) -> None:
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("[]", encoding="utf-8")
        log.info("Created insight store → %s", self.path.name)

    def _read(self) -> list[StoredInsight]:
        self.ensure()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError) as exc:
            raise InsightStoreError(f"Failed to read {self.path.name}: {exc}") from exc
        if not isinstance(data, list):
            raise InsightStoreError(f"{self.path.name} does not hold a JSON array")
        return [StoredInsight.from_dict(item) for item in data if isinstance(item, dict)]

    def _write(self, records: list[StoredInsight]) -> None:
        payload = json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)
        try:
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except OSError as exc:
            raise InsightStoreError(f"Failed to write {self.path.name}: {exc}") from exc

    def load(self) -> list[StoredInsight]:
        with self._locked(exclusive=False):
            return self._read()

    def upsert(self, records: list[StoredInsight]) -> None:
        if not records:
            return
        with self._locked():
            merged = {r.resource_id: r for r in self._read()}
            for record in records:
                merged[record.resource_id] = record
            self._write(list(merged.values()))
        log.debug("Upserted %d insight record(s); store holds %d", len(records), len(merged))
