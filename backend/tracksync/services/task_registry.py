"""In-memory task registry — last-known state of every observed task.

Records live for the lifetime of the process; there is no eviction and no
persistence. Every public method takes the registry lock, and reads return
detached copies, so callers never see a record half-way through an update.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from typing import Any

from tracksync.models.task import LocalFile, TaskRecord, TaskStatus

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Thread-safe map of task id -> TaskRecord."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._records: dict[str, TaskRecord] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def task_ids(self) -> list[str]:
        with self._lock:
            return list(self._records)

    def get(self, task_id: str) -> TaskRecord | None:
        with self._lock:
            record = self._records.get(task_id)
            return record.copy() if record else None

    def ensure(self, task_id: str) -> TaskRecord:
        """Return the record for `task_id`, creating a PENDING one if missing."""
        with self._lock:
            return self._get_or_create(task_id).copy()

    def upsert(
        self,
        task_id: str,
        *,
        status: str,
        assets: Sequence[Any],
        raw: Any = None,
    ) -> TaskRecord:
        """Overwrite status, assets and raw payload; assets are replaced, never merged."""
        with self._lock:
            record = self._get_or_create(task_id)
            record.status = status
            record.assets = list(assets)
            record.last_raw_response = raw
            record.updated_at = self._clock()
            return record.copy()

    def mark_downloaded(self, task_id: str, files: Sequence[LocalFile]) -> TaskRecord:
        with self._lock:
            record = self._get_or_create(task_id)
            record.downloaded = True
            record.materializing = False
            record.local_files = list(files)
            record.updated_at = self._clock()
            return record.copy()

    def claim_materialization(self, task_id: str) -> bool:
        """Test-and-set: True for exactly one caller until released or downloaded."""
        with self._lock:
            record = self._get_or_create(task_id)
            if record.downloaded or record.materializing:
                return False
            record.materializing = True
            return True

    def release_materialization(self, task_id: str) -> None:
        with self._lock:
            record = self._records.get(task_id)
            if record is not None:
                record.materializing = False

    def _get_or_create(self, task_id: str) -> TaskRecord:
        # Caller holds self._lock
        record = self._records.get(task_id)
        if record is None:
            record = TaskRecord(
                task_id=task_id,
                status=TaskStatus.PENDING.value,
                updated_at=self._clock(),
            )
            self._records[task_id] = record
            logger.debug("Task %s registered", task_id)
        return record
