"""Poll scheduler — one recurring status poller per tracked task.

Each tick:
1. GET record-info from upstream
2. Normalize → (status, assets)
3. Upsert the task registry
4. On terminal success: stop polling, materialize assets once, mark downloaded
   On terminal error / exhausted attempt budget: stop polling, nothing else

Starting a poller for a task that already has one is a no-op. Transient
fetch errors keep the poller alive but count against the attempt budget.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from tracksync.models.task import ERROR_STATUSES, SUCCESS_STATUSES
from tracksync.services.materializer import AssetMaterializer
from tracksync.services.normalizer import normalize
from tracksync.services.providers.kie_music import KieMusicClient, UpstreamError
from tracksync.services.scheduled_task import ScheduledTask
from tracksync.services.task_registry import TaskRegistry

logger = logging.getLogger(__name__)


@dataclass
class PollerHandle:
    """Active poller for one task id."""
    task_id: str
    attempts: int = 0
    schedule: ScheduledTask | None = None


class PollScheduler:
    """Owns the active pollers and drives registry + materializer from them."""

    def __init__(
        self,
        registry: TaskRegistry,
        upstream: KieMusicClient,
        materializer: AssetMaterializer,
        *,
        interval: float = 5.0,
        max_attempts: int = 120,
        success_statuses: Iterable[str] = SUCCESS_STATUSES,
        error_statuses: Iterable[str] = ERROR_STATUSES,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.registry = registry
        self.upstream = upstream
        self.materializer = materializer
        self.interval = interval
        self.max_attempts = max_attempts
        self.success_statuses = frozenset(success_statuses)
        self.error_statuses = frozenset(error_statuses)
        self._pollers: dict[str, PollerHandle] = {}
        self._stats = {
            "started": 0,
            "succeeded": 0,
            "failed": 0,
            "exhausted": 0,
            "fetch_errors": 0,
            "materialized": 0,
            "files_saved": 0,
        }

    # ──────── Lifecycle ────────

    def start(self, task_id: str | None) -> bool:
        """Begin polling `task_id`. Returns False when nothing was started."""
        if not task_id:
            return False
        if task_id in self._pollers:
            logger.debug("[poll] %s already polling", task_id)
            return False
        record = self.registry.get(task_id)
        if record is not None and (record.downloaded or record.materializing):
            logger.debug("[poll] %s already materialized, not polling", task_id)
            return False

        self.registry.ensure(task_id)
        handle = PollerHandle(task_id=task_id)
        handle.schedule = ScheduledTask(
            f"poll:{task_id}", lambda: self._tick(handle), self.interval
        )
        self._pollers[task_id] = handle
        handle.schedule.start()
        self._stats["started"] += 1
        logger.info("[poll] start polling %s (every %.1fs, max %d)", task_id, self.interval, self.max_attempts)
        return True

    def stop(self, task_id: str) -> bool:
        handle = self._pollers.pop(task_id, None)
        if handle is None:
            return False
        handle.schedule.cancel()
        logger.info("[poll] %s stopped by request after %d attempt(s)", task_id, handle.attempts)
        return True

    def is_polling(self, task_id: str) -> bool:
        return task_id in self._pollers

    @property
    def active_count(self) -> int:
        return len(self._pollers)

    def attempts(self, task_id: str) -> int | None:
        handle = self._pollers.get(task_id)
        return handle.attempts if handle else None

    async def shutdown(self) -> None:
        """Cancel every poller and wait for their loops to exit."""
        handles = list(self._pollers.values())
        self._pollers.clear()
        for handle in handles:
            handle.schedule.cancel()
        if handles:
            await asyncio.gather(*(h.schedule.wait() for h in handles))
            logger.info("[poll] shut down %d poller(s)", len(handles))

    # ──────── Tick ────────

    async def _tick(self, handle: PollerHandle) -> bool:
        """One poll cycle. Returns True to keep polling."""
        task_id = handle.task_id
        if handle.attempts >= self.max_attempts:
            # Previous tick raised before reaching its own budget check
            record = self.registry.get(task_id)
            self._exhausted(handle, record.status if record else "UNKNOWN")
            return False
        handle.attempts += 1

        try:
            raw = await self.upstream.query_status(task_id)
        except UpstreamError as e:
            self._stats["fetch_errors"] += 1
            logger.warning("[poll] %s fetch failed (attempt %d/%d): %s", task_id, handle.attempts, self.max_attempts, e)
            if handle.attempts >= self.max_attempts:
                record = self.registry.get(task_id)
                self._exhausted(handle, record.status if record else "UNKNOWN")
                return False
            return True

        result = normalize(raw)
        self.registry.upsert(task_id, status=result.status, assets=result.assets, raw=raw)
        logger.info("[poll] %s status=%s attempts=%d", task_id, result.status, handle.attempts)

        if result.status in self.success_statuses:
            self._release(handle)
            self._stats["succeeded"] += 1
            logger.info("[poll] %s reached terminal status=%s -> materializing", task_id, result.status)
            await self._materialize(task_id, result.assets)
            return False

        if result.status in self.error_statuses:
            self._release(handle)
            self._stats["failed"] += 1
            logger.info("[poll] %s reached terminal error status=%s, stopped", task_id, result.status)
            return False

        if handle.attempts >= self.max_attempts:
            self._exhausted(handle, result.status)
            return False

        return True

    def _release(self, handle: PollerHandle) -> None:
        # Only drop the entry if it still belongs to this poller
        if self._pollers.get(handle.task_id) is handle:
            del self._pollers[handle.task_id]

    def _exhausted(self, handle: PollerHandle, status: str) -> None:
        self._release(handle)
        self._stats["exhausted"] += 1
        logger.warning(
            "[poll] %s attempt budget exhausted (%d attempts), last status=%s, stopped",
            handle.task_id, handle.attempts, status,
        )

    async def _materialize(self, task_id: str, assets: list[Any]) -> None:
        if not self.registry.claim_materialization(task_id):
            logger.info("[poll] %s already materialized or in progress, skipping", task_id)
            return
        try:
            saved = await self.materializer.materialize(task_id, assets)
        except asyncio.CancelledError:
            self.registry.release_materialization(task_id)
            raise
        except Exception:
            self.registry.release_materialization(task_id)
            logger.exception("[poll] %s materialization failed", task_id)
            return
        self.registry.mark_downloaded(task_id, saved)
        self._stats["materialized"] += 1
        self._stats["files_saved"] += len(saved)
        logger.info("[poll] %s assets saved: %d", task_id, len(saved))

    def get_metrics(self) -> dict[str, Any]:
        """Return polling statistics."""
        return {
            "service": "poll_scheduler",
            "active_pollers": self.active_count,
            "tracked_tasks": len(self.registry),
            **self._stats,
        }
