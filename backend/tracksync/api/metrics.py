"""Metrics API — polling engine statistics."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from tracksync.api.deps import get_tracker
from tracksync.services.task_tracker import TaskTracker

router = APIRouter()


@router.get("/polling")
async def polling_metrics(tracker: TaskTracker = Depends(get_tracker)):
    """Return counters for active pollers, terminal stops and downloads."""
    return tracker.scheduler.get_metrics()
