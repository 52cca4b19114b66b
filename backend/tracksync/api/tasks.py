"""Task status API — served from the registry, falling back to one upstream fetch."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from tracksync.api.deps import get_tracker
from tracksync.schemas.task import TaskStateEnvelope, TaskStateRead
from tracksync.services.providers.kie_music import UpstreamError
from tracksync.services.task_tracker import TaskTracker

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/task/{task_id}", response_model=TaskStateEnvelope)
async def get_task(task_id: str, tracker: TaskTracker = Depends(get_tracker)):
    """Return cached task state; unknown tasks are fetched once and then polled."""
    try:
        record = await tracker.get_task_state(task_id)
    except UpstreamError as e:
        logger.error("/api/task/%s error: %s", task_id, e)
        raise HTTPException(status_code=502, detail=str(e)) from e
    return TaskStateEnvelope(data=TaskStateRead.from_record(record))
