"""Download endpoint — serve a materialized file, else stream the remote URL."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse, StreamingResponse
from starlette.background import BackgroundTask

from tracksync.api.deps import get_tracker
from tracksync.services.task_tracker import TaskTracker, attachment_filename

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/download")
async def download(
    url: str | None = None,
    taskId: str | None = None,  # noqa: N803 - query parameter name
    tracker: TaskTracker = Depends(get_tracker),
):
    """Download an asset.

    1. If the task has local files, serve the one matching `url` (or the
       first audio file).
    2. Otherwise proxy-stream `url` as an attachment.
    """
    if taskId:
        local = tracker.resolve_local_file(taskId, url)
        if local is not None:
            return FileResponse(local.path, filename=local.name)

    if not url:
        raise HTTPException(status_code=400, detail="Missing url or taskId")

    try:
        upstream = await tracker.open_remote(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error("/download proxy error for %s: %s", url, e)
        raise HTTPException(status_code=500, detail=f"Download failed: {e}") from e

    headers = {"Content-Disposition": f'attachment; filename="{attachment_filename(url)}"'}
    return StreamingResponse(
        upstream.aiter_bytes(),
        media_type=upstream.headers.get("content-type"),
        headers=headers,
        background=BackgroundTask(upstream.aclose),
    )
