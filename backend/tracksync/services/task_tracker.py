"""Task tracker — client-facing operations over the polling engine.

- submit: forward a generation request and start polling the returned task
- get_task_state: registry first, else one upstream fetch + poller start
- resolve_local_file / open_remote: back the /download endpoint
"""

from __future__ import annotations

import logging
import os
from typing import Any
from urllib.parse import urlparse

import httpx

from tracksync.models.task import AssetKind, LocalFile, TaskRecord
from tracksync.services.normalizer import normalize
from tracksync.services.poll_scheduler import PollScheduler
from tracksync.services.providers.kie_music import KieMusicClient, extract_task_id
from tracksync.services.task_registry import TaskRegistry

logger = logging.getLogger(__name__)


def attachment_filename(url: str, default: str = "file.bin") -> str:
    """Basename of the URL path, used as Content-Disposition filename."""
    try:
        name = os.path.basename(urlparse(url).path)
    except ValueError:
        return default
    return name or default


class TaskTracker:
    """Facade wiring registry, scheduler and upstream together for the API layer."""

    def __init__(
        self,
        registry: TaskRegistry,
        scheduler: PollScheduler,
        upstream: KieMusicClient,
        http_client: httpx.AsyncClient,
        *,
        download_timeout: float = 60.0,
    ) -> None:
        self.registry = registry
        self.scheduler = scheduler
        self.upstream = upstream
        self._http_client = http_client
        self._download_timeout = download_timeout

    async def submit(self, route: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Forward a submission; the response body is returned untouched."""
        response = await self.upstream.submit(route, payload)
        task_id = extract_task_id(response)
        if task_id:
            self.registry.ensure(task_id)
            self.scheduler.start(task_id)
        else:
            logger.warning("Kie %s response carried no taskId", route)
        return response

    async def get_task_state(self, task_id: str) -> TaskRecord:
        """Cached state, or a one-shot upstream fetch that also starts polling.

        Raises UpstreamError when the task is unknown locally and upstream
        cannot be reached.
        """
        cached = self.registry.get(task_id)
        if cached is not None:
            return cached

        raw = await self.upstream.query_status(task_id)
        result = normalize(raw)
        record = self.registry.upsert(task_id, status=result.status, assets=result.assets, raw=raw)
        self.scheduler.start(task_id)
        logger.info("Task %s first seen via status query: status=%s", task_id, result.status)
        return record

    def resolve_local_file(self, task_id: str, url: str | None = None) -> LocalFile | None:
        """Pick the local file for a download request.

        Preference: the file whose name contains the URL's basename, then the
        first audio file, then the first file. Files missing on disk are ignored.
        """
        record = self.registry.get(task_id)
        if record is None or not record.local_files:
            return None
        files = [f for f in record.local_files if os.path.isfile(f.path)]
        if not files:
            return None

        if url:
            basename = attachment_filename(url, default="")
            if basename:
                for f in files:
                    if f.name == basename or basename in f.name:
                        return f

        for f in files:
            if f.kind == AssetKind.AUDIO.value:
                return f
        return files[0]

    async def open_remote(self, url: str) -> httpx.Response:
        """Open a streaming GET; caller must close the returned response."""
        request = self._http_client.build_request("GET", url, timeout=self._download_timeout)
        response = await self._http_client.send(request, stream=True)
        if response.is_error:
            await response.aclose()
            response.raise_for_status()
        return response
