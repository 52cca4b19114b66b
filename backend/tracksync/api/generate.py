"""Generation proxy endpoints — forward to Kie.ai and start server-side polling.

Each route returns the upstream response body as-is. When the upstream
answers with an error, its status code and body are relayed to the client.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from tracksync.api.deps import get_tracker
from tracksync.services.providers.kie_music import SUBMIT_ROUTES, UpstreamError
from tracksync.services.task_tracker import TaskTracker

router = APIRouter()
logger = logging.getLogger(__name__)


async def _forward(route: str, payload: dict[str, Any], tracker: TaskTracker):
    try:
        return await tracker.submit(route, payload)
    except UpstreamError as e:
        logger.error("/api/%s error: %s", route, e.payload or e)
        body = e.payload if isinstance(e.payload, dict) else {"error": str(e)}
        return JSONResponse(status_code=e.status_code or 502, content=body)


def _make_endpoint(route: str):
    async def endpoint(
        payload: dict[str, Any] = Body(...),
        tracker: TaskTracker = Depends(get_tracker),
    ):
        return await _forward(route, payload, tracker)

    endpoint.__name__ = f"submit_{route.replace('-', '_')}"
    endpoint.__doc__ = f"Forward a `{route}` request to Kie.ai and poll the returned task."
    return endpoint


for _route in SUBMIT_ROUTES:
    router.add_api_route(f"/{_route}", _make_endpoint(_route), methods=["POST"])
