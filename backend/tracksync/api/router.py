"""Master API router — mounts all sub-routers."""

from __future__ import annotations

from fastapi import APIRouter

from tracksync.api.callback import router as callback_router
from tracksync.api.download import router as download_router
from tracksync.api.generate import router as generate_router
from tracksync.api.metrics import router as metrics_router
from tracksync.api.tasks import router as tasks_router

api_router = APIRouter(prefix="/api", redirect_slashes=False)

api_router.include_router(generate_router, tags=["Generation"])
api_router.include_router(tasks_router, tags=["Tasks"])
api_router.include_router(metrics_router, prefix="/metrics", tags=["Metrics"])

# Served at the root, matching the paths the web UI already uses
root_router = APIRouter()
root_router.include_router(download_router, tags=["Download"])
root_router.include_router(callback_router, tags=["Callback"])
