"""TrackSync — FastAPI application entry point.

Wires the tracking engine (registry, poll scheduler, materializer, upstream
client) into the app state, mounts the API routes, configures CORS and
serves the static web UI.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from tracksync import __version__
from tracksync.api.router import api_router, root_router
from tracksync.config import Settings, get_settings
from tracksync.models.task import success_statuses
from tracksync.services.materializer import AssetMaterializer
from tracksync.services.poll_scheduler import PollScheduler
from tracksync.services.providers.kie_music import KieMusicClient
from tracksync.services.task_registry import TaskRegistry
from tracksync.services.task_tracker import TaskTracker

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    upstream: KieMusicClient | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the application. `upstream` and `http_client` are injectable for tests."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the tracking engine on startup, stop pollers on shutdown."""
        logger.info("%s starting up...", settings.APP_NAME)
        os.makedirs(settings.DOWNLOAD_DIR, exist_ok=True)
        if not settings.KIE_KEY and upstream is None:
            logger.error("KIE_KEY missing; upstream calls will be rejected")

        client = http_client or httpx.AsyncClient(
            timeout=settings.DOWNLOAD_TIMEOUT, follow_redirects=True,
        )
        kie = upstream or KieMusicClient(
            settings.KIE_KEY, settings.KIE_BASE, timeout=settings.UPSTREAM_TIMEOUT,
        )
        registry = TaskRegistry()
        materializer = AssetMaterializer(
            settings.DOWNLOAD_DIR, http_client=client, timeout=settings.DOWNLOAD_TIMEOUT,
        )
        scheduler = PollScheduler(
            registry,
            kie,
            materializer,
            interval=settings.POLL_INTERVAL_SECONDS,
            max_attempts=settings.POLL_MAX_ATTEMPTS,
            success_statuses=success_statuses(settings.FIRST_SUCCESS_IS_FINAL),
        )
        app.state.tracker = TaskTracker(
            registry, scheduler, kie, client, download_timeout=settings.DOWNLOAD_TIMEOUT,
        )
        logger.info(
            "Polling every %.1fs, max %d attempts, downloads -> %s",
            settings.POLL_INTERVAL_SECONDS, settings.POLL_MAX_ATTEMPTS,
            os.path.abspath(settings.DOWNLOAD_DIR),
        )

        yield

        await scheduler.shutdown()
        if upstream is None:
            await kie.aclose()
        if http_client is None:
            await client.aclose()
        logger.info("%s shut down", settings.APP_NAME)

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Kie.ai music task tracking and asset download",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    app.include_router(root_router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        tracker: TaskTracker | None = getattr(app.state, "tracker", None)
        return {
            "service": settings.APP_NAME,
            "status": "healthy",
            "upstream_configured": bool(settings.KIE_KEY),
            "active_pollers": tracker.scheduler.active_count if tracker else 0,
        }

    # Static UI last so it never shadows API routes
    if os.path.isdir(settings.PUBLIC_DIR):
        app.mount("/", StaticFiles(directory=settings.PUBLIC_DIR, html=True), name="public")

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "tracksync.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
