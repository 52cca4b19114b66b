"""FastAPI dependencies for the tracking engine."""

from __future__ import annotations

from fastapi import Request

from tracksync.services.task_tracker import TaskTracker


def get_tracker(request: Request) -> TaskTracker:
    """Return the TaskTracker built by the application lifespan."""
    return request.app.state.tracker
