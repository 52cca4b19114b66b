"""Pydantic v2 schemas package."""

from tracksync.schemas.task import LocalFileRead, TaskStateEnvelope, TaskStateRead

__all__ = [
    "LocalFileRead",
    "TaskStateEnvelope",
    "TaskStateRead",
]
