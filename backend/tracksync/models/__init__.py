"""Task tracking model package."""

from tracksync.models.task import (
    ERROR_STATUSES,
    SUCCESS_STATUSES,
    AssetDescriptor,
    AssetKind,
    LocalFile,
    TaskRecord,
    TaskStatus,
    success_statuses,
)

__all__ = [
    "ERROR_STATUSES",
    "SUCCESS_STATUSES",
    "AssetDescriptor",
    "AssetKind",
    "LocalFile",
    "TaskRecord",
    "TaskStatus",
    "success_statuses",
]
