"""Task tracking models — status taxonomy, task records and asset descriptors."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any


class TaskStatus(str, enum.Enum):
    """Statuses reported by the Kie.ai record-info endpoint.

    Upstream may report values outside this list; those are stored verbatim
    and treated as intermediate.
    """

    PENDING = "PENDING"
    TEXT_SUCCESS = "TEXT_SUCCESS"
    FIRST_SUCCESS = "FIRST_SUCCESS"
    SUCCESS = "SUCCESS"
    CREATE_TASK_FAILED = "CREATE_TASK_FAILED"
    GENERATE_AUDIO_FAILED = "GENERATE_AUDIO_FAILED"
    CALLBACK_EXCEPTION = "CALLBACK_EXCEPTION"
    SENSITIVE_WORD_ERROR = "SENSITIVE_WORD_ERROR"
    UNKNOWN = "UNKNOWN"


SUCCESS_STATUSES: frozenset[str] = frozenset({
    TaskStatus.SUCCESS.value,
    TaskStatus.FIRST_SUCCESS.value,
})

ERROR_STATUSES: frozenset[str] = frozenset({
    TaskStatus.CREATE_TASK_FAILED.value,
    TaskStatus.GENERATE_AUDIO_FAILED.value,
    TaskStatus.SENSITIVE_WORD_ERROR.value,
    TaskStatus.CALLBACK_EXCEPTION.value,
})


def success_statuses(first_success_is_final: bool = True) -> frozenset[str]:
    """Terminal-success set, optionally waiting for the full SUCCESS."""
    if first_success_is_final:
        return SUCCESS_STATUSES
    return frozenset({TaskStatus.SUCCESS.value})


class AssetKind(str, enum.Enum):
    """Kinds of files materialized per track."""

    AUDIO = "audio"
    AUDIO_SOURCE = "audio_source"
    COVER = "cover"
    COVER_SOURCE = "cover_source"

    @property
    def is_image(self) -> bool:
        return self in (AssetKind.COVER, AssetKind.COVER_SOURCE)


@dataclass(frozen=True)
class AssetDescriptor:
    """One downloadable file derived from an upstream track record."""
    kind: AssetKind
    source_url: str
    ordinal: int  # 1-based position of the track
    title: str


@dataclass(frozen=True)
class LocalFile:
    """A materialized file on local disk."""
    kind: str
    path: str  # absolute
    name: str


@dataclass
class TaskRecord:
    """Last-known state of a tracked generation task."""

    task_id: str
    status: str = TaskStatus.PENDING.value
    updated_at: float = 0.0
    last_raw_response: Any = None
    assets: list[Any] = field(default_factory=list)
    downloaded: bool = False
    local_files: list[LocalFile] = field(default_factory=list)
    materializing: bool = False

    def copy(self) -> TaskRecord:
        """Detached copy safe to hand out of the registry."""
        return replace(
            self,
            assets=list(self.assets),
            local_files=list(self.local_files),
        )
