"""Pydantic v2 schemas for task state responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from tracksync.models.task import LocalFile, TaskRecord


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LocalFileRead(_CamelModel):
    """A materialized file as exposed to clients."""

    kind: str
    absolute_path: str
    display_name: str

    @classmethod
    def from_local_file(cls, f: LocalFile) -> LocalFileRead:
        return cls(kind=f.kind, absolute_path=f.path, display_name=f.name)


class TaskStateRead(_CamelModel):
    """Client-facing view of a task record."""

    task_id: str
    status: str
    updated_at: int  # epoch milliseconds
    assets: list[Any] = []  # upstream track items, passed through verbatim
    downloaded: bool = False
    local_files: list[LocalFileRead] = []

    @classmethod
    def from_record(cls, record: TaskRecord) -> TaskStateRead:
        return cls(
            task_id=record.task_id,
            status=record.status,
            updated_at=int(record.updated_at * 1000),
            assets=record.assets,
            downloaded=record.downloaded,
            local_files=[LocalFileRead.from_local_file(f) for f in record.local_files],
        )


class TaskStateEnvelope(BaseModel):
    """Kie-style response envelope: {code, msg, data}."""

    code: int = 200
    msg: str = "ok"
    data: TaskStateRead
