"""Tests for the in-memory task registry."""

import threading

from tracksync.models.task import LocalFile
from tracksync.services.task_registry import TaskRegistry


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        self.now += 1.0
        return self.now


def test_get_unknown_returns_none():
    assert TaskRegistry().get("nope") is None


def test_ensure_creates_pending_record_once():
    registry = TaskRegistry()
    first = registry.ensure("t1")
    registry.upsert("t1", status="TEXT_SUCCESS", assets=[])
    second = registry.ensure("t1")

    assert first.status == "PENDING"
    assert second.status == "TEXT_SUCCESS"
    assert len(registry) == 1


def test_upsert_replaces_assets_and_stamps_time():
    clock = _Clock()
    registry = TaskRegistry(clock=clock)
    registry.upsert("t1", status="PENDING", assets=[{"id": "a"}, {"id": "b"}])
    record = registry.upsert("t1", status="SUCCESS", assets=[{"id": "c"}], raw={"x": 1})

    assert record.status == "SUCCESS"
    assert record.assets == [{"id": "c"}]
    assert record.last_raw_response == {"x": 1}
    assert record.updated_at == clock.now


def test_reads_are_detached_copies():
    registry = TaskRegistry()
    registry.upsert("t1", status="PENDING", assets=[{"id": "a"}])
    snapshot = registry.get("t1")
    snapshot.assets.append({"id": "mutated"})
    snapshot.status = "SUCCESS"

    fresh = registry.get("t1")
    assert fresh.status == "PENDING"
    assert fresh.assets == [{"id": "a"}]


def test_mark_downloaded_sets_files_and_clears_claim():
    registry = TaskRegistry()
    assert registry.claim_materialization("t1")
    files = [LocalFile(kind="audio", path="/tmp/t1/1_a.mp3", name="1_a.mp3")]
    record = registry.mark_downloaded("t1", files)

    assert record.downloaded is True
    assert record.materializing is False
    assert record.local_files == files


def test_claim_is_granted_once():
    registry = TaskRegistry()
    assert registry.claim_materialization("t1") is True
    assert registry.claim_materialization("t1") is False

    registry.release_materialization("t1")
    assert registry.claim_materialization("t1") is True

    registry.mark_downloaded("t1", [])
    assert registry.claim_materialization("t1") is False


def test_concurrent_claims_have_single_winner():
    registry = TaskRegistry()
    barrier = threading.Barrier(8)
    results = []

    def worker():
        barrier.wait()
        results.append(registry.claim_materialization("t1"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
