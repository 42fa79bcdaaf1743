"""
Unit Tests for Staging Area and Cleanup Scheduler

Tests staging of generated content and removal of expired entries.
"""

import os
import time

import pytest

from app.services import CleanupScheduler, StagingArea
from proof_engine import InvalidHashError, content_hash


@pytest.fixture
def staging(tmp_path) -> StagingArea:
    return StagingArea(tmp_path / "staging")


def age_entry(staging: StagingArea, digest: str, hours: float) -> None:
    old_time = time.time() - hours * 3600
    os.utime(staging.base_path / digest, (old_time, old_time))


class TestStagingArea:
    """Tests for StagingArea."""

    def test_save_and_load(self, staging: StagingArea):
        digest = staging.save(b"generated", {"model": "demo-model"})

        assert digest == content_hash(b"generated")
        assert staging.load(digest) == b"generated"
        assert staging.load("0x" + digest) == b"generated"

        metadata = staging.get_metadata(digest)
        assert metadata["model"] == "demo-model"
        assert metadata["size"] == len(b"generated")

    def test_load_missing_returns_none(self, staging: StagingArea):
        assert staging.load(content_hash(b"never staged")) is None
        assert staging.get_metadata(content_hash(b"never staged")) is None

    def test_corrupted_content_not_returned(self, staging: StagingArea):
        digest = staging.save(b"generated")
        (staging.base_path / digest / "content.bin").write_bytes(b"tampered")
        assert staging.load(digest) is None

    def test_invalid_hash_rejected(self, staging: StagingArea):
        with pytest.raises(InvalidHashError):
            staging.load("../../etc/passwd")

    def test_discard(self, staging: StagingArea):
        digest = staging.save(b"generated")
        assert staging.discard(digest) is True
        assert staging.load(digest) is None
        assert staging.discard(digest) is False


class TestCleanupExpired:
    """Tests for expired entry removal."""

    @pytest.mark.asyncio
    async def test_cleanup_removes_old_entries(self, staging: StagingArea):
        old = staging.save(b"old content")
        new = staging.save(b"new content")
        age_entry(staging, old, 25)

        result = await CleanupScheduler(staging, ttl_hours=24).run_cleanup()

        assert staging.load(old) is None, "Old entry should be deleted"
        assert staging.load(new) == b"new content", "New entry should remain"
        assert result["entries_deleted"] == 1
        assert result["entries_scanned"] == 2

    @pytest.mark.asyncio
    async def test_cleanup_handles_missing_directory(self, tmp_path):
        result = await CleanupScheduler(StagingArea(tmp_path / "absent")).run_cleanup()
        assert result["errors"] == 0
        assert result["entries_deleted"] == 0

    @pytest.mark.asyncio
    async def test_cleanup_skips_files(self, staging: StagingArea):
        staging.base_path.mkdir(parents=True)
        stray = staging.base_path / "stray.txt"
        stray.write_text("test")
        old_time = time.time() - 48 * 3600
        os.utime(stray, (old_time, old_time))

        result = await CleanupScheduler(staging).run_cleanup()

        assert stray.exists()
        assert result["entries_deleted"] == 0

    @pytest.mark.asyncio
    async def test_cleanup_respects_ttl(self, staging: StagingArea):
        digest = staging.save(b"content")
        age_entry(staging, digest, 3)

        await CleanupScheduler(staging, ttl_hours=6).run_cleanup()
        assert staging.load(digest) == b"content"

        await CleanupScheduler(staging, ttl_hours=2).run_cleanup()
        assert staging.load(digest) is None


class TestSchedulerLifecycle:
    """Tests for scheduler start/stop/status."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, staging: StagingArea):
        scheduler = CleanupScheduler(staging, ttl_hours=24, interval_hours=1)
        try:
            scheduler.start()
            scheduler.start()

            status = scheduler.status()
            assert status["running"] is True
            assert status["job_scheduled"] is True
            assert status["next_run"] is not None
            assert status["interval_hours"] == 1
            assert status["ttl_hours"] == 24
        finally:
            scheduler.stop()

        assert scheduler.scheduler.running is False

    @pytest.mark.asyncio
    async def test_zero_interval_disables_scheduling(self, staging: StagingArea):
        scheduler = CleanupScheduler(staging, interval_hours=0)
        scheduler.start()

        status = scheduler.status()
        assert status["running"] is False
        assert status["job_scheduled"] is False
