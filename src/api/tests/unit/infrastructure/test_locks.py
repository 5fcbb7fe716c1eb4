"""Unit tests for the Redis job lock."""

from unittest.mock import AsyncMock, Mock

import pytest
from redis.exceptions import LockNotOwnedError

from infrastructure.locks import JobAlreadyRunningError, JobLock
from infrastructure.observability import JobLockProbe


@pytest.fixture
def mock_lock():
    lock = Mock()
    lock.acquire = AsyncMock(return_value=True)
    lock.release = AsyncMock()
    return lock


@pytest.fixture
def mock_client(mock_lock):
    client = Mock()
    client.lock = Mock(return_value=mock_lock)
    return client


@pytest.fixture
def mock_probe():
    return Mock(spec=JobLockProbe)


@pytest.fixture
def job_lock(mock_client, mock_probe):
    return JobLock(mock_client, key_prefix="tessera", timeout=60, probe=mock_probe)


class TestJobLock:
    """Tests for JobLock.hold()."""

    @pytest.mark.asyncio
    async def test_acquires_non_blocking_lock(self, job_lock, mock_client, mock_lock):
        async with job_lock.hold("migrate"):
            pass

        mock_client.lock.assert_called_once_with(
            "tessera:job-lock:migrate", timeout=60, blocking=False
        )
        mock_lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_busy_lock_raises(self, job_lock, mock_lock, mock_probe):
        mock_lock.acquire.return_value = False

        with pytest.raises(JobAlreadyRunningError) as exc_info:
            async with job_lock.hold("migrate"):
                pytest.fail("body must not run")

        assert exc_info.value.name == "migrate"
        mock_probe.lock_busy.assert_called_once_with("migrate")
        mock_lock.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_releases_when_body_raises(self, job_lock, mock_lock):
        with pytest.raises(RuntimeError):
            async with job_lock.hold("migrate"):
                raise RuntimeError("boom")

        mock_lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_expired_lock_release_is_reported(
        self, job_lock, mock_lock, mock_probe
    ):
        mock_lock.release.side_effect = LockNotOwnedError("expired")

        async with job_lock.hold("migrate"):
            pass

        mock_probe.lock_release_failed.assert_called_once()
