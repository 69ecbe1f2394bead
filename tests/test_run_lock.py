"""
Tests for per-meeting run locks.
"""

import pytest
from unittest.mock import AsyncMock, patch

from meeting_intel.core.exceptions import RunInProgressError
from meeting_intel.core.run_lock import InMemoryRunLock, RedisRunLock


# ============== Fixtures ==============

@pytest.fixture
def mock_redis():
    """Create mock async Redis client."""
    client = AsyncMock()
    client.set.return_value = True
    client.eval.return_value = 1
    client.exists.return_value = 0
    return client


@pytest.fixture
def redis_lock(mock_redis):
    return RedisRunLock(mock_redis, ttl_seconds=30, prefix="test-run")


# ============== Tests ==============

class TestInMemoryRunLock:
    """Tests for InMemoryRunLock."""

    @pytest.mark.asyncio
    async def test_second_acquire_is_refused(self):
        lock = InMemoryRunLock()

        token = await lock.acquire("m1")

        assert token is not None
        assert await lock.acquire("m1") is None
        assert await lock.acquire("m2") is not None

    @pytest.mark.asyncio
    async def test_release_requires_owner_token(self):
        lock = InMemoryRunLock()
        token = await lock.acquire("m1")

        await lock.release("m1", "someone-else")
        assert await lock.is_locked("m1")

        await lock.release("m1", token)
        assert not await lock.is_locked("m1")

    @pytest.mark.asyncio
    async def test_hold_releases_on_exit(self):
        lock = InMemoryRunLock()

        async with lock.hold("m1") as token:
            assert token
            assert await lock.is_locked("m1")

        assert not await lock.is_locked("m1")

    @pytest.mark.asyncio
    async def test_hold_releases_on_error(self):
        lock = InMemoryRunLock()

        with pytest.raises(ValueError):
            async with lock.hold("m1"):
                raise ValueError("boom")

        assert not await lock.is_locked("m1")

    @pytest.mark.asyncio
    async def test_hold_on_held_meeting(self):
        lock = InMemoryRunLock()
        await lock.acquire("m1")

        with pytest.raises(RunInProgressError):
            async with lock.hold("m1"):
                pass


class TestRedisRunLock:
    """Tests for RedisRunLock."""

    @pytest.mark.asyncio
    async def test_acquire_sets_key_with_ttl(self, redis_lock, mock_redis):
        token = await redis_lock.acquire("m1")

        assert token
        mock_redis.set.assert_called_once_with("test-run:m1", token, nx=True, px=30_000)

    @pytest.mark.asyncio
    async def test_acquire_when_held(self, redis_lock, mock_redis):
        mock_redis.set.return_value = None

        assert await redis_lock.acquire("m1") is None

    @pytest.mark.asyncio
    async def test_release_checks_token(self, redis_lock, mock_redis):
        await redis_lock.release("m1", "token-1")

        args = mock_redis.eval.call_args.args
        assert args[1:] == (1, "test-run:m1", "token-1")
        assert 'redis.call("get", KEYS[1]) == ARGV[1]' in args[0]

    @pytest.mark.asyncio
    async def test_release_after_expiry_logs_warning(self, redis_lock, mock_redis, caplog):
        mock_redis.eval.return_value = 0

        with caplog.at_level("WARNING"):
            await redis_lock.release("m1", "token-1")

        assert "expired before release" in caplog.text

    @pytest.mark.asyncio
    async def test_is_locked(self, redis_lock, mock_redis):
        mock_redis.exists.return_value = 1

        assert await redis_lock.is_locked("m1")
        mock_redis.exists.assert_called_once_with("test-run:m1")

    @pytest.mark.asyncio
    async def test_hold_rejects_second_run(self, redis_lock, mock_redis):
        mock_redis.set.return_value = None

        with pytest.raises(RunInProgressError):
            async with redis_lock.hold("m1"):
                pass
        mock_redis.eval.assert_not_called()

    @pytest.mark.asyncio
    async def test_release_failure_does_not_mask_the_block(self, redis_lock, mock_redis):
        mock_redis.eval.side_effect = ConnectionError("redis gone")
        finished = []

        async with redis_lock.hold("m1"):
            finished.append(True)

        assert finished == [True]
        mock_redis.eval.assert_awaited_once()

    def test_from_url(self):
        with patch("meeting_intel.core.run_lock.redis.Redis.from_url") as mock_from_url:
            lock = RedisRunLock.from_url("redis://cache:6379/1", ttl_seconds=120)

        mock_from_url.assert_called_once_with("redis://cache:6379/1", decode_responses=True)
        assert lock.ttl_ms == 120_000

    @pytest.mark.asyncio
    async def test_close(self, redis_lock, mock_redis):
        await redis_lock.close()

        mock_redis.aclose.assert_awaited_once()
