"""
Per-meeting run locks.

A run (process_new / reprocess) holds its meeting's lock from start to
terminal status. A second run on the same meeting is rejected instead of
interleaving its deletes and inserts with the first.

- InMemoryRunLock: one process, one event loop.
- RedisRunLock: lease shared by every worker; the TTL frees the lease if
  its holder dies mid-run.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import redis.asyncio as redis

from meeting_intel.core.exceptions import RunInProgressError

logger = logging.getLogger(__name__)


class RunLock(ABC):
    """Mutual exclusion for processing runs, keyed by meeting id."""

    @abstractmethod
    async def acquire(self, meeting_id: str) -> Optional[str]:
        """Return an ownership token, or None if the meeting is held."""

    @abstractmethod
    async def release(self, meeting_id: str, token: str) -> None:
        """Release the lock if `token` still owns it."""

    @abstractmethod
    async def is_locked(self, meeting_id: str) -> bool:
        ...

    @asynccontextmanager
    async def hold(self, meeting_id: str) -> AsyncIterator[str]:
        """
        Hold the meeting for the duration of the block.

        Raises:
            RunInProgressError: another run already holds the meeting
        """
        token = await self.acquire(meeting_id)
        if token is None:
            raise RunInProgressError(meeting_id)
        try:
            yield token
        finally:
            try:
                await self.release(meeting_id, token)
            except Exception as e:
                # The lease TTL frees the meeting if release never lands
                logger.error(f"Failed to release run lock for meeting {meeting_id}: {e}")


class InMemoryRunLock(RunLock):
    """Run lock for a single process."""

    def __init__(self) -> None:
        self._holders: Dict[str, str] = {}

    async def acquire(self, meeting_id: str) -> Optional[str]:
        # No await between the check and the set, so this is atomic on one loop
        if meeting_id in self._holders:
            return None
        token = uuid.uuid4().hex
        self._holders[meeting_id] = token
        return token

    async def release(self, meeting_id: str, token: str) -> None:
        if self._holders.get(meeting_id) == token:
            del self._holders[meeting_id]

    async def is_locked(self, meeting_id: str) -> bool:
        return meeting_id in self._holders


# Delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class RedisRunLock(RunLock):
    """Run lease stored in Redis with SET NX PX."""

    def __init__(
        self,
        client: redis.Redis,
        ttl_seconds: int = 1800,
        prefix: str = "meeting-run",
    ) -> None:
        self.client = client
        self.ttl_ms = int(ttl_seconds * 1000)
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int = 1800) -> "RedisRunLock":
        client = redis.Redis.from_url(url, decode_responses=True)
        return cls(client, ttl_seconds=ttl_seconds)

    def _key(self, meeting_id: str) -> str:
        return f"{self.prefix}:{meeting_id}"

    async def acquire(self, meeting_id: str) -> Optional[str]:
        token = uuid.uuid4().hex
        acquired = await self.client.set(self._key(meeting_id), token, nx=True, px=self.ttl_ms)
        if not acquired:
            logger.debug(f"Run lease for meeting {meeting_id} is held elsewhere")
            return None
        return token

    async def release(self, meeting_id: str, token: str) -> None:
        released = await self.client.eval(_RELEASE_SCRIPT, 1, self._key(meeting_id), token)
        if not released:
            logger.warning(
                f"Run lease for meeting {meeting_id} expired before release "
                f"(run exceeded {self.ttl_ms / 1000:.0f}s)"
            )

    async def is_locked(self, meeting_id: str) -> bool:
        return bool(await self.client.exists(self._key(meeting_id)))

    async def close(self) -> None:
        await self.client.aclose()
