"""
Redis-based distributed lock for periodic ledger jobs.

Row locks (``select_for_update``) already serialize writes to a single
recurrence. The distributed lock sits in front of them in the Celery
worker so overlapping beat ticks, or a manual "generate" racing the
scheduled one, give up quickly instead of queueing on the database row.

Usage:
    from finance.locks import DistributedLock, recurrence_lock

    with recurrence_lock(recurrence_id):
        scheduler.advance(recurrence_id, as_of)

    lock = DistributedLock("finance:overdue-refresh", ttl=300, blocking=False)
    if lock.acquire():
        try:
            ...
        finally:
            lock.release()
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING

from django.conf import settings
from django_redis import get_redis_connection

from finance.exceptions import LockAcquisitionError

if TYPE_CHECKING:
    from typing import Any

    from redis import Redis

# Delete the key only while it still holds our token
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""

RETRY_INTERVAL_SECONDS = 0.05


class DistributedLock:
    """
    Token-owned Redis lock with a TTL.

    Args:
        key: Lock identifier (stored under "lock:<key>")
        ttl: Seconds before Redis expires the lock on its own
        blocking: Wait up to ``timeout`` seconds instead of failing at once
        timeout: Maximum wait in blocking mode

    Raises (from acquire):
        LockAcquisitionError: If the lock is held by someone else
    """

    def __init__(
        self,
        key: str,
        ttl: int = 30,
        blocking: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.key = f"lock:{key}"
        self.ttl = ttl
        self.blocking = blocking
        self.timeout = timeout
        self._token: str | None = None
        self._redis: Redis | None = None

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_connection("default")
        return self._redis

    @property
    def is_held(self) -> bool:
        return self._token is not None

    def _try_acquire(self, token: str) -> bool:
        return bool(self.redis.set(self.key, token, nx=True, ex=self.ttl))

    def acquire(self) -> bool:
        token = uuid.uuid4().hex
        deadline = time.monotonic() + (self.timeout if self.blocking else 0)

        while True:
            if self._try_acquire(token):
                self._token = token
                return True
            if time.monotonic() >= deadline:
                break
            time.sleep(RETRY_INTERVAL_SECONDS)

        raise LockAcquisitionError(
            f"Could not acquire lock '{self.key}'",
            details={"key": self.key, "blocking": self.blocking, "timeout": self.timeout},
        )

    def release(self) -> bool:
        """Release the lock if we own it. Safe to call more than once."""
        if self._token is None:
            return False
        released = self.redis.eval(RELEASE_SCRIPT, 1, self.key, self._token)
        self._token = None
        return bool(released)

    def __enter__(self) -> DistributedLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> bool:
        self.release()
        return False


def recurrence_lock(recurrence_id: uuid.UUID | str) -> DistributedLock:
    """Non-waiting lock guarding one recurrence's materialization."""
    return DistributedLock(
        f"finance:recurrence:{recurrence_id}",
        ttl=settings.FINANCE_RECURRENCE_LOCK_TTL,
        blocking=False,
    )
