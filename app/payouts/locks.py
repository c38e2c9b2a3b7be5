"""
Redis-backed distributed lock for payout work.

All transfers to one host are serialized across dispatch passes, Celery
workers and web processes by holding ``payout:host:<host_id>`` for the
duration of that host's queue. The lock is a plain ``SET NX EX`` key
owned by a random token; release and extend go through Lua scripts so a
process never deletes a lock that expired and was taken by someone else.

Usage:
    from payouts.locks import DistributedLock, host_lock_key

    with DistributedLock(host_lock_key(host_id), ttl=300, timeout=10):
        pay_host(host_id)
"""

from __future__ import annotations

import time
import uuid as uuid_module
from typing import TYPE_CHECKING

from django_redis import get_redis_connection

from payouts.exceptions import LockAcquisitionError

if TYPE_CHECKING:
    from typing import Any

    from redis import Redis


def host_lock_key(host_id: Any) -> str:
    """Lock name guarding every payout to one host."""
    return f"payout:host:{host_id}"


class DistributedLock:
    """
    Redis lock with TTL and token ownership.

    Args:
        key: Lock identifier (stored as "lock:<key>")
        ttl: Seconds until Redis expires the lock on its own
        blocking: If True, acquire() polls until timeout
        timeout: Maximum seconds to wait in blocking mode

    Raises:
        LockAcquisitionError: From acquire()/__enter__ when the lock is held
            elsewhere past the timeout (or at all, when non-blocking)

    Note:
        The TTL should exceed the time needed to pay a host's whole queue.
        A host with many bookings can call extend() between transfers.
    """

    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    EXTEND_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("expire", KEYS[1], ARGV[2])
    else
        return 0
    end
    """

    POLL_INTERVAL_SECONDS = 0.05

    def __init__(
        self,
        key: str,
        ttl: int = 300,
        blocking: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.key = f"lock:{key}"
        self.ttl = ttl
        self.blocking = blocking
        self.timeout = timeout
        self._token: str | None = None
        self._redis: Redis | None = None

    def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_connection("default")
        return self._redis

    def acquire(self) -> bool:
        """
        Acquire the lock.

        Returns:
            True once the lock is held

        Raises:
            LockAcquisitionError: If the lock could not be taken
        """
        token = str(uuid_module.uuid4())
        redis = self._get_redis()

        if self.blocking:
            deadline = time.monotonic() + self.timeout
            while True:
                if redis.set(self.key, token, nx=True, ex=self.ttl):
                    self._token = token
                    return True
                if time.monotonic() >= deadline:
                    break
                time.sleep(self.POLL_INTERVAL_SECONDS)

            raise LockAcquisitionError(
                f"Failed to acquire lock '{self.key}' within {self.timeout}s",
                details={"key": self.key, "timeout": self.timeout},
            )

        if not redis.set(self.key, token, nx=True, ex=self.ttl):
            raise LockAcquisitionError(
                f"Lock '{self.key}' is already held",
                details={"key": self.key},
            )
        self._token = token
        return True

    def release(self) -> bool:
        """
        Release the lock if this instance holds it.

        Returns:
            True if the key was deleted, False if we no longer owned it
        """
        if self._token is None:
            return False

        result = self._get_redis().eval(self.RELEASE_SCRIPT, 1, self.key, self._token)
        self._token = None
        return bool(result)

    def extend(self, ttl: int | None = None) -> bool:
        """Reset the lock's TTL (default: the original ttl) if we hold it."""
        if self._token is None:
            return False

        result = self._get_redis().eval(
            self.EXTEND_SCRIPT, 1, self.key, self._token, ttl or self.ttl
        )
        return bool(result)

    @property
    def is_held(self) -> bool:
        return self._token is not None

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


__all__ = [
    "DistributedLock",
    "host_lock_key",
]
