"""
Tests for distributed locking utilities.

Tests the DistributedLock class which provides Redis-based mutual exclusion
across processes for per-host payout work.
"""

import pytest

from payouts.exceptions import LockAcquisitionError
from payouts.locks import DistributedLock, host_lock_key


def test_host_lock_key():
    assert host_lock_key(42) == "payout:host:42"


class TestDistributedLock:
    """Tests for DistributedLock class."""

    def test_acquire_success(self, mock_redis_lock):
        """Should acquire lock when available."""
        lock = DistributedLock("test:key", ttl=30, blocking=False)
        result = lock.acquire()

        assert result is True
        assert lock.is_held is True
        # Verify set was called with correct args: key, token, nx=True, ex=ttl
        call_args = mock_redis_lock.set.call_args
        assert call_args[0][0] == "lock:test:key"
        assert call_args[1]["nx"] is True
        assert call_args[1]["ex"] == 30

    def test_acquire_generates_unique_token(self, mock_redis_lock):
        """Should generate unique token for each acquisition."""
        lock1 = DistributedLock("test:key1", ttl=30, blocking=False)
        lock2 = DistributedLock("test:key2", ttl=30, blocking=False)

        lock1.acquire()
        lock2.acquire()

        assert lock1._token is not None
        assert lock1._token != lock2._token

    def test_acquire_non_blocking_raises_when_held(self, mock_redis_lock):
        """Non-blocking mode should raise immediately if lock unavailable."""
        mock_redis_lock.set.return_value = False

        lock = DistributedLock("test:key", ttl=30, blocking=False)

        with pytest.raises(LockAcquisitionError) as exc_info:
            lock.acquire()

        assert "already held" in str(exc_info.value)
        assert exc_info.value.details["key"] == "lock:test:key"
        assert lock.is_held is False

    def test_acquire_blocking_waits_and_acquires(self, mock_redis_lock):
        """Blocking mode should wait and eventually acquire."""
        mock_redis_lock.set.side_effect = [False, False, True]

        lock = DistributedLock("test:key", ttl=30, blocking=True, timeout=1.0)
        result = lock.acquire()

        assert result is True
        assert mock_redis_lock.set.call_count == 3

    def test_acquire_blocking_timeout_raises_error(self, mock_redis_lock):
        """Should raise after timeout in blocking mode."""
        mock_redis_lock.set.return_value = False

        lock = DistributedLock("test:key", ttl=30, blocking=True, timeout=0.1)

        with pytest.raises(LockAcquisitionError) as exc_info:
            lock.acquire()

        assert exc_info.value.error_code == "LOCK_ACQUISITION_FAILED"
        assert "within 0.1s" in str(exc_info.value)
        assert exc_info.value.details == {"key": "lock:test:key", "timeout": 0.1}

    def test_release_success(self, mock_redis_lock):
        """Should release lock when we hold it."""
        lock = DistributedLock("test:key", ttl=30, blocking=False)
        lock.acquire()
        result = lock.release()

        assert result is True
        assert lock.is_held is False
        mock_redis_lock.eval.assert_called_once()

    def test_release_only_if_owned(self, mock_redis_lock):
        """Script returns 0 when the key now belongs to someone else."""
        mock_redis_lock.eval.return_value = 0

        lock = DistributedLock("test:key", ttl=30, blocking=False)
        lock.acquire()

        assert lock.release() is False

    def test_release_without_acquire_returns_false(self, mock_redis_lock):
        lock = DistributedLock("test:key", ttl=30, blocking=False)

        assert lock.release() is False
        mock_redis_lock.eval.assert_not_called()

    def test_extend_passes_ttl(self, mock_redis_lock):
        lock = DistributedLock("test:key", ttl=30, blocking=False)
        lock.acquire()

        assert lock.extend(120) is True
        args = mock_redis_lock.eval.call_args[0]
        assert args[0] == DistributedLock.EXTEND_SCRIPT
        assert args[2:] == ("lock:test:key", lock._token, 120)

    def test_extend_without_acquire_returns_false(self, mock_redis_lock):
        assert DistributedLock("test:key").extend() is False

    def test_context_manager_releases_on_exception(self, mock_redis_lock):
        """Should release lock even if exception occurs inside context."""
        with pytest.raises(ValueError):
            with DistributedLock("test:key", ttl=30):
                raise ValueError("Test error")

        mock_redis_lock.set.assert_called_once()
        mock_redis_lock.eval.assert_called_once()
