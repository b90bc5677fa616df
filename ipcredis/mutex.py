"""
Cross-process mutex on top of Redis.

Uses Redis SET NX PX for atomic acquisition with a TTL, so a crashed holder
can never keep a resource locked for longer than MUTEX_TIMEOUT.

Example:
    coordinator = MutexCoordinator(store, guard)
    if coordinator.block_mutex("device-mapping"):
        try:
            ...  # exclusive section
        finally:
            coordinator.release_mutex("device-mapping")
"""

import logging
import time
from contextlib import contextmanager
from typing import Optional

from redis.exceptions import ConnectionError, TimeoutError, RedisError

from . import metrics
from .config import config
from .exceptions import ConfigurationError, MutexNotAcquired, StoreUnavailableError
from .guard import AvailabilityGuard
from .keys import ResourceType, mutex_key, type_name
from .store import StoreClient

logger = logging.getLogger(__name__)

# waits longer than this are reported
SLOW_WAIT_MS = 50


class MutexCoordinator:
    """Blocks and releases named mutexes shared by all processes."""

    def __init__(
        self,
        store: StoreClient,
        guard: AvailabilityGuard,
        mutex_timeout: Optional[int] = None,  # ms, also the key TTL
        block_wait: Optional[int] = None  # ms between attempts
    ):
        self.store = store
        self.guard = guard
        mutex_timeout = mutex_timeout if mutex_timeout is not None else config.MUTEX_TIMEOUT
        block_wait = block_wait if block_wait is not None else config.BLOCK_WAIT

        # Redis only takes whole milliseconds for PX
        try:
            self.mutex_timeout = int(mutex_timeout)
            self.block_wait = int(block_wait)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Mutex timeout and block wait must be integers (ms), "
                f"got {mutex_timeout!r} / {block_wait!r}"
            ) from e

        if self.mutex_timeout <= 0 or self.block_wait <= 0:
            raise ConfigurationError(
                f"Mutex timeout and block wait must be positive, "
                f"got {self.mutex_timeout}ms / {self.block_wait}ms"
            )

        self.max_wait_cycles = round(self.mutex_timeout / self.block_wait) + 1
        self.log_wait_cycles = max(1, round(self.max_wait_cycles / 5))

    def block_mutex(self, resource_type: ResourceType) -> bool:
        """
        Block the mutex of ``resource_type``, polling until it is free.

        ATTENTION: every successful call must be paired with exactly one
        ``release_mutex``, also on error paths.

        Returns False without waiting if the store is marked down, and after
        ``max_wait_cycles`` failed attempts, in which case the store is
        marked down as well.
        """
        key = mutex_key(resource_type)
        if not self.guard.is_active():
            return False

        label = type_name(resource_type)
        start_time = time.monotonic()
        n = 0
        while True:
            try:
                if self.store.set_if_absent(key, True, self.mutex_timeout):
                    break
            except (ConnectionError, TimeoutError, StoreUnavailableError) as e:
                logger.error(f"Redis failed while blocking mutex {key}: {e}")
                self.guard.mark_down()
                return False
            except RedisError as e:
                logger.error(f"Could not block mutex {key}: {e}")
                return False

            n += 1
            if n > self.max_wait_cycles:
                logger.error(f"Could not acquire mutex for type: {key}. Check redis service!")
                metrics.mutex_exhausted.labels(resource_type=label).inc()
                self.guard.mark_down()
                return False
            if n % self.log_wait_cycles == 0:
                logger.debug(f"Waiting to acquire mutex for type: {key}")
            time.sleep(self.block_wait / 1000)

        waited = time.monotonic() - start_time
        metrics.mutex_acquired.labels(resource_type=label).inc()
        metrics.mutex_wait_seconds.labels(resource_type=label).observe(waited)
        if waited * 1000 > SLOW_WAIT_MS:
            logger.warning(f"Mutex acquired after waiting for {waited * 1000:.0f}ms for type: {key}")
        return True

    def release_mutex(self, resource_type: ResourceType) -> bool:
        """Delete the mutex key so other processes can block it."""
        key = mutex_key(resource_type)
        try:
            return self.store.delete(key) > 0
        except (RedisError, StoreUnavailableError) as e:
            logger.error(f"Could not release mutex {key}, it will expire after {self.mutex_timeout}ms: {e}")
            return False

    @contextmanager
    def hold(self, resource_type: ResourceType):
        """Block the mutex for the duration of the ``with`` block.

        Raises:
            MutexNotAcquired: if the mutex could not be blocked
        """
        if not self.block_mutex(resource_type):
            raise MutexNotAcquired(f"Could not block mutex {mutex_key(resource_type)}")
        try:
            yield self
        finally:
            self.release_mutex(resource_type)
