"""
Store availability guard.

Acts as a circuit breaker in front of Redis: once a mutex wait runs out of
retries the store is considered down for DOWN_LOCK_EXPIRATION seconds, and
all operations fail fast without touching the network. The window is
persisted through a down marker so other processes on the host honour it.
"""

import logging
import time
from datetime import datetime
from typing import Optional

from . import metrics
from .config import config
from .down_marker import DownMarkerFile
from .exceptions import ConfigurationError, StoreUnavailableError
from .store import StoreClient

logger = logging.getLogger(__name__)


class AvailabilityGuard:
    """Tracks whether the store may be used right now.

    One guard is meant to be created per process and shared by every
    coordinator and slot store talking to the same Redis.
    """

    def __init__(
        self,
        store: StoreClient,
        marker: Optional[DownMarkerFile] = None,
        down_lock_expiration: Optional[float] = None
    ):
        self.store = store
        self.marker = marker if marker is not None else DownMarkerFile()
        self.down_lock_expiration = (
            down_lock_expiration if down_lock_expiration is not None
            else config.DOWN_LOCK_EXPIRATION
        )
        if self.down_lock_expiration <= 0:
            raise ConfigurationError(
                f"Down lock expiration must be positive, got {self.down_lock_expiration}"
            )

        self._down_until = self.load_persisted_down_until()
        self._was_down = self._down_until > time.time()

    @property
    def down_until(self) -> float:
        return self._down_until

    @property
    def was_down(self) -> bool:
        return self._was_down

    def is_active(self) -> bool:
        """Return False while inside a down window.

        The first call after a window elapses reconnects the store once.
        """
        down = self._down_until > time.time()
        if not down and self._was_down:
            logger.debug("Redis was down, trying to reconnect")
            self._was_down = False
            try:
                self.store.connect()
            except StoreUnavailableError as e:
                logger.error(f"Reconnect to Redis failed: {e}")
                metrics.store_reconnects.labels(result='failed').inc()
                self.mark_down()
                return False
            metrics.store_reconnects.labels(result='ok').inc()
        return not down

    def mark_down(self) -> bool:
        """Open a down window. Returns whether the marker could be persisted."""
        logger.warning(f"Marking Redis as down for {self.down_lock_expiration} seconds")
        down_until = time.time() + self.down_lock_expiration
        self._down_until = down_until
        self._was_down = True
        metrics.store_marked_down.inc()
        return self.marker.store_down_until(down_until)

    def load_persisted_down_until(self) -> float:
        down_until = self.marker.load_down_until()
        if down_until > time.time():
            expiry = datetime.fromtimestamp(down_until).strftime("%d.%m.%Y %H:%M:%S")
            logger.warning(f"Redis is marked as down until {expiry}")
            return down_until
        if down_until:
            self.marker.clear()
        return 0
