"""Per resource type IPC provider backed by Redis."""

import logging
from contextlib import contextmanager
from typing import Any, Optional

from .down_marker import DownMarkerFile
from .exceptions import StoreUnavailableError
from .guard import AvailabilityGuard
from .keys import MIN_DATA_ID, ResourceType, mutex_key, type_name
from .mutex import MutexCoordinator
from .slots import DataSlots
from .store import StoreClient

logger = logging.getLogger(__name__)


def create_guard(
    store: Optional[StoreClient] = None,
    marker: Optional[DownMarkerFile] = None,
    down_lock_expiration: Optional[float] = None
) -> AvailabilityGuard:
    """Build the process-wide guard and open the first connection.

    Nothing is dialed if a down marker is still in effect; the guard
    reconnects on its own once the window has elapsed. A failed first
    connection opens a down window.
    """
    store = store if store is not None else StoreClient()
    guard = AvailabilityGuard(store, marker, down_lock_expiration)
    if guard.is_active() and not store.connected:
        try:
            store.connect()
        except StoreUnavailableError as e:
            logger.error(f"Redis unavailable at startup: {e}")
            guard.mark_down()
    return guard


class RedisIPCProvider:
    """Mutex and data slots of a single resource type.

    Example:
        guard = create_guard()
        provider = RedisIPCProvider("device-mapping", guard)
        with provider.mutex():
            mapping = provider.get_data() or {}
            mapping[device_id] = user
            provider.set_data(mapping)
    """

    def __init__(
        self,
        resource_type: ResourceType,
        guard: Optional[AvailabilityGuard] = None,
        mutex_timeout: Optional[int] = None,
        block_wait: Optional[int] = None
    ):
        self.resource_type = type_name(resource_type)
        self.guard = guard if guard is not None else create_guard()
        self.store = self.guard.store
        self.coordinator = MutexCoordinator(self.store, self.guard, mutex_timeout, block_wait)
        self.slots = DataSlots(self.store, self.guard)

    @property
    def mutex_key(self) -> str:
        return mutex_key(self.resource_type)

    def is_active(self) -> bool:
        return self.guard.is_active()

    def block_mutex(self) -> bool:
        return self.coordinator.block_mutex(self.resource_type)

    def release_mutex(self) -> bool:
        return self.coordinator.release_mutex(self.resource_type)

    @contextmanager
    def mutex(self):
        with self.coordinator.hold(self.resource_type):
            yield self

    def has_data(self, slot_id: int = MIN_DATA_ID) -> bool:
        return self.slots.has_data(self.resource_type, slot_id)

    def get_data(self, slot_id: int = MIN_DATA_ID) -> Any:
        return self.slots.get_data(self.resource_type, slot_id)

    def set_data(self, data: Any, slot_id: int = MIN_DATA_ID) -> bool:
        return self.slots.set_data(self.resource_type, slot_id, data)

    def reinit_ipc(self) -> bool:
        return self.slots.reinit_ipc()

    def clean(self, whole_prefix: bool = True) -> bool:
        return self.slots.clean(self.resource_type, whole_prefix)
