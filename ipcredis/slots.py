"""Small shared data slots scoped by resource type and id."""

import logging
from typing import Any, Optional

from redis.exceptions import RedisError

from .exceptions import SerializationError, StoreUnavailableError, ValidationError
from .guard import AvailabilityGuard
from .keys import MIN_DATA_ID, ResourceType, data_key, mutex_key, type_name
from .store import StoreClient

logger = logging.getLogger(__name__)


class DataSlots:
    """Get/set values under ``type:id`` keys.

    Writes are plain overwrites without TTL. Read-modify-write sequences need
    a mutex from MutexCoordinator around them.
    """

    def __init__(self, store: StoreClient, guard: AvailabilityGuard):
        self.store = store
        self.guard = guard

    def has_data(self, resource_type: ResourceType, slot_id: int = MIN_DATA_ID) -> bool:
        key = data_key(resource_type, slot_id)
        if not self.guard.is_active():
            return False
        try:
            return self.store.exists(key) > 0
        except (RedisError, StoreUnavailableError) as e:
            logger.error(f"Could not check data slot {key}: {e}")
            return False

    def get_data(self, resource_type: ResourceType, slot_id: int = MIN_DATA_ID) -> Any:
        key = data_key(resource_type, slot_id)
        if not self.guard.is_active():
            return None
        try:
            return self.store.get(key)
        except (RedisError, StoreUnavailableError) as e:
            logger.error(f"Could not read data slot {key}: {e}")
            return None
        except SerializationError as e:
            logger.error(f"Discarding undecodable value in data slot {key}: {e}")
            return None

    def set_data(self, resource_type: ResourceType, slot_id: int, value: Any) -> bool:
        key = data_key(resource_type, slot_id)
        if not self.guard.is_active():
            return False
        try:
            return self.store.set(key, value)
        except (RedisError, StoreUnavailableError) as e:
            logger.error(f"Could not write data slot {key}: {e}")
            return False
        except SerializationError as e:
            logger.error(f"Refusing to write data slot {key}: {e}")
            return False

    def reinit_ipc(self) -> bool:
        """Flush the whole Redis db, not only this prefix."""
        if not self.guard.is_active():
            return False
        try:
            return self.store.flush_namespace()
        except (RedisError, StoreUnavailableError) as e:
            logger.error(f"Could not flush Redis db: {e}")
            return False

    def clean(self, resource_type: Optional[ResourceType] = None, whole_prefix: bool = True) -> bool:
        """Delete stored keys.

        By default every key under the store prefix goes, whatever type owns
        it. With ``whole_prefix=False`` only the data slots and mutex of
        ``resource_type`` are removed.
        """
        if not whole_prefix and resource_type is None:
            raise ValidationError("resource_type is required when whole_prefix is False")
        if not self.guard.is_active():
            return False
        try:
            if whole_prefix:
                keys = self.store.scan_keys()
            else:
                keys = self.store.scan_keys(type_name(resource_type) + ":")
                keys.append(mutex_key(resource_type))
            deleted = self.store.delete(*keys)
        except (RedisError, StoreUnavailableError) as e:
            logger.error(f"Could not clean IPC data: {e}")
            return False
        logger.debug(f"Cleaned {deleted} IPC keys under '{self.store.prefix}'")
        return True
