"""
ipcredis - Redis backed IPC for independent worker processes

Provides coordination primitives for processes that share no memory:
- Named cross-process mutexes with bounded waits
- Small shared data slots per resource type
- A circuit breaker that stops dialing Redis while it is down

Usage:
    from ipcredis import RedisIPCProvider, create_guard

    guard = create_guard()  # once per process
    provider = RedisIPCProvider("loop-detection", guard)

    if provider.block_mutex():
        try:
            state = provider.get_data(2)
            provider.set_data(update(state), 2)
        finally:
            provider.release_mutex()
"""

from .store import StoreClient
from .down_marker import DownMarkerFile
from .guard import AvailabilityGuard
from .mutex import MutexCoordinator
from .slots import DataSlots
from .provider import RedisIPCProvider, create_guard
from .exceptions import (
    IPCError,
    ConfigurationError,
    StoreUnavailableError,
    ValidationError,
    MutexNotAcquired,
    SerializationError,
)

__version__ = "0.1.0"
__all__ = [
    "StoreClient",
    "DownMarkerFile",
    "AvailabilityGuard",
    "MutexCoordinator",
    "DataSlots",
    "RedisIPCProvider",
    "create_guard",
    "IPCError",
    "ConfigurationError",
    "StoreUnavailableError",
    "ValidationError",
    "MutexNotAcquired",
    "SerializationError",
]
