"""Custom exceptions for ipcredis."""

class IPCError(Exception):
    """Base exception for ipcredis."""
    pass

class ConfigurationError(IPCError):
    """Invalid or incomplete configuration."""
    pass

class StoreUnavailableError(IPCError):
    """Redis could not be reached or refused the connection."""
    pass

class ValidationError(IPCError):
    """Invalid resource type or slot id."""
    pass

class MutexNotAcquired(IPCError):
    """Mutex could not be blocked (contended too long or store down)."""
    pass

class SerializationError(IPCError):
    """Value could not be encoded for or decoded from the store."""
    pass
