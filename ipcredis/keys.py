"""Key naming for mutexes and data slots."""

from enum import Enum
from typing import Union

from .exceptions import ValidationError

ResourceType = Union[str, Enum]

# ids 0 and 1 belong to the coordination layer itself
MIN_DATA_ID = 2

# key separator and Redis glob syntax
RESERVED_CHARS = ':*?[]\\'


def type_name(resource_type: ResourceType) -> str:
    """Return the string form of a resource type, rejecting empty values."""
    if isinstance(resource_type, Enum):
        resource_type = resource_type.value
    if not isinstance(resource_type, str):
        raise ValidationError(f"Resource type must be a string, got {type(resource_type)}")
    if not resource_type.strip():
        raise ValidationError("Resource type cannot be empty")
    if any(char in resource_type for char in RESERVED_CHARS):
        raise ValidationError(
            f"Resource type may not contain any of {RESERVED_CHARS!r}: {resource_type!r}"
        )
    return resource_type


def mutex_key(resource_type: ResourceType) -> str:
    return type_name(resource_type) + "MX"


def data_key(resource_type: ResourceType, slot_id: int) -> str:
    # bool is an int subclass; True would silently map to slot 1
    if isinstance(slot_id, bool) or not isinstance(slot_id, int):
        raise ValidationError(f"Slot id must be an integer, got {type(slot_id)}")
    if slot_id < MIN_DATA_ID:
        raise ValidationError(f"Slot ids below {MIN_DATA_ID} are reserved, got {slot_id}")
    return f"{type_name(resource_type)}:{slot_id}"
