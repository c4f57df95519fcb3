"""BACnet primitive value types per ASHRAE 135-2016 Clause 20.2."""

from __future__ import annotations

from dataclasses import dataclass

from bac_discover.types.enums import ObjectType

MAX_INSTANCE = 0x3FFFFF
"""Largest legal object instance number (4194303)."""

MAX_OBJECT_TYPE = 0x3FF


def object_type_from_int(value: int) -> ObjectType | int:
    """Return the :class:`ObjectType` member for *value*, or the raw integer."""
    try:
        return ObjectType(value)
    except ValueError:
        return value


@dataclass(frozen=True, slots=True)
class ObjectIdentifier:
    """BACnet Object Identifier - 10-bit type, 22-bit instance."""

    object_type: ObjectType | int
    instance_number: int

    def __post_init__(self) -> None:
        if not 0 <= int(self.object_type) <= MAX_OBJECT_TYPE:
            msg = f"Object type must be 0-1023, got {int(self.object_type)}"
            raise ValueError(msg)
        if not 0 <= self.instance_number <= MAX_INSTANCE:
            msg = f"Instance number must be 0-4194303, got {self.instance_number}"
            raise ValueError(msg)

    def encode(self) -> bytes:
        """Encode to 4-byte wire format."""
        value = (int(self.object_type) << 22) | (self.instance_number & MAX_INSTANCE)
        return value.to_bytes(4, "big")
