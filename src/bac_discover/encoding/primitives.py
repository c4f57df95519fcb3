"""Primitive values carried by Who-Is and I-Am.

Unsigned (Clause 20.2.4), Enumerated (20.2.11, same octets as Unsigned)
and Object Identifier (20.2.14).
"""

from __future__ import annotations

from bac_discover.encoding.tags import TagClass, encode_tag
from bac_discover.types.primitives import ObjectIdentifier, object_type_from_int

TAG_UNSIGNED = 2
TAG_ENUMERATED = 9
TAG_OBJECT_IDENTIFIER = 12

UNSIGNED_MAX = 0xFFFFFFFF


def encode_unsigned(value: int) -> bytes:
    """Big-endian in the fewest octets (one octet for zero).

    :raises ValueError: If *value* is outside 0-4294967295.
    """
    if not 0 <= value <= UNSIGNED_MAX:
        msg = f"Unsigned value must be 0-{UNSIGNED_MAX}, got {value}"
        raise ValueError(msg)
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")


def decode_unsigned(data: memoryview | bytes) -> int:
    """:raises ValueError: Unless *data* holds 1-4 octets."""
    if not 1 <= len(data) <= 4:
        msg = f"Unsigned value must be 1-4 octets, got {len(data)}"
        raise ValueError(msg)
    return int.from_bytes(data, "big")


def decode_object_identifier(data: memoryview | bytes) -> tuple[int, int]:
    """Split a 4-octet object identifier into ``(object_type, instance)``.

    :raises ValueError: Unless *data* holds exactly 4 octets.
    """
    if len(data) != 4:
        msg = f"Object identifier must be 4 octets, got {len(data)}"
        raise ValueError(msg)
    value = int.from_bytes(data, "big")
    return value >> 22, value & 0x3FFFFF


def _tagged(tag_number: int, cls: TagClass, content: bytes) -> bytes:
    return encode_tag(tag_number, cls, len(content)) + content


def encode_application_unsigned(value: int) -> bytes:
    return _tagged(TAG_UNSIGNED, TagClass.APPLICATION, encode_unsigned(value))


def encode_application_enumerated(value: int) -> bytes:
    return _tagged(TAG_ENUMERATED, TagClass.APPLICATION, encode_unsigned(value))


def encode_application_object_id(obj_type: int, instance: int) -> bytes:
    identifier = ObjectIdentifier(object_type_from_int(obj_type), instance)
    return _tagged(TAG_OBJECT_IDENTIFIER, TagClass.APPLICATION, identifier.encode())


def encode_context_unsigned(tag_number: int, value: int) -> bytes:
    return _tagged(tag_number, TagClass.CONTEXT, encode_unsigned(value))
