"""Tag headers for the primitive values Who-Is and I-Am carry (Clause 20.2.1).

Discovery services are flat sequences of primitives, so constructed data
(opening and closing tags) is rejected instead of being walked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum

logger = logging.getLogger(__name__)

_EXTENDED_NUMBER = 0x0F
_EXTENDED_LENGTH = 5
_OPENING = 6
_MAX_SHORT_EXTENDED = 253


class TagClass(IntEnum):
    APPLICATION = 0
    CONTEXT = 1


@dataclass(frozen=True, slots=True)
class Tag:
    """A decoded tag header.

    ``number`` is the datatype for application tags and the field index
    for context tags. ``length`` counts the content octets that follow.
    """

    number: int
    cls: TagClass
    length: int

    def is_context(self, number: int) -> bool:
        return self.cls is TagClass.CONTEXT and self.number == number

    def is_application(self, number: int) -> bool:
        return self.cls is TagClass.APPLICATION and self.number == number


def encode_tag(tag_number: int, cls: TagClass, length: int) -> bytes:
    """Build the header for *length* content octets.

    :raises ValueError: If *tag_number* is outside 0-254 or *length*
        outside 0-253.
    """
    if not 0 <= tag_number <= 254:
        msg = f"Tag number must be 0-254, got {tag_number}"
        raise ValueError(msg)
    if not 0 <= length <= _MAX_SHORT_EXTENDED:
        msg = f"Tag length must be 0-{_MAX_SHORT_EXTENDED}, got {length}"
        raise ValueError(msg)

    header = bytearray(1)
    if tag_number < _EXTENDED_NUMBER:
        header[0] = tag_number << 4
    else:
        header[0] = _EXTENDED_NUMBER << 4
        header.append(tag_number)
    header[0] |= cls << 3
    if length < _EXTENDED_LENGTH:
        header[0] |= length
    else:
        header[0] |= _EXTENDED_LENGTH
        header.append(length)
    return bytes(header)


def as_memoryview(data: bytes | memoryview) -> memoryview:
    """Ensure *data* is a :class:`memoryview` for zero-copy slicing."""
    return memoryview(data) if isinstance(data, bytes) else data


def _read(buf: memoryview, offset: int, size: int) -> tuple[int, int]:
    if offset + size > len(buf):
        msg = "Tag decode: truncated tag header"
        logger.debug(msg)
        raise ValueError(msg)
    return int.from_bytes(buf[offset : offset + size], "big"), offset + size


def decode_tag(buf: memoryview | bytes, offset: int) -> tuple[Tag, int]:
    """Decode the tag header at *offset*.

    The content that follows is bounds-checked too, so a truncated
    datagram fails here rather than yielding a short value.

    :returns: ``(tag, offset of the first content octet)``.
    :raises ValueError: On a truncated header or content, an opening or
        closing tag, or an application tag with an invalid length field.
    """
    buf = as_memoryview(buf)
    if offset >= len(buf):
        msg = f"Tag decode: offset {offset} beyond buffer length {len(buf)}"
        logger.debug(msg)
        raise ValueError(msg)

    initial = buf[offset]
    offset += 1
    number = initial >> 4
    cls = TagClass((initial >> 3) & 0x01)
    lvt = initial & 0x07

    if number == _EXTENDED_NUMBER:
        number, offset = _read(buf, offset, 1)

    if lvt < _EXTENDED_LENGTH:
        length = lvt
    elif lvt == _EXTENDED_LENGTH:
        length, offset = _read(buf, offset, 1)
        if length == 254:
            length, offset = _read(buf, offset, 2)
        elif length == 255:
            length, offset = _read(buf, offset, 4)
    elif cls is TagClass.CONTEXT:
        kind = "opening" if lvt == _OPENING else "closing"
        msg = f"Tag decode: unexpected {kind} tag {number}"
        raise ValueError(msg)
    else:
        msg = f"Tag decode: invalid length field {lvt} for application tag {number}"
        raise ValueError(msg)

    # Application booleans carry their value in L/V/T with no content
    has_content = not (cls is TagClass.APPLICATION and number == 1)
    if has_content and offset + length > len(buf):
        msg = f"Tag decode: content length {length} exceeds remaining {len(buf) - offset} bytes"
        logger.debug(msg)
        raise ValueError(msg)

    return Tag(number=number, cls=cls, length=length), offset
