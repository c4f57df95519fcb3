"""Who-Is and I-Am services per ASHRAE 135-2016 Clause 16.10."""

from __future__ import annotations

from dataclasses import dataclass

from bac_discover.encoding.primitives import (
    TAG_ENUMERATED,
    TAG_OBJECT_IDENTIFIER,
    TAG_UNSIGNED,
    decode_object_identifier,
    decode_unsigned,
    encode_application_enumerated,
    encode_application_object_id,
    encode_application_unsigned,
    encode_context_unsigned,
)
from bac_discover.encoding.tags import as_memoryview, decode_tag
from bac_discover.types.enums import ObjectType, Segmentation
from bac_discover.types.primitives import MAX_INSTANCE, ObjectIdentifier


@dataclass(frozen=True, slots=True)
class WhoIsRequest:
    """Who-Is-Request service parameters (Clause 16.10.1).

    A range needs both limits; a request carrying only one is treated as
    unbounded, as Clause 16.10.1.1.1 directs.

    :raises ValueError: If a limit is outside 0-4194303.
    """

    low_limit: int | None = None
    high_limit: int | None = None

    def __post_init__(self) -> None:
        if self.low_limit is None or self.high_limit is None:
            object.__setattr__(self, "low_limit", None)
            object.__setattr__(self, "high_limit", None)
            return
        for limit in (self.low_limit, self.high_limit):
            if not 0 <= limit <= MAX_INSTANCE:
                msg = f"Device instance limit must be 0-{MAX_INSTANCE}, got {limit}"
                raise ValueError(msg)

    def __str__(self) -> str:
        if self.low_limit is None:
            return "all devices"
        return f"devices {self.low_limit}-{self.high_limit}"

    def encode(self) -> bytes:
        """Context tags [0] low and [1] high, or nothing when unbounded."""
        if self.low_limit is None or self.high_limit is None:
            return b""
        return encode_context_unsigned(0, self.low_limit) + encode_context_unsigned(
            1, self.high_limit
        )

    @classmethod
    def decode(cls, data: memoryview | bytes) -> WhoIsRequest:
        """Read the optional range; tags other than [0] then [1] leave it unbounded."""
        data = as_memoryview(data)
        limits: list[int] = []
        offset = 0
        for number in (0, 1):
            if offset >= len(data):
                break
            tag, offset = decode_tag(data, offset)
            if not tag.is_context(number):
                break
            limits.append(decode_unsigned(data[offset : offset + tag.length]))
            offset += tag.length
        if len(limits) != 2:
            return cls()
        return cls(low_limit=limits[0], high_limit=limits[1])


def _read_application(
    data: memoryview, offset: int, number: int, field: str
) -> tuple[memoryview, int]:
    """Return the content of the application tag *number* at *offset* and the next offset."""
    tag, offset = decode_tag(data, offset)
    if not tag.is_application(number):
        msg = f"I-Am {field}: expected application tag {number}, got {tag.cls.name} {tag.number}"
        raise ValueError(msg)
    end = offset + tag.length
    return data[offset:end], end


@dataclass(frozen=True, slots=True)
class IAmRequest:
    """I-Am-Request service parameters (Clause 16.10.2).

    All fields use APPLICATION tags (not context-specific).
    """

    object_identifier: ObjectIdentifier
    max_apdu_length: int
    segmentation_supported: Segmentation
    vendor_id: int

    @property
    def device_id(self) -> int:
        """The announcing device's instance number."""
        return self.object_identifier.instance_number

    def encode(self) -> bytes:
        """Encode I-Am-Request service parameters."""
        return b"".join(
            (
                encode_application_object_id(
                    self.object_identifier.object_type,
                    self.object_identifier.instance_number,
                ),
                encode_application_unsigned(self.max_apdu_length),
                encode_application_enumerated(self.segmentation_supported),
                encode_application_unsigned(self.vendor_id),
            )
        )

    @classmethod
    def decode(cls, data: memoryview | bytes) -> IAmRequest:
        """Decode I-Am-Request from service request bytes.

        :raises ValueError: If a field is missing, carries the wrong tag,
            names a non-device object, or holds an out-of-range value.
        """
        data = as_memoryview(data)

        raw, offset = _read_application(data, 0, TAG_OBJECT_IDENTIFIER, "device identifier")
        obj_type, instance = decode_object_identifier(raw)
        if obj_type != ObjectType.DEVICE:
            msg = f"I-Am device identifier names object type {obj_type}, not a device"
            raise ValueError(msg)

        raw, offset = _read_application(data, offset, TAG_UNSIGNED, "max APDU")
        max_apdu_length = decode_unsigned(raw)

        raw, offset = _read_application(data, offset, TAG_ENUMERATED, "segmentation")
        segmentation_supported = Segmentation(decode_unsigned(raw))

        raw, offset = _read_application(data, offset, TAG_UNSIGNED, "vendor id")
        vendor_id = decode_unsigned(raw)
        if vendor_id > 0xFFFF:
            msg = f"I-Am vendor id must be 0-65535, got {vendor_id}"
            raise ValueError(msg)

        return cls(
            object_identifier=ObjectIdentifier(ObjectType.DEVICE, instance),
            max_apdu_length=max_apdu_length,
            segmentation_supported=segmentation_supported,
            vendor_id=vendor_id,
        )
