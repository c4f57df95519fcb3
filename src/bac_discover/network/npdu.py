"""NPDU encoding and decoding per ASHRAE 135-2016 Clause 6."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

from bac_discover.network.address import BROADCAST_NETWORK, MAX_MAC_LEN, BACnetAddress
from bac_discover.types.enums import NetworkPriority

logger = logging.getLogger(__name__)

BACNET_PROTOCOL_VERSION = 1

_PRIORITIES: tuple[NetworkPriority, ...] = (
    NetworkPriority.NORMAL,
    NetworkPriority.URGENT,
    NetworkPriority.CRITICAL_EQUIPMENT,
    NetworkPriority.LIFE_SAFETY,
)


@dataclass(frozen=True, slots=True)
class NPDU:
    """Decoded Network Protocol Data Unit (Clause 6.2).

    ``destination`` and ``source`` only carry the routing fields
    (``network`` and ``adr``); their ``mac`` is always empty because
    the data-link address travels outside the NPDU.
    """

    is_network_message: bool = False
    """``True`` for network-layer messages, ``False`` for application-layer APDUs."""

    expecting_reply: bool = False
    """``True`` when the sender expects a reply."""

    priority: NetworkPriority = NetworkPriority.NORMAL
    """Message priority."""

    destination: BACnetAddress | None = None
    """DNET/DADR, or ``None`` for the local network."""

    source: BACnetAddress | None = None
    """SNET/SADR, present when a router forwarded the message."""

    hop_count: int = 255
    """Remaining hop count for routed messages (0-255)."""

    message_type: int | None = None
    """Network message type code when *is_network_message* is ``True``."""

    payload: bytes = b""
    """APDU bytes, or network-message data for network-layer messages."""


def encode_npdu(npdu: NPDU) -> bytes:
    """Encode an :class:`NPDU` into on-the-wire bytes.

    :raises ValueError: If the source fields are not a valid routed
        station (SNET 1-65534 and a non-empty SADR).
    """
    dest = npdu.destination
    src = npdu.source

    if src is not None:
        if src.network in (0, BROADCAST_NETWORK):
            msg = f"SNET must be 1-65534, got {src.network}"
            raise ValueError(msg)
        if not src.adr:
            msg = "SLEN cannot be 0 when source is present"
            raise ValueError(msg)

    control = npdu.priority & 0x03
    if npdu.is_network_message:
        control |= 0x80
    if dest is not None:
        control |= 0x20
    if src is not None:
        control |= 0x08
    if npdu.expecting_reply:
        control |= 0x04

    buf = bytearray([BACNET_PROTOCOL_VERSION, control])

    if dest is not None:
        buf.extend(struct.pack("!HB", dest.network, len(dest.adr)))
        buf.extend(dest.adr)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "encode_npdu: dnet=%d dadr=%s", dest.network, dest.adr.hex() or "(empty)"
            )

    if src is not None:
        buf.extend(struct.pack("!HB", src.network, len(src.adr)))
        buf.extend(src.adr)

    if dest is not None:
        buf.append(npdu.hop_count)

    if npdu.is_network_message:
        if npdu.message_type is None:
            msg = "message_type must be set when is_network_message is True"
            raise ValueError(msg)
        buf.append(npdu.message_type)

    buf.extend(npdu.payload)
    return bytes(buf)


def decode_npdu(data: memoryview | bytes) -> NPDU:
    """Decode raw bytes into an :class:`NPDU`.

    :raises ValueError: If the data is truncated, the protocol version is
        not 1, or the source fields are invalid.
    """
    if len(data) < 2:
        msg = f"NPDU data too short: need at least 2 bytes, got {len(data)}"
        raise ValueError(msg)

    if isinstance(data, bytes):
        data = memoryview(data)

    version = data[0]
    if version != BACNET_PROTOCOL_VERSION:
        msg = f"Unsupported BACnet protocol version: {version}"
        raise ValueError(msg)

    control = data[1]
    offset = 2

    is_network_message = bool(control & 0x80)
    has_destination = bool(control & 0x20)
    has_source = bool(control & 0x08)

    destination = None
    source = None
    hop_count = 255

    if has_destination:
        dnet, dadr, offset = _decode_routing(data, offset, "destination")
        destination = BACnetAddress(network=dnet, adr=dadr)

    if has_source:
        snet, sadr, offset = _decode_routing(data, offset, "source")
        if snet in (0, BROADCAST_NETWORK):
            msg = f"Source SNET must be 1-65534, got {snet}"
            raise ValueError(msg)
        if not sadr:
            msg = "Source SLEN cannot be 0 when source is present"
            raise ValueError(msg)
        source = BACnetAddress(network=snet, adr=sadr)

    if has_destination:
        if offset >= len(data):
            msg = "NPDU too short for hop count"
            raise ValueError(msg)
        hop_count = data[offset]
        offset += 1

    message_type = None
    if is_network_message:
        if offset >= len(data):
            msg = "NPDU too short for network message type"
            raise ValueError(msg)
        message_type = data[offset]
        offset += 1

    return NPDU(
        is_network_message=is_network_message,
        expecting_reply=bool(control & 0x04),
        priority=_PRIORITIES[control & 0x03],
        destination=destination,
        source=source,
        hop_count=hop_count,
        message_type=message_type,
        payload=bytes(data[offset:]),
    )


def _decode_routing(data: memoryview, offset: int, label: str) -> tuple[int, bytes, int]:
    """Decode a NET(2) + LEN(1) + ADR field group."""
    if offset + 3 > len(data):
        msg = f"NPDU too short for {label}: need {offset + 3} bytes, got {len(data)}"
        raise ValueError(msg)
    net = int.from_bytes(data[offset : offset + 2], "big")
    length = data[offset + 2]
    offset += 3
    if offset + length > len(data):
        msg = (
            f"NPDU {label} address truncated: length {length} but only "
            f"{len(data) - offset} bytes remain"
        )
        raise ValueError(msg)
    if length > MAX_MAC_LEN:
        msg = f"NPDU {label} address too long: {length} bytes"
        raise ValueError(msg)
    return net, bytes(data[offset : offset + length]), offset + length
