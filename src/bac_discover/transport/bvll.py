"""BVLL (BACnet Virtual Link Layer) framing per Annex J.2."""

from __future__ import annotations

from dataclasses import dataclass

from bac_discover.network.address import BIPAddress
from bac_discover.types.enums import BvlcFunction

BVLC_TYPE_BACNET_IP = 0x81
BVLL_HEADER_LENGTH = 4  # Type(1) + Function(1) + Length(2)
_BIP_ADDRESS_LENGTH = 6


@dataclass(frozen=True, slots=True)
class BvllMessage:
    """Decoded BVLL message."""

    function: BvlcFunction
    data: bytes
    originating_address: BIPAddress | None = None
    """Set only for Forwarded-NPDU: the station that first sent the NPDU."""


def encode_bvll(
    function: BvlcFunction,
    payload: bytes,
    originating_address: BIPAddress | None = None,
) -> bytes:
    """Frame *payload* as a BVLL message.

    :param function: BVLC function code.
    :param payload: NPDU or control payload.
    :param originating_address: Required for Forwarded-NPDU.
    :raises ValueError: If a Forwarded-NPDU has no originating address.
    """
    header_extra = b""
    if function == BvlcFunction.FORWARDED_NPDU:
        if originating_address is None:
            msg = "Forwarded-NPDU requires originating_address"
            raise ValueError(msg)
        header_extra = originating_address.encode()

    total = BVLL_HEADER_LENGTH + len(header_extra) + len(payload)
    return (
        bytes([BVLC_TYPE_BACNET_IP, function])
        + total.to_bytes(2, "big")
        + header_extra
        + payload
    )


def decode_bvll(data: memoryview | bytes) -> BvllMessage:
    """Decode a BVLL message from a raw UDP datagram.

    Octets past the declared length are ignored.

    :raises ValueError: If *data* is too short, the BVLC type or function
        is unknown, the declared length is inconsistent, or a
        Forwarded-NPDU originating address is truncated.
    """
    if len(data) < BVLL_HEADER_LENGTH:
        msg = f"BVLL data too short: need at least {BVLL_HEADER_LENGTH} bytes, got {len(data)}"
        raise ValueError(msg)

    if isinstance(data, bytes):
        data = memoryview(data)

    if data[0] != BVLC_TYPE_BACNET_IP:
        msg = f"Invalid BVLC type: {data[0]:#x}"
        raise ValueError(msg)

    function = BvlcFunction(data[1])
    length = int.from_bytes(data[2:4], "big")
    if length < BVLL_HEADER_LENGTH or length > len(data):
        msg = f"Invalid BVLL length: declared {length}, actual {len(data)}"
        raise ValueError(msg)

    if function == BvlcFunction.FORWARDED_NPDU:
        start = BVLL_HEADER_LENGTH + _BIP_ADDRESS_LENGTH
        if length < start:
            msg = f"Forwarded-NPDU too short: need at least {start} bytes, got {length}"
            raise ValueError(msg)
        return BvllMessage(
            function=function,
            data=bytes(data[start:length]),
            originating_address=BIPAddress.decode(data[BVLL_HEADER_LENGTH:start]),
        )

    return BvllMessage(function=function, data=bytes(data[BVLL_HEADER_LENGTH:length]))
