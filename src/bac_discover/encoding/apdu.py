"""Application-layer PDUs seen during discovery (ASHRAE 135-2016 Clause 20.1).

Who-Is and I-Am travel in an Unconfirmed-Request. A peer that refuses
an exchange answers with Reject or Abort. Every other PDU type decodes
to :class:`OtherPDU` so the caller can skip it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeVar

from bac_discover.types.enums import AbortReason, PduType, RejectReason

_SERVER_FLAG = 0x01

E = TypeVar("E", AbortReason, RejectReason)


def reason_from_int(enum_cls: type[E], value: int) -> E | int:
    """Return the *enum_cls* member for *value*, or the raw proprietary code."""
    try:
        return enum_cls(value)
    except ValueError:
        return value


@dataclass(frozen=True, slots=True)
class UnconfirmedRequestPDU:
    """Unconfirmed-Request (Clause 20.1.3): service choice plus encoded parameters."""

    service_choice: int
    service_request: bytes


@dataclass(frozen=True, slots=True)
class RejectPDU:
    """Reject (Clause 20.1.8). ``reject_reason`` is a raw int for unnamed codes."""

    invoke_id: int
    reject_reason: RejectReason | int


@dataclass(frozen=True, slots=True)
class AbortPDU:
    """Abort (Clause 20.1.9). ``abort_reason`` is a raw int for unnamed codes."""

    sent_by_server: bool
    invoke_id: int
    abort_reason: AbortReason | int


@dataclass(frozen=True, slots=True)
class OtherPDU:
    """Confirmed requests, acknowledgements and errors; discovery never acts on them."""

    pdu_type: PduType


APDU = UnconfirmedRequestPDU | RejectPDU | AbortPDU | OtherPDU


def encode_apdu(pdu: APDU) -> bytes:
    """Serialize *pdu*.

    :raises TypeError: For :class:`OtherPDU`, which carries no body.
    """
    match pdu:
        case UnconfirmedRequestPDU(service_choice=choice, service_request=request):
            return bytes([PduType.UNCONFIRMED_REQUEST << 4, choice]) + request
        case RejectPDU(invoke_id=invoke_id, reject_reason=reason):
            return bytes([PduType.REJECT << 4, invoke_id, int(reason)])
        case AbortPDU(sent_by_server=by_server, invoke_id=invoke_id, abort_reason=reason):
            first = PduType.ABORT << 4 | (_SERVER_FLAG if by_server else 0)
            return bytes([first, invoke_id, int(reason)])
        case _:
            msg = f"Cannot encode PDU type: {type(pdu).__name__}"
            raise TypeError(msg)


def _require(data: memoryview | bytes, size: int, name: str) -> None:
    if len(data) < size:
        msg = f"{name} too short: need at least {size} bytes, got {len(data)}"
        raise ValueError(msg)


def decode_apdu(data: memoryview | bytes) -> APDU:
    """Parse the APDU at the start of *data*.

    :raises ValueError: If *data* is shorter than its PDU type needs, or
        the type nibble names no PDU type.
    """
    _require(data, 1, "APDU data")
    pdu_type = PduType(data[0] >> 4)

    if pdu_type is PduType.UNCONFIRMED_REQUEST:
        _require(data, 2, "UnconfirmedRequest")
        return UnconfirmedRequestPDU(service_choice=data[1], service_request=bytes(data[2:]))
    if pdu_type is PduType.REJECT:
        _require(data, 3, "RejectPDU")
        return RejectPDU(
            invoke_id=data[1], reject_reason=reason_from_int(RejectReason, data[2])
        )
    if pdu_type is PduType.ABORT:
        _require(data, 3, "AbortPDU")
        return AbortPDU(
            sent_by_server=bool(data[0] & _SERVER_FLAG),
            invoke_id=data[1],
            abort_reason=reason_from_int(AbortReason, data[2]),
        )
    return OtherPDU(pdu_type=pdu_type)
