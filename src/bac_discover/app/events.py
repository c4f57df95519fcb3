"""Inbound events the sessions act on.

:func:`bac_discover.app.codec.decode_event` turns every received NPDU
into exactly one of these; the sessions consume them with ``match``.
"""

from __future__ import annotations

from dataclasses import dataclass

from bac_discover.network.address import BACnetAddress
from bac_discover.types.enums import AbortReason, RejectReason, Segmentation


@dataclass(frozen=True, slots=True)
class IAmReceived:
    """A device announced itself."""

    device_id: int
    max_apdu: int
    segmentation: Segmentation
    vendor_id: int
    source: BACnetAddress


@dataclass(frozen=True, slots=True)
class AbortReceived:
    """A peer aborted the exchange."""

    reason: AbortReason | int
    source: BACnetAddress


@dataclass(frozen=True, slots=True)
class RejectReceived:
    """A peer rejected the request."""

    reason: RejectReason | int
    source: BACnetAddress


@dataclass(frozen=True, slots=True)
class Unrecognized:
    """Anything else: other services, network messages, or undecodable data."""

    source: BACnetAddress
    reason: str = ""


InboundEvent = IAmReceived | AbortReceived | RejectReceived | Unrecognized
