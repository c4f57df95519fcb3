"""Build outbound Who-Is / I-Am NPDUs and classify inbound ones."""

from __future__ import annotations

import logging

from bac_discover.app.events import (
    AbortReceived,
    IAmReceived,
    InboundEvent,
    RejectReceived,
    Unrecognized,
)
from bac_discover.encoding.apdu import (
    AbortPDU,
    OtherPDU,
    RejectPDU,
    UnconfirmedRequestPDU,
    decode_apdu,
    encode_apdu,
)
from bac_discover.network.address import BACnetAddress
from bac_discover.network.npdu import NPDU, decode_npdu, encode_npdu
from bac_discover.services.who_is import IAmRequest, WhoIsRequest
from bac_discover.types.enums import (
    AbortReason,
    ObjectType,
    RejectReason,
    Segmentation,
    UnconfirmedServiceChoice,
)
from bac_discover.types.primitives import ObjectIdentifier

logger = logging.getLogger(__name__)

PROPRIETARY_REASON_MIN = 64


def _wrap(destination: BACnetAddress, service: UnconfirmedServiceChoice, request: bytes) -> bytes:
    """Wrap an unconfirmed service request in an NPDU addressed to *destination*.

    DNET/DADR are only carried for routed or network-broadcast destinations.
    """
    routing = None
    if not destination.is_local:
        routing = BACnetAddress(network=destination.network, adr=destination.adr)
    apdu = encode_apdu(UnconfirmedRequestPDU(service_choice=service, service_request=request))
    return encode_npdu(NPDU(destination=routing, payload=apdu))


def encode_who_is(
    destination: BACnetAddress, low_limit: int | None = None, high_limit: int | None = None
) -> bytes:
    """Encode a Who-Is NPDU for *destination*, optionally bounded to an instance range."""
    request = WhoIsRequest(low_limit=low_limit, high_limit=high_limit)
    return _wrap(destination, UnconfirmedServiceChoice.WHO_IS, request.encode())


def encode_i_am(
    destination: BACnetAddress,
    device_id: int,
    max_apdu: int,
    segmentation: Segmentation,
    vendor_id: int,
) -> bytes:
    """Encode an I-Am NPDU announcing this device to *destination*."""
    request = IAmRequest(
        object_identifier=ObjectIdentifier(ObjectType.DEVICE, device_id),
        max_apdu_length=max_apdu,
        segmentation_supported=segmentation,
        vendor_id=vendor_id,
    )
    return _wrap(destination, UnconfirmedServiceChoice.I_AM, request.encode())


def decode_event(data: bytes, source_mac: bytes) -> InboundEvent:
    """Classify one received NPDU.

    The returned event's ``source`` combines the data-link *source_mac*
    with the NPDU's SNET/SADR when a router forwarded the message.
    Nothing raises: malformed input becomes :class:`Unrecognized`.
    """
    try:
        npdu = decode_npdu(data)
    except ValueError as exc:
        logger.debug("Dropped malformed NPDU from %s: %s", source_mac.hex(), exc)
        return Unrecognized(BACnetAddress(mac=source_mac), f"malformed NPDU: {exc}")

    if npdu.source is not None:
        source = BACnetAddress(mac=source_mac, network=npdu.source.network, adr=npdu.source.adr)
    else:
        source = BACnetAddress(mac=source_mac)

    if npdu.is_network_message:
        return Unrecognized(source, f"network message {npdu.message_type}")

    try:
        apdu = decode_apdu(npdu.payload)
    except ValueError as exc:
        logger.debug("Dropped malformed APDU from %s: %s", source, exc)
        return Unrecognized(source, f"malformed APDU: {exc}")

    match apdu:
        case UnconfirmedRequestPDU(service_choice=UnconfirmedServiceChoice.I_AM):
            try:
                iam = IAmRequest.decode(apdu.service_request)
            except ValueError as exc:
                logger.debug("Received I-Am from %s, but unable to decode it: %s", source, exc)
                return Unrecognized(source, f"malformed I-Am: {exc}")
            logger.debug("Received I-Am from %d, MAC = %s", iam.device_id, source)
            return IAmReceived(
                device_id=iam.device_id,
                max_apdu=iam.max_apdu_length,
                segmentation=iam.segmentation_supported,
                vendor_id=iam.vendor_id,
                source=source,
            )
        case UnconfirmedRequestPDU(service_choice=UnconfirmedServiceChoice.WHO_IS):
            # Another client discovering; never answered here
            try:
                who_is = WhoIsRequest.decode(apdu.service_request)
            except ValueError as exc:
                return Unrecognized(source, f"malformed Who-Is: {exc}")
            return Unrecognized(source, f"Who-Is for {who_is}")
        case AbortPDU():
            return AbortReceived(apdu.abort_reason, source)
        case RejectPDU():
            return RejectReceived(apdu.reject_reason, source)
        case UnconfirmedRequestPDU():
            return Unrecognized(source, f"unconfirmed service {apdu.service_choice}")
        case OtherPDU():
            return Unrecognized(source, f"{apdu.pdu_type.name.lower()} PDU")


def describe_reason(reason: AbortReason | RejectReason | int) -> str:
    """Human-readable abort/reject reason, e.g. ``segmentation-not-supported``.

    Codes without a name read ``proprietary-<n>`` (64 and up) or
    ``reserved-<n>``.
    """
    if isinstance(reason, (AbortReason, RejectReason)):
        return reason.name.lower().replace("_", "-")
    if reason >= PROPRIETARY_REASON_MIN:
        return f"proprietary-{reason}"
    return f"reserved-{reason}"
