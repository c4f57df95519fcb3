import logging

import pytest

from bac_discover.app.codec import decode_event, describe_reason, encode_i_am, encode_who_is
from bac_discover.app.events import AbortReceived, IAmReceived, RejectReceived, Unrecognized
from bac_discover.network.address import (
    BROADCAST_NETWORK,
    GLOBAL_BROADCAST,
    LOCAL_BROADCAST,
    BACnetAddress,
)
from bac_discover.network.npdu import NPDU, decode_npdu, encode_npdu
from bac_discover.types.enums import AbortReason, RejectReason, Segmentation
from tests.helpers import MAC_A, abort_npdu, i_am_npdu, reject_npdu


class TestEncodeWhoIs:
    def test_local_broadcast_has_no_dnet(self):
        assert encode_who_is(LOCAL_BROADCAST) == b"\x01\x00\x10\x08"

    def test_global_broadcast(self):
        assert encode_who_is(GLOBAL_BROADCAST) == b"\x01\x20\xff\xff\x00\xff\x10\x08"

    def test_range(self):
        assert encode_who_is(LOCAL_BROADCAST, 100, 200) == b"\x01\x00\x10\x08\x09\x64\x19\xc8"

    def test_single_instance(self):
        npdu = decode_npdu(encode_who_is(LOCAL_BROADCAST, 42, 42))
        assert npdu.payload == b"\x10\x08\x09\x2a\x19\x2a"

    def test_directed_routed(self):
        dest = BACnetAddress(mac=MAC_A, network=5, adr=b"\x0a")
        npdu = decode_npdu(encode_who_is(dest))
        assert npdu.destination == BACnetAddress(network=5, adr=b"\x0a")

    def test_directed_local_station_has_no_dnet(self):
        npdu = decode_npdu(encode_who_is(BACnetAddress(mac=MAC_A)))
        assert npdu.destination is None


class TestEncodeIAm:
    def test_local_broadcast(self):
        data = encode_i_am(LOCAL_BROADCAST, 1234, 1476, Segmentation.NONE, 260)
        assert data == b"\x01\x00\x10\x00\xc4\x02\x00\x04\xd2\x22\x05\xc4\x91\x03\x22\x01\x04"

    def test_network_broadcast(self):
        data = encode_i_am(BACnetAddress(network=BROADCAST_NETWORK), 1, 480, Segmentation.BOTH, 0)
        assert decode_npdu(data).destination == BACnetAddress(network=BROADCAST_NETWORK)


class TestDecodeEvent:
    def test_i_am(self):
        event = decode_event(i_am_npdu(1234, vendor_id=8), MAC_A)
        assert event == IAmReceived(
            device_id=1234,
            max_apdu=1476,
            segmentation=Segmentation.NONE,
            vendor_id=8,
            source=BACnetAddress(mac=MAC_A),
        )

    def test_i_am_via_router(self):
        payload = decode_npdu(i_am_npdu(77)).payload
        data = encode_npdu(NPDU(source=BACnetAddress(network=9, adr=b"\x2a"), payload=payload))
        event = decode_event(data, MAC_A)
        assert isinstance(event, IAmReceived)
        assert event.source == BACnetAddress(mac=MAC_A, network=9, adr=b"\x2a")

    def test_abort(self):
        event = decode_event(abort_npdu(AbortReason.SEGMENTATION_NOT_SUPPORTED), MAC_A)
        assert event == AbortReceived(
            AbortReason.SEGMENTATION_NOT_SUPPORTED, BACnetAddress(mac=MAC_A)
        )

    def test_reject(self):
        event = decode_event(reject_npdu(RejectReason.INVALID_TAG), MAC_A)
        assert event == RejectReceived(RejectReason.INVALID_TAG, BACnetAddress(mac=MAC_A))

    def test_proprietary_reject(self):
        event = decode_event(reject_npdu(99), MAC_A)
        assert isinstance(event, RejectReceived)
        assert event.reason == 99

    def test_who_is_is_unrecognized(self):
        event = decode_event(encode_who_is(LOCAL_BROADCAST), MAC_A)
        assert isinstance(event, Unrecognized)
        assert event.reason == "Who-Is for all devices"

    def test_ranged_who_is_described(self):
        event = decode_event(encode_who_is(LOCAL_BROADCAST, 5, 9), MAC_A)
        assert event.reason == "Who-Is for devices 5-9"

    def test_other_unconfirmed_service(self):
        npdu = encode_npdu(NPDU(payload=b"\x10\x02\x00"))
        event = decode_event(npdu, MAC_A)
        assert isinstance(event, Unrecognized)
        assert event.reason == "unconfirmed service 2"

    def test_network_message_is_unrecognized(self):
        event = decode_event(b"\x01\x80\x01\x00\x05", MAC_A)
        assert isinstance(event, Unrecognized)
        assert "network message" in event.reason

    def test_other_pdu_is_unrecognized(self):
        event = decode_event(b"\x01\x00\x20\x01\x0c", MAC_A)
        assert event == Unrecognized(BACnetAddress(mac=MAC_A), "simple_ack PDU")

    def test_malformed_npdu(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.DEBUG, logger="bac_discover.app.codec"):
            event = decode_event(b"\x02", MAC_A)
        assert isinstance(event, Unrecognized)
        assert "malformed NPDU" in event.reason
        assert "Dropped malformed NPDU" in caplog.text

    def test_malformed_apdu(self):
        event = decode_event(b"\x01\x00\x60\x01", MAC_A)
        assert isinstance(event, Unrecognized)
        assert "malformed APDU" in event.reason

    def test_malformed_i_am(self):
        event = decode_event(i_am_npdu(1234)[:-1], MAC_A)
        assert isinstance(event, Unrecognized)
        assert "malformed I-Am" in event.reason


class TestDescribeReason:
    def test_abort(self):
        assert describe_reason(AbortReason.SEGMENTATION_NOT_SUPPORTED) == (
            "segmentation-not-supported"
        )

    def test_reject(self):
        assert describe_reason(RejectReason.UNRECOGNIZED_SERVICE) == "unrecognized-service"

    def test_proprietary(self):
        assert describe_reason(64) == "proprietary-64"

    def test_reserved(self):
        assert describe_reason(40) == "reserved-40"
