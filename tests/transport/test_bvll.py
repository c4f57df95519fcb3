import pytest

from bac_discover.network.address import BIPAddress
from bac_discover.transport.bvll import BvllMessage, decode_bvll, encode_bvll
from bac_discover.types.enums import BvlcFunction


class TestEncodeBvll:
    def test_original_broadcast(self):
        data = encode_bvll(BvlcFunction.ORIGINAL_BROADCAST_NPDU, b"\x01\x00\x10\x08")
        assert data == b"\x81\x0b\x00\x08\x01\x00\x10\x08"

    def test_register_foreign_device(self):
        data = encode_bvll(BvlcFunction.REGISTER_FOREIGN_DEVICE, (60).to_bytes(2, "big"))
        assert data == b"\x81\x05\x00\x06\x00\x3c"

    def test_forwarded_npdu(self):
        origin = BIPAddress(host="10.0.0.9", port=47808)
        data = encode_bvll(BvlcFunction.FORWARDED_NPDU, b"\x01\x00", origin)
        assert data == b"\x81\x04\x00\x0c\x0a\x00\x00\x09\xba\xc0\x01\x00"

    def test_forwarded_requires_origin(self):
        with pytest.raises(ValueError, match="originating_address"):
            encode_bvll(BvlcFunction.FORWARDED_NPDU, b"\x01\x00")


class TestDecodeBvll:
    def test_original_unicast(self):
        msg = decode_bvll(b"\x81\x0a\x00\x06\x01\x00")
        assert msg == BvllMessage(function=BvlcFunction.ORIGINAL_UNICAST_NPDU, data=b"\x01\x00")

    def test_forwarded(self):
        msg = decode_bvll(b"\x81\x04\x00\x0c\x0a\x00\x00\x09\xba\xc0\x01\x00")
        assert msg.originating_address == BIPAddress(host="10.0.0.9", port=47808)
        assert msg.data == b"\x01\x00"

    def test_bvlc_result(self):
        msg = decode_bvll(b"\x81\x00\x00\x06\x00\x30")
        assert msg.function == BvlcFunction.BVLC_RESULT

    def test_trailing_bytes_ignored(self):
        msg = decode_bvll(b"\x81\x0a\x00\x06\x01\x00\xff\xff")
        assert msg.data == b"\x01\x00"

    def test_too_short(self):
        with pytest.raises(ValueError, match="too short"):
            decode_bvll(b"\x81\x0a")

    def test_wrong_type(self):
        with pytest.raises(ValueError, match="BVLC type"):
            decode_bvll(b"\x82\x0a\x00\x04")

    def test_unknown_function(self):
        with pytest.raises(ValueError):
            decode_bvll(b"\x81\x7f\x00\x04")

    def test_length_beyond_datagram(self):
        with pytest.raises(ValueError, match="Invalid BVLL length"):
            decode_bvll(b"\x81\x0a\x00\x10\x01\x00")

    def test_forwarded_too_short(self):
        with pytest.raises(ValueError, match="Forwarded-NPDU too short"):
            decode_bvll(b"\x81\x04\x00\x06\x0a\x00")
