import pytest

from bac_discover.encoding.tags import Tag, TagClass, decode_tag, encode_tag


class TestEncodeTag:
    def test_application_short(self):
        # Unsigned (tag 2), length 1
        assert encode_tag(2, TagClass.APPLICATION, 1) == b"\x21"

    def test_context_short(self):
        assert encode_tag(1, TagClass.CONTEXT, 3) == b"\x1b"

    def test_extended_length(self):
        assert encode_tag(2, TagClass.APPLICATION, 10) == b"\x25\x0a"

    def test_extended_tag_number(self):
        assert encode_tag(20, TagClass.CONTEXT, 1) == bytes([0xF9, 20])

    def test_length_limit(self):
        assert encode_tag(6, TagClass.APPLICATION, 253) == b"\x65\xfd"
        with pytest.raises(ValueError, match="0-253"):
            encode_tag(6, TagClass.APPLICATION, 254)

    def test_invalid_tag_number(self):
        with pytest.raises(ValueError, match="Tag number"):
            encode_tag(255, TagClass.APPLICATION, 1)

    def test_negative_length(self):
        with pytest.raises(ValueError, match="0-253"):
            encode_tag(2, TagClass.APPLICATION, -1)


class TestDecodeTag:
    def test_application_unsigned(self):
        tag, offset = decode_tag(b"\x22\x05\xc4", 0)
        assert tag == Tag(number=2, cls=TagClass.APPLICATION, length=2)
        assert offset == 1

    def test_context_tag(self):
        tag, offset = decode_tag(b"\x09\x10", 0)
        assert tag.cls == TagClass.CONTEXT
        assert tag.number == 0
        assert tag.length == 1
        assert offset == 1

    def test_opening_and_closing_rejected(self):
        with pytest.raises(ValueError, match="unexpected opening tag 3"):
            decode_tag(b"\x3e", 0)
        with pytest.raises(ValueError, match="unexpected closing tag 3"):
            decode_tag(b"\x3f", 0)

    def test_invalid_application_length_field(self):
        with pytest.raises(ValueError, match="invalid length field 6"):
            decode_tag(b"\x26" + bytes(6), 0)

    def test_extended_tag_number(self):
        tag, offset = decode_tag(bytes([0xF9, 20, 0x01]), 0)
        assert tag.is_context(20)
        assert offset == 2

    def test_two_byte_extended_length(self):
        data = b"\x65\xfe\x01\x2c" + bytes(300)
        tag, offset = decode_tag(data, 0)
        assert tag.length == 300
        assert offset == 4

    def test_extended_length(self):
        data = b"\x25\x06" + bytes(6)
        tag, offset = decode_tag(data, 0)
        assert tag.length == 6
        assert offset == 2

    def test_offset_beyond_buffer(self):
        with pytest.raises(ValueError, match="beyond buffer"):
            decode_tag(b"\x21", 1)

    def test_truncated_header(self):
        with pytest.raises(ValueError, match="truncated"):
            decode_tag(b"\x25", 0)

    def test_truncated_content(self):
        with pytest.raises(ValueError, match="exceeds remaining"):
            decode_tag(b"\x24\x01", 0)

    def test_application_boolean_has_no_content(self):
        tag, offset = decode_tag(b"\x11", 0)
        assert tag.number == 1
        assert tag.length == 1
        assert offset == 1
