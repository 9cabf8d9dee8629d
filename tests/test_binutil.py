"""
Unit tests for the little-endian read helpers.
"""

import pytest

from binutil import pack_u32le, read_range, read_text, read_u32le
from errors import BoundsError


class TestReadU32:

    def test_reads_little_endian(self):
        assert read_u32le(b'\x46\x00\x00\x00', 0) == 70
        assert read_u32le(b'\xff\x78\x56\x34\x12', 1) == 0x12345678

    def test_last_four_bytes(self):
        assert read_u32le(b'\x00\x01\x00\x00\x00', 1) == 1

    def test_past_end_fails(self):
        with pytest.raises(BoundsError):
            read_u32le(b'\x00\x00\x00', 0)
        with pytest.raises(BoundsError):
            read_u32le(b'\x00' * 8, 5)

    def test_negative_offset_fails(self):
        with pytest.raises(BoundsError):
            read_u32le(b'\x00' * 8, -1)


class TestReadRange:

    def test_extracts_copy(self):
        buf = bytearray(b'abcdef')
        out = read_range(buf, 2, 3)
        buf[2] = ord('X')
        assert out == b'cde'

    def test_empty_range_at_end(self):
        assert read_range(b'abc', 3, 0) == b''

    def test_past_end_fails(self):
        with pytest.raises(BoundsError):
            read_range(b'abc', 1, 3)


class TestReadText:

    def test_stops_at_first_nul(self):
        assert read_text(b'LOGO\x00junk\x00') == 'LOGO'

    def test_whole_buffer_without_nul(self):
        assert read_text(b'TITLE') == 'TITLE'

    def test_strips_whitespace(self):
        assert read_text(b'  ICON \x00\x00') == 'ICON'

    def test_utf8(self):
        assert read_text('Écran'.encode('utf-8') + b'\x00') == 'Écran'


class TestPackU32:

    def test_packs(self):
        assert pack_u32le(70) == b'\x46\x00\x00\x00'

    def test_out_of_range(self):
        with pytest.raises(BoundsError):
            pack_u32le(2 ** 32)
        with pytest.raises(BoundsError):
            pack_u32le(-1)
