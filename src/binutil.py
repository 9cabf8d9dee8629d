"""
Bounds-checked little-endian helpers shared by the BNK codec.
"""

import struct

from errors import BoundsError

U32_MAX = 0xFFFFFFFF


def _check_range(buf, offset, size):
    if offset < 0 or size < 0 or offset + size > len(buf):
        raise BoundsError(
            f"range 0x{offset:X}+{size} exceeds buffer of {len(buf)} bytes"
        )


def read_u32le(buf, offset: int) -> int:
    """Read an unsigned 32-bit little-endian integer at offset."""
    _check_range(buf, offset, 4)
    return struct.unpack_from('<I', buf, offset)[0]


def read_range(buf, offset: int, size: int) -> bytes:
    """Return a copy of buf[offset:offset + size]."""
    _check_range(buf, offset, size)
    return bytes(buf[offset:offset + size])


def read_text(buf) -> str:
    """Decode the bytes before the first NUL as UTF-8, trimmed of whitespace."""
    raw = bytes(buf).split(b'\x00', 1)[0]
    return raw.decode('utf-8', errors='replace').strip()


def pack_u32le(value: int) -> bytes:
    if value < 0 or value > U32_MAX:
        raise BoundsError(f"value {value} does not fit in 32 bits")
    return struct.pack('<I', value)
