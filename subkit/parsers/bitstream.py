"""
Bit-level reading and colour helpers for bitmap subtitle formats.
"""

from typing import Optional


class BitReader:
    """Big-endian bit reader over a byte buffer."""

    def __init__(self, data: bytes, start: int = 0, end: Optional[int] = None):
        self.data = data
        self.end = len(data) if end is None else min(end, len(data))
        self.bit_position = start * 8

    @property
    def byte_position(self) -> int:
        return self.bit_position // 8

    def bits_left(self) -> int:
        return self.end * 8 - self.bit_position

    def bytes_left(self) -> int:
        return self.end - (self.bit_position + 7) // 8

    def read_bits(self, count: int) -> int:
        if count > self.bits_left():
            raise ValueError(f"Read of {count} bits past end of buffer")
        value = 0
        for _ in range(count):
            byte = self.data[self.bit_position >> 3]
            bit = (byte >> (7 - (self.bit_position & 7))) & 1
            value = (value << 1) | bit
            self.bit_position += 1
        return value

    def read_bit(self) -> bool:
        return self.read_bits(1) == 1

    def read_uint8(self) -> int:
        return self.read_bits(8)

    def read_uint16(self) -> int:
        return self.read_bits(16)

    def read_uint24(self) -> int:
        return self.read_bits(24)

    def read_bytes(self, count: int) -> bytes:
        self.byte_align()
        start = self.byte_position
        if start + count > self.end:
            raise ValueError(f"Read of {count} bytes past end of buffer")
        self.bit_position += count * 8
        return bytes(self.data[start:start + count])

    def skip_bits(self, count: int) -> None:
        self.bit_position += count

    def skip_bytes(self, count: int) -> None:
        self.byte_align()
        self.bit_position += count * 8

    def byte_align(self) -> None:
        self.bit_position = (self.bit_position + 7) // 8 * 8

    def seek_byte(self, position: int) -> None:
        self.bit_position = position * 8


def argb(alpha: int, red: int, green: int, blue: int) -> int:
    return (alpha << 24) | (red << 16) | (green << 8) | blue


def _clamp(value: float) -> int:
    return max(0, min(255, int(value)))


def ycrcb_to_argb(y: int, cr: int, cb: int, alpha: int) -> int:
    """Convert a BT.601 Y'CrCb palette entry to a packed ARGB integer."""
    red = y + 1.40200 * (cr - 128)
    green = y - 0.34414 * (cb - 128) - 0.71414 * (cr - 128)
    blue = y + 1.77200 * (cb - 128)
    return argb(alpha, _clamp(red), _clamp(green), _clamp(blue))
