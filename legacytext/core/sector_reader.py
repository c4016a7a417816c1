# -*- coding: utf-8 -*-
"""
바이트 버퍼에서 정수 읽기 (범위 검사 포함).

struct.unpack_from 은 짧은 버퍼에서 struct.error 를 내고, 슬라이스는 조용히 잘린다.
여기서는 두 경우 모두 TruncatedDataError 로 통일한다.
"""
from __future__ import annotations

import struct

from .errors import TruncatedDataError

_FORMATS = {1: "B", 2: "H", 4: "I", 8: "Q"}


def _unpack(buf: bytes, off: int, size: int, little: bool = True) -> int:
    if off < 0 or off + size > len(buf):
        raise TruncatedDataError(
            f"{size}-byte read at offset {off} exceeds buffer of {len(buf)} bytes"
        )
    fmt = ("<" if little else ">") + _FORMATS[size]
    return struct.unpack_from(fmt, buf, off)[0]


# 리틀엔디언 헬퍼 (Word/PowerPoint 레코드는 항상 LE)
def le16(b: bytes, off: int) -> int:
    return _unpack(b, off, 2)


def le32(b: bytes, off: int) -> int:
    return _unpack(b, off, 4)


def take(b: bytes, off: int, size: int) -> bytes:
    """Slice `size` bytes at `off`, refusing to return a short slice."""
    if off < 0 or size < 0 or off + size > len(b):
        raise TruncatedDataError(
            f"range [{off}, {off + size}) exceeds buffer of {len(b)} bytes"
        )
    return b[off:off + size]


def bits(v: int, o: int, n: int) -> int:
    return (v >> o) & ((1 << n) - 1)


def hexdump(b: bytes, width: int = 16) -> str:
    return " ".join(f"{x:02X}" for x in b[:width])


class SectorReader:
    """Endian-aware integer reader over one immutable buffer."""

    def __init__(self, data: bytes, little_endian: bool = True):
        self.data = data
        self.little_endian = little_endian

    def __len__(self) -> int:
        return len(self.data)

    def u8(self, off: int) -> int:
        return _unpack(self.data, off, 1, self.little_endian)

    def u16(self, off: int) -> int:
        return _unpack(self.data, off, 2, self.little_endian)

    def u32(self, off: int) -> int:
        return _unpack(self.data, off, 4, self.little_endian)

    def u64(self, off: int) -> int:
        return _unpack(self.data, off, 8, self.little_endian)

    def read(self, off: int, size: int) -> bytes:
        return take(self.data, off, size)

    def u32_array(self, off: int, size: int) -> list:
        """Decode `size` bytes at `off` as consecutive u32 values."""
        raw = self.read(off, size)
        n = len(raw) // 4
        fmt = ("<" if self.little_endian else ">") + f"{n}I"
        return list(struct.unpack_from(fmt, raw, 0))
