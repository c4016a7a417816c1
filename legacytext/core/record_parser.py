# -*- coding: utf-8 -*-
"""PowerPoint binary record header helpers (8-byte header + body)."""
from __future__ import annotations

from typing import Iterator, NamedTuple, Optional

from .errors import TruncatedDataError
from .sector_reader import bits, le16, le32

RECORD_HEADER_SIZE = 8
REC_VER_BITS = (0, 4)
REC_INSTANCE_BITS = (4, 12)


class RecordHeader(NamedTuple):
    offset: int
    ver: int
    instance: int
    rec_type: int
    length: int

    @property
    def body_offset(self) -> int:
        return self.offset + RECORD_HEADER_SIZE

    @property
    def end(self) -> int:
        return self.offset + RECORD_HEADER_SIZE + self.length


def read_header(raw: bytes, off: int) -> Optional[RecordHeader]:
    """Header at `off`, or None when fewer than 8 bytes remain."""
    if off < 0 or off + RECORD_HEADER_SIZE > len(raw):
        return None
    ver_inst = le16(raw, off)
    return RecordHeader(
        offset=off,
        ver=bits(ver_inst, *REC_VER_BITS),
        instance=bits(ver_inst, *REC_INSTANCE_BITS),
        rec_type=le16(raw, off + 2),
        length=le32(raw, off + 4),
    )


def matches(hdr: Optional[RecordHeader], rec_type: Optional[int],
            instance: Optional[int] = None) -> bool:
    if hdr is None:
        return False
    if rec_type is not None and hdr.rec_type != rec_type:
        return False
    return instance is None or hdr.instance == instance


def ensure_fits(raw: bytes, hdr: RecordHeader) -> None:
    if hdr.end > len(raw):
        raise TruncatedDataError(
            f"record 0x{hdr.rec_type:04X} at {hdr.offset} declares {hdr.length} bytes, "
            f"only {len(raw) - hdr.body_offset} remain"
        )


def body(raw: bytes, hdr: RecordHeader) -> bytes:
    ensure_fits(raw, hdr)
    return raw[hdr.body_offset:hdr.end]


def get_record(raw: bytes, off: int, rec_type: Optional[int] = None,
               instance: Optional[int] = None) -> Optional[bytes]:
    """Body of the record at `off` if its type (and instance) match, else None.

    A matching header whose length runs past `raw` raises TruncatedDataError.
    """
    hdr = read_header(raw, off)
    if not matches(hdr, rec_type, instance):
        return None
    return body(raw, hdr)


def iter_records(raw: bytes, off: int = 0) -> Iterator[RecordHeader]:
    """Walk sibling records from `off` to the end of `raw`."""
    while off < len(raw):
        hdr = read_header(raw, off)
        if hdr is None:
            raise TruncatedDataError(f"{len(raw) - off} trailing bytes at {off} are not a record")
        ensure_fits(raw, hdr)
        yield hdr
        off = hdr.end
