"""Word 97-2003 (.doc) text extraction over a parsed CFB container."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from legacytext.core.cfb import CfbContainer
from legacytext.core.errors import MalformedPieceTableError
from legacytext.core.sector_reader import le16, le32, take
from legacytext.modules.common import (
    decode_ansi,
    decode_utf16,
    normalize_controls,
    strip_fields,
)

log = logging.getLogger("doc_extract")

WORD_STREAM = "WordDocument"

# FIB 오프셋
FIB_FLAGS = 0x000A
FIB_WHICH_TBL_STM = 0x0200
# ccpText, ccpFtn, ccpHdd, ccpMcr, ccpAtn, ccpEdn, ccpTxbx, ccpHdrTxbx
FIB_CCP_FIELDS = (0x004C, 0x0050, 0x0054, 0x0058, 0x005C, 0x0060, 0x0064, 0x0068)
FIB_FC_CLX = 0x01A2
FIB_LCB_CLX = 0x01A6

CLX_PCDT = 0x02
PCD_SIZE = 8
FC_COMPRESSED = 0x40000000
FC_MASK = 0x3FFFFFFF


@dataclass
class Piece:
    index: int
    cp_start: int
    cp_end: int
    fc: int
    byte_count: int
    compressed: bool


# ─────────────────────────────
# FIB
# ─────────────────────────────
def get_table_stream_name(word_data: bytes) -> str:
    fib_flags = le16(word_data, FIB_FLAGS)
    return "1Table" if fib_flags & FIB_WHICH_TBL_STM else "0Table"


def compute_last_cp(word_data: bytes) -> int:
    """CP horizon: every story length, plus one boundary CP when any non-main story exists."""
    ccp_text, *others = (le32(word_data, off) for off in FIB_CCP_FIELDS)
    rest = sum(others)
    return rest + (1 if rest else 0) + ccp_text


# ─────────────────────────────
# CLX / PlcPcd
# ─────────────────────────────
def get_clx_data(word_data: bytes, table_data: bytes) -> bytes:
    fc_clx, lcb_clx = le32(word_data, FIB_FC_CLX), le32(word_data, FIB_LCB_CLX)
    return take(table_data, fc_clx, lcb_clx)


def extract_plcpcd(clx: bytes) -> bytes:
    """Find the piece table inside the CLX.

    Prc blocks of arbitrary size may precede it, so every 0x02 byte is a
    candidate: the piece table is the first one whose 4-byte length equals
    the number of CLX bytes after it.
    """
    pos = clx.find(bytes([CLX_PCDT]))
    while pos != -1:
        if pos + 5 <= len(clx) and le32(clx, pos + 1) == len(clx) - (pos + 5):
            return clx[pos + 5:]
        pos = clx.find(bytes([CLX_PCDT]), pos + 1)
    raise MalformedPieceTableError(f"no piece table found in {len(clx)}-byte CLX")


def parse_plcpcd(plcpcd: bytes, last_cp: int) -> List[Piece]:
    """CP 배열(lastCP 로 끝남) + 구간마다 8-byte PCD"""
    cps: List[int] = []
    off = 0
    while True:
        if off + 4 > len(plcpcd):
            raise MalformedPieceTableError(f"piece table has no CP equal to lastCP={last_cp}")
        cp = le32(plcpcd, off)
        cps.append(cp)
        off += 4
        if cp == last_cp:
            break

    count = len(cps) - 1
    if off + count * PCD_SIZE > len(plcpcd):
        raise MalformedPieceTableError(
            f"piece table lists {count} pieces but holds {(len(plcpcd) - off) // PCD_SIZE} descriptors"
        )

    pieces = []
    for k in range(count):
        fc_raw = le32(plcpcd, off + PCD_SIZE * k + 2)
        compressed = bool(fc_raw & FC_COMPRESSED)
        fc = fc_raw & FC_MASK
        char_count = cps[k + 1] - cps[k]
        if char_count < 0:
            raise MalformedPieceTableError(f"CP array decreases at piece {k}")
        if compressed:
            # ANSI 는 fc 가 2배로 저장되어 있음
            fc //= 2
            byte_count = char_count
        else:
            byte_count = char_count * 2
        pieces.append(Piece(k, cps[k], cps[k + 1], fc, byte_count, compressed))
    return pieces


def decode_piece(chunk: bytes, compressed: bool) -> str:
    return decode_ansi(chunk) if compressed else decode_utf16(chunk)


# ─────────────────────────────
# Word 텍스트 추출
# ─────────────────────────────
def extract(container: CfbContainer) -> str:
    word_data = container.open_stream(WORD_STREAM)
    table_name = get_table_stream_name(word_data)
    table_data = container.open_stream(table_name)

    last_cp = compute_last_cp(word_data)
    clx = get_clx_data(word_data, table_data)
    pieces = parse_plcpcd(extract_plcpcd(clx), last_cp)
    log.debug("%s: lastCP=%d, %d piece(s)", table_name, last_cp, len(pieces))

    texts = []
    for p in pieces:
        chunk = take(word_data, p.fc, p.byte_count)
        texts.append(normalize_controls(decode_piece(chunk, p.compressed), keep_field_marks=True))

    return strip_fields("".join(texts))


def extract_text(file_bytes: bytes) -> str:
    text = extract(CfbContainer.parse(file_bytes))
    log.info("DOC: extracted %d chars", len(text))
    return text
