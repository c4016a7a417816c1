# -*- coding: utf-8 -*-
"""
PowerPoint 97-2003 (.ppt) 텍스트 추출.

탐색 경로:
  Current User -> UserEditAtom 체인 -> PersistDirectory (persist id -> offset)
  -> DocumentContainer -> SlideListWithText -> Slide -> Drawing -> Text atom
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple

from legacytext.core.cfb import CfbContainer
from legacytext.core.errors import (
    InvalidFormatError,
    MissingPersistEntryError,
)
from legacytext.core.record_parser import (
    RECORD_HEADER_SIZE,
    body,
    get_record,
    iter_records,
    matches,
    read_header,
)
from legacytext.core.sector_reader import bits, le32
from legacytext.modules.common import decode_ansi, decode_utf16, normalize_controls

log = logging.getLogger("ppt_extract")

CURRENT_USER_STREAM = "Current User"
DOCUMENT_STREAM = "PowerPoint Document"

# Current User 스트림
CU_HEADER_TOKEN = 12
CU_OFFSET_TO_CURRENT_EDIT = 16
CU_ENCRYPTED_TOKEN = 0xF3D1C4DF

# 레코드 타입
RT_DOCUMENT = 0x03E8
RT_SLIDE = 0x03EE
RT_SLIDE_PERSIST_ATOM = 0x03F3
RT_EX_OBJ_LIST = 0x0409
RT_DOCUMENT_TEXT_INFO = 0x03F2
RT_SOUND_COLLECTION = 0x07E4
RT_DRAWING_GROUP = 0x040B
RT_SLIDE_LIST_WITH_TEXT = 0x0FF0
RT_DOC_INFO_LIST = 0x07D0
RT_HEADERS_FOOTERS = 0x0FD9
RT_SLIDE_SHOW_SLIDE_INFO_ATOM = 0x03F9
RT_ROUND_TRIP_SLIDE_SYNC_INFO12 = 0x3714
RT_DRAWING = 0x040C
RT_TEXT_CHARS_ATOM = 0x0FA0
RT_TEXT_BYTES_ATOM = 0x0FA8
RT_USER_EDIT_ATOM = 0x0FF5
RT_PERSIST_DIRECTORY_ATOM = 0x1772

# SlideListWithText instance: 0 = slides, 1 = masters, 2 = notes
SLIDE_LIST_SLIDES = 0
SLIDE_LIST_MASTERS = 1

# UserEditAtom body 오프셋
UEA_OFFSET_LAST_EDIT = 8
UEA_OFFSET_PERSIST_DIRECTORY = 12
UEA_DOC_PERSIST_ID_REF = 16

# DocumentAtom 은 고정 크기(헤더 8 + 40)
DOCUMENT_ATOM_END = RECORD_HEADER_SIZE + 40
# SlideAtom 은 고정 크기(헤더 8 + 24)
SLIDE_ATOM_END = RECORD_HEADER_SIZE + 24

# DocumentContainer 에서 SlideList 앞에 올 수 있는 레코드 (type, instance)
DOCUMENT_PREAMBLE = (
    (RT_EX_OBJ_LIST, None),
    (RT_DOCUMENT_TEXT_INFO, None),
    (RT_SOUND_COLLECTION, None),
    (RT_DRAWING_GROUP, None),
    (RT_SLIDE_LIST_WITH_TEXT, SLIDE_LIST_MASTERS),
    (RT_DOC_INFO_LIST, None),
    (RT_HEADERS_FOOTERS, None),  # SlideHF
    (RT_HEADERS_FOOTERS, None),  # NotesHF
)
SLIDE_PREAMBLE = (
    RT_SLIDE_SHOW_SLIDE_INFO_ATOM,
    RT_HEADERS_FOOTERS,
    RT_ROUND_TRIP_SLIDE_SYNC_INFO12,
)

# Drawing 안의 text atom 타입 (LE): A0 0F / A8 0F
_TEXT_ATOM_MARKER = re.compile(rb"[\xA0\xA8]\x0F")


# ─────────────────────────────
# Current User / UserEditAtom / PersistDirectory
# ─────────────────────────────
def read_current_edit_offset(current_user: bytes) -> int:
    if le32(current_user, CU_HEADER_TOKEN) == CU_ENCRYPTED_TOKEN:
        raise InvalidFormatError("Current User header token marks an encrypted/unsupported presentation")
    return le32(current_user, CU_OFFSET_TO_CURRENT_EDIT)


def read_persist_directory_offsets(ppd: bytes, current_edit: int) -> Tuple[List[int], bytes]:
    """Walk UserEditAtoms from the current one back to the first edit.

    Returns the PersistDirectory offsets oldest first, and the body of the
    most recent UserEditAtom.
    """
    latest = get_record(ppd, current_edit, RT_USER_EDIT_ATOM)
    if latest is None:
        raise InvalidFormatError(f"no UserEditAtom at current edit offset {current_edit}")

    offsets: List[int] = []
    seen = {current_edit}
    atom = latest
    while True:
        offsets.insert(0, le32(atom, UEA_OFFSET_PERSIST_DIRECTORY))
        prev = le32(atom, UEA_OFFSET_LAST_EDIT)
        if prev == 0:
            break
        if prev in seen:
            log.warning("UserEditAtom chain loops back to offset %d", prev)
            break
        seen.add(prev)
        atom = get_record(ppd, prev, RT_USER_EDIT_ATOM)
        if atom is None:
            log.warning("offset %d is not a UserEditAtom, older edits ignored", prev)
            break
    return offsets, latest


def parse_persist_directory(fragment: bytes, persist: Dict[int, int]) -> None:
    k = 0
    while k < len(fragment):
        head = le32(fragment, k)
        persist_id = bits(head, 0, 20)
        count = bits(head, 20, 12)
        k += 4
        for i in range(count):
            persist[persist_id + i] = le32(fragment, k + i * 4)
        k += count * 4


def build_persist_directory(ppd: bytes, offsets: List[int]) -> Dict[int, int]:
    """persist id -> stream offset; later fragments win"""
    persist: Dict[int, int] = {}
    for off in offsets:
        fragment = get_record(ppd, off, RT_PERSIST_DIRECTORY_ATOM)
        if fragment is None:
            raise MissingPersistEntryError(f"no PersistDirectoryAtom at offset {off}")
        parse_persist_directory(fragment, persist)
    return persist


def resolve(persist: Dict[int, int], persist_id: int) -> int:
    off = persist.get(persist_id)
    if off is None:
        raise MissingPersistEntryError(f"persist id {persist_id} is not in the persist directory")
    return off


# ─────────────────────────────
# Document / Slide 탐색
# ─────────────────────────────
def skip_optional(container: bytes, offset: int, rec_type: int,
                  instance: Optional[int] = None) -> int:
    hdr = read_header(container, offset)
    if matches(hdr, rec_type, instance):
        body(container, hdr)
        return hdr.end
    return offset


def find_slide_list(document: bytes) -> Optional[bytes]:
    offset = DOCUMENT_ATOM_END
    for rec_type, instance in DOCUMENT_PREAMBLE:
        offset = skip_optional(document, offset, rec_type, instance)

    # 예상 밖의 레코드가 끼어 있으면 SlideList 가 나올 때까지 건너뜀
    for hdr in iter_records(document, offset):
        if matches(hdr, RT_SLIDE_LIST_WITH_TEXT, SLIDE_LIST_SLIDES):
            return body(document, hdr)
    return None


def decode_text_atom(rec_type: int, payload: bytes) -> str:
    if rec_type == RT_TEXT_CHARS_ATOM:
        return normalize_controls(decode_utf16(payload))
    return normalize_controls(decode_ansi(payload))


def scan_drawing(drawing: bytes) -> List[str]:
    """Text atoms embedded in a Drawing's escher data.

    The drawing is scanned as raw bytes. A marker only counts when the two
    bytes before it are zero and its declared length stays inside the drawing.
    """
    texts = []
    pos = 0
    while True:
        m = _TEXT_ATOM_MARKER.search(drawing, pos)
        if m is None:
            break
        start = m.start() - 2
        hdr = read_header(drawing, start) if start >= 0 else None
        if hdr is None or drawing[start:m.start()] != b"\x00\x00" or hdr.end > len(drawing):
            pos = m.start() + 1
            continue
        texts.append(decode_text_atom(hdr.rec_type, body(drawing, hdr)))
        pos = hdr.end
    return texts


def extract_slide_texts(slide: bytes) -> List[str]:
    offset = SLIDE_ATOM_END
    for rec_type in SLIDE_PREAMBLE:
        offset = skip_optional(slide, offset, rec_type)
    drawing = get_record(slide, offset, RT_DRAWING)
    if drawing is None:
        log.debug("slide without Drawing at offset %d", offset)
        return []
    return scan_drawing(drawing)


def extract_slide_list(slide_list: bytes, ppd: bytes, persist: Dict[int, int]) -> List[str]:
    texts: List[str] = []
    for hdr in iter_records(slide_list):
        payload = body(slide_list, hdr)
        if hdr.rec_type == RT_SLIDE_PERSIST_ATOM:
            slide_off = resolve(persist, le32(payload, 0))
            slide = get_record(ppd, slide_off, RT_SLIDE)
            if slide is None:
                log.warning("persist offset %d is not a Slide record", slide_off)
                continue
            texts.extend(extract_slide_texts(slide))
        elif hdr.rec_type in (RT_TEXT_CHARS_ATOM, RT_TEXT_BYTES_ATOM):
            texts.append(decode_text_atom(hdr.rec_type, payload))
    return texts


# ─────────────────────────────
# PowerPoint 텍스트 추출
# ─────────────────────────────
def extract(container: CfbContainer) -> str:
    current_user = container.open_stream(CURRENT_USER_STREAM)
    ppd = container.open_stream(DOCUMENT_STREAM)

    current_edit = read_current_edit_offset(current_user)
    offsets, latest_edit = read_persist_directory_offsets(ppd, current_edit)
    persist = build_persist_directory(ppd, offsets)
    log.debug("%d edit(s), %d persist entries", len(offsets), len(persist))

    doc_off = resolve(persist, le32(latest_edit, UEA_DOC_PERSIST_ID_REF))
    document = get_record(ppd, doc_off, RT_DOCUMENT)
    if document is None:
        raise MissingPersistEntryError(f"persist offset {doc_off} is not a DocumentContainer")

    slide_list = find_slide_list(document)
    if slide_list is None:
        log.info("PPT: document has no SlideList")
        return ""
    return " ".join(t for t in extract_slide_list(slide_list, ppd, persist) if t)


def extract_text(file_bytes: bytes) -> str:
    text = extract(CfbContainer.parse(file_bytes))
    log.info("PPT: extracted %d chars", len(text))
    return text
