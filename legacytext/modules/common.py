# -*- coding: utf-8 -*-
from __future__ import annotations

import re

__all__ = [
    "FIELD_BEGIN",
    "FIELD_SEPARATOR",
    "FIELD_END",
    "normalize_controls",
    "strip_fields",
    "decode_ansi",
    "decode_utf16",
]

# Word 필드 마커: \x13 code \x14 result \x15
FIELD_BEGIN = "\x13"
FIELD_SEPARATOR = "\x14"
FIELD_END = "\x15"
_FIELD_MARKS = {FIELD_BEGIN, FIELD_SEPARATOR, FIELD_END}

# 단락/셀/줄/페이지 구분 -> 줄바꿈
_BREAKS = {"\r": "\n", "\x07": "\n", "\x0b": "\n", "\x0c": "\n"}
_KEEP = {"\t", "\n"}

ANSI_CODEPAGE = "cp1252"


def decode_ansi(raw: bytes) -> str:
    return raw.decode(ANSI_CODEPAGE, errors="ignore")


def decode_utf16(raw: bytes) -> str:
    if len(raw) % 2:
        raw = raw[:-1]
    return raw.decode("utf-16le", errors="ignore")


# ---------- 제어 문자 정리 ----------
def normalize_controls(text: str, keep_field_marks: bool = False) -> str:
    out = []
    for ch in text:
        if ch >= " ":
            out.append(ch)
        elif ch in _BREAKS:
            out.append(_BREAKS[ch])
        elif ch in _KEEP:
            out.append(ch)
        elif keep_field_marks and ch in _FIELD_MARKS:
            out.append(ch)
    return "".join(out)


# ---------- 필드 코드 제거 ----------
# 가장 안쪽 필드부터 처리 (필드는 중첩될 수 있음)
_EMBEDDED_OBJECT = re.compile(r"\x13\s*(?:INCLUDEPICTURE|HTMLCONTROL)[^\x13\x15]*\x15", re.IGNORECASE)
_FIELD_WITH_RESULT = re.compile(r"\x13[^\x13\x14\x15]*\x14([^\x13\x15]*)\x15")
_FIELD_WITHOUT_RESULT = re.compile(r"\x13[^\x13\x14\x15]*\x15")
_STRAY_MARK = re.compile(r"[\x13\x14\x15]")


def strip_fields(text: str) -> str:
    """Replace every field by its display result; picture/HTML-control fields vanish."""
    prev = None
    while prev != text:
        prev = text
        text = _EMBEDDED_OBJECT.sub("", text)
        text = _FIELD_WITH_RESULT.sub(r"\1", text)
        text = _FIELD_WITHOUT_RESULT.sub("", text)
    return _STRAY_MARK.sub("", text)
