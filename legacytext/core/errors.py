# -*- coding: utf-8 -*-
"""
추출 파이프라인 공용 예외.

ParseError 하위 클래스는 `kind` 로 실패 종류를 구분한다 (API 응답/CLI 출력에 그대로 노출).
"""
from __future__ import annotations


class ExtractionError(Exception):
    """Base class for everything the extraction facade raises."""

    kind = "ExtractionError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.detail = message or self.kind


# ---------- 파싱 실패 ----------
class ParseError(ExtractionError):
    kind = "ParseError"


class InvalidFormatError(ParseError):
    kind = "InvalidFormat"


class MissingStreamError(ParseError):
    kind = "MissingStream"


class MissingRootEntryError(ParseError):
    kind = "MissingRootEntry"


class MissingPersistEntryError(ParseError):
    kind = "MissingPersistEntry"


class MalformedPieceTableError(ParseError):
    kind = "MalformedPieceTable"


class TruncatedDataError(ParseError):
    kind = "TruncatedData"


class IoFailureError(ParseError):
    kind = "IoFailure"


# ---------- 파사드 ----------
class UnsupportedFormatError(ExtractionError):
    kind = "UnsupportedFormat"


class InputTooLargeError(ExtractionError):
    kind = "InputTooLarge"
