# -*- coding: utf-8 -*-
"""ZIP + XML 문서(.docx / .odt) 텍스트 추출: 본문 XML 의 텍스트 노드를 이어붙임."""
from __future__ import annotations

import io
import logging
import re
import xml.etree.ElementTree as ET
import zipfile

from legacytext.core.errors import InvalidFormatError

log = logging.getLogger("zipped_xml_extract")

DOCX_CONTENT = "word/document.xml"
ODT_CONTENT = "content.xml"

_WS_RUN = re.compile(r"\s{2,}")


def xml_to_text(xml: bytes) -> str:
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        raise InvalidFormatError(f"content XML is not well-formed: {e}") from e
    return _WS_RUN.sub(" ", "".join(root.itertext())).strip()


def read_content(file_bytes: bytes, content_name: str) -> bytes:
    try:
        with zipfile.ZipFile(io.BytesIO(file_bytes), "r") as zipf:
            return zipf.read(content_name)
    except zipfile.BadZipFile as e:
        raise InvalidFormatError(f"not a ZIP archive: {e}") from e
    except KeyError:
        raise InvalidFormatError(f"'{content_name}' not found in archive")


def extract_content(file_bytes: bytes, content_name: str) -> str:
    text = xml_to_text(read_content(file_bytes, content_name))
    log.info("%s: extracted %d chars", content_name, len(text))
    return text


class _ContentExtractor:
    """`extract_text(bytes)` bound to one content part, for the dispatch map."""

    def __init__(self, content_name: str):
        self.content_name = content_name
        self.__name__ = f"{__name__}[{content_name}]"

    def extract_text(self, file_bytes: bytes) -> str:
        return extract_content(file_bytes, self.content_name)


docx = _ContentExtractor(DOCX_CONTENT)
odt = _ContentExtractor(ODT_CONTENT)
