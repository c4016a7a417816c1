from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Union

from fastapi import HTTPException, UploadFile

from legacytext.core.errors import (
    InputTooLargeError,
    IoFailureError,
    UnsupportedFormatError,
)
from legacytext.modules import doc_module, pdf_module, ppt_module, zipped_xml_module

log = logging.getLogger("file_reader")

# 입력 크기 상한 (bytes)
MAX_INPUT_BYTES = int(os.getenv("LEGACYTEXT_MAX_BYTES", str(64 * 1024 * 1024)))

# 각 모듈은 반드시 extract_text(bytes) -> str 를 제공해야 함
MODULE_MAP = {
    ".doc": doc_module,
    ".ppt": ppt_module,
    ".pdf": pdf_module,
    ".docx": zipped_xml_module.docx,
    ".odt": zipped_xml_module.odt,
}


def extension_of(filename: str) -> str:
    filename = (filename or "").lower()
    return "." + filename.rsplit(".", 1)[-1] if "." in filename else ""


def is_supported(filename: str) -> bool:
    return extension_of(filename) in MODULE_MAP


def supported_extensions() -> List[str]:
    return sorted(MODULE_MAP)


def extract_from_bytes(filename: str, data: bytes) -> str:
    ext = extension_of(filename)
    mod = MODULE_MAP.get(ext)
    if not mod:
        raise UnsupportedFormatError(f"unsupported extension: {ext or '<none>'}")
    if len(data) > MAX_INPUT_BYTES:
        raise InputTooLargeError(f"{len(data)} bytes exceeds the {MAX_INPUT_BYTES}-byte limit")
    log.debug("%s -> %s (%d bytes)", filename, mod.__name__, len(data))
    return mod.extract_text(data)


def extract_from_path(path: Union[str, Path]) -> str:
    path = Path(path)
    if not is_supported(path.name):
        raise UnsupportedFormatError(f"unsupported extension: {extension_of(path.name) or '<none>'}")
    try:
        data = path.read_bytes()
    except OSError as e:
        raise IoFailureError(f"cannot read {path}: {e}") from e
    return extract_from_bytes(path.name, data)


async def extract_from_file(file: UploadFile) -> dict:
    filename = file.filename or ""
    ext = extension_of(filename)
    if ext not in MODULE_MAP:
        raise HTTPException(415, f"지원하지 않는 확장자: {ext or '<none>'}")
    file_bytes = await file.read()
    try:
        text = extract_from_bytes(filename, file_bytes)
    except InputTooLargeError as e:
        raise HTTPException(413, e.detail)
    return {"file_name": filename, "file_type": ext.lstrip("."), "text": text, "length": len(text)}
