import logging

import fitz  # PyMuPDF

from legacytext.core.errors import InvalidFormatError

log = logging.getLogger("pdf_extract")


def extract_text(file_bytes: bytes) -> str:
    """PDF 바이트에서 페이지별 텍스트를 추출해 줄바꿈으로 연결"""
    try:
        doc = fitz.open(stream=file_bytes, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise InvalidFormatError(f"not a readable PDF: {e}") from e

    with doc:
        pages = [page.get_text("text") or "" for page in doc]
    log.info("PDF: %d page(s)", len(pages))
    return "\n".join(pages)
