import sys
from pathlib import Path

import pytest

# builders.py 를 테스트 모듈에서 바로 import
sys.path.insert(0, str(Path(__file__).parent))

from builders import build_doc, build_ppt, text_bytes  # noqa: E402


@pytest.fixture
def doc_bytes():
    return bytes(build_doc([("Hello from Word", False)]))


@pytest.fixture
def ppt_bytes():
    return bytes(build_ppt(text_bytes("Hello from PowerPoint")))


@pytest.fixture
def pdf_bytes():
    import fitz

    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Hello from PDF")
    data = doc.tobytes()
    doc.close()
    return data
