import pytest

from legacytext import extract_from_bytes, extract_from_path
from legacytext.core.errors import (
    InputTooLargeError,
    InvalidFormatError,
    IoFailureError,
    MissingStreamError,
    UnsupportedFormatError,
)
from legacytext.modules import pdf_module, zipped_xml_module
from legacytext.utils import file_reader
from legacytext.utils.file_reader import extension_of, is_supported, supported_extensions

from builders import DOCX_XML, ODT_XML, build_zip


class TestDispatch:
    def test_extension_of(self):
        assert extension_of("Report.DOC") == ".doc"
        assert extension_of("a.b.ppt") == ".ppt"
        assert extension_of("README") == ""
        assert extension_of(None) == ""

    def test_supported(self):
        assert supported_extensions() == [".doc", ".docx", ".odt", ".pdf", ".ppt"]
        assert is_supported("x.PDF")
        assert not is_supported("x.xlsx")

    def test_doc(self, doc_bytes):
        assert extract_from_bytes("memo.doc", doc_bytes) == "Hello from Word"

    def test_ppt(self, ppt_bytes):
        assert extract_from_bytes("deck.PPT", ppt_bytes) == "Hello from PowerPoint"

    def test_pdf(self, pdf_bytes):
        assert "Hello from PDF" in extract_from_bytes("paper.pdf", pdf_bytes)

    @pytest.mark.parametrize("name", ["notes.rtf", "archive.rar", "sheet.xls", "noext"])
    def test_unsupported(self, name, doc_bytes):
        with pytest.raises(UnsupportedFormatError):
            extract_from_bytes(name, doc_bytes)

    def test_size_cap(self, monkeypatch, doc_bytes):
        monkeypatch.setattr(file_reader, "MAX_INPUT_BYTES", 100)
        with pytest.raises(InputTooLargeError):
            extract_from_bytes("memo.doc", doc_bytes)

    def test_doc_extension_with_ppt_content(self, ppt_bytes):
        with pytest.raises(MissingStreamError):
            extract_from_bytes("fake.doc", ppt_bytes)


class TestPath:
    def test_read_from_disk(self, tmp_path, doc_bytes):
        p = tmp_path / "memo.doc"
        p.write_bytes(doc_bytes)
        assert extract_from_path(p) == "Hello from Word"
        assert extract_from_path(str(p)) == "Hello from Word"

    def test_missing_file(self, tmp_path):
        with pytest.raises(IoFailureError):
            extract_from_path(tmp_path / "absent.ppt")

    def test_unsupported_checked_before_reading(self, tmp_path):
        with pytest.raises(UnsupportedFormatError):
            extract_from_path(tmp_path / "absent.txt")


class TestPdf:
    def test_garbage(self):
        with pytest.raises(InvalidFormatError):
            pdf_module.extract_text(b"definitely not a pdf")

    def test_pages_joined(self, pdf_bytes):
        text = pdf_module.extract_text(pdf_bytes)
        assert text.strip() == "Hello from PDF"


class TestZippedXml:
    def test_docx(self):
        data = build_zip({"[Content_Types].xml": "<Types/>", "word/document.xml": DOCX_XML})
        assert extract_from_bytes("letter.docx", data) == "Hello from DOCX & co"

    def test_odt(self):
        data = build_zip({"mimetype": "application/vnd.oasis.opendocument.text", "content.xml": ODT_XML})
        assert extract_from_bytes("letter.ODT", data) == "Hello from ODT"

    def test_not_a_zip(self):
        with pytest.raises(InvalidFormatError):
            extract_from_bytes("letter.docx", b"PK but not really")

    def test_content_part_missing(self):
        # odt 아카이브를 docx 로 요청
        data = build_zip({"content.xml": ODT_XML})
        with pytest.raises(InvalidFormatError):
            extract_from_bytes("letter.docx", data)

    def test_broken_xml(self):
        with pytest.raises(InvalidFormatError):
            zipped_xml_module.extract_content(build_zip({"content.xml": "<a><b></a>"}), "content.xml")

    def test_xml_to_text_collapses_whitespace(self):
        assert zipped_xml_module.xml_to_text(b"<r>  a <x>b</x>\n\n c  </r>") == "a b c"
