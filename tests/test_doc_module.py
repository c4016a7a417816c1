import struct

import pytest

from legacytext.core.cfb import CfbContainer
from legacytext.core.errors import (
    MalformedPieceTableError,
    MissingStreamError,
    TruncatedDataError,
)
from legacytext.modules import doc_module
from legacytext.modules.doc_module import (
    compute_last_cp,
    extract_plcpcd,
    get_table_stream_name,
    parse_plcpcd,
)

from builders import build_cfb, build_doc, build_word_streams


def test_single_ansi_piece():
    assert doc_module.extract_text(build_doc([("Hello world", False)])) == "Hello world"


def test_unicode_piece():
    assert doc_module.extract_text(build_doc([("안녕 Hi", True)])) == "안녕 Hi"


def test_mixed_pieces_concatenate_in_cp_order():
    data = build_doc([("Hello ", False), ("wörld", True), ("!", False)])
    assert doc_module.extract_text(data) == "Hello wörld!"


def test_paragraph_marks_become_newlines():
    data = build_doc([("one\rtwo\x07three\x0bfour\x01", False)])
    assert doc_module.extract_text(data) == "one\ntwo\nthree\nfour"


def test_fields_reduced_to_result():
    text = 'See \x13 HYPERLINK "http://x" \x14the link\x15 here\x13 HTMLCONTROL Forms.HTML:Text.1 \x15.'
    assert doc_module.extract_text(build_doc([(text, False)])) == "See the link here."


def test_prc_blocks_before_piece_table():
    # Prc: clxt=0x01, cbGrpprl=3, grpprl 안에 0x02 가 들어있음
    data = build_doc([("after prc", False)], clx_prefix=b"\x01\x03\x00\x02\x05\x00")
    assert doc_module.extract_text(data) == "after prc"


def test_one_table_selected_by_fib_flag():
    data = build_doc([("from 1Table", False)], table_name="1Table")
    assert doc_module.extract_text(data) == "from 1Table"


def test_table_stream_must_match_fib_flag():
    word, table = build_word_streams([("x", False)], table_name="1Table")
    data = build_cfb([("WordDocument", word), ("0Table", table)])
    with pytest.raises(MissingStreamError):
        doc_module.extract_text(data)


def test_missing_word_document_stream():
    with pytest.raises(MissingStreamError):
        doc_module.extract_text(build_cfb([("0Table", b"\x00" * 32)]))


def test_footnote_story_extends_last_cp():
    # 본문 6 + 각주 3 + 경계 1 = 10
    data = build_doc([("Body. Note", False)], ccp_ftn=3)
    assert doc_module.extract_text(data) == "Body. Note"


def test_large_word_document_uses_regular_sectors():
    data = build_doc([("big", False)], pad_to=6000)
    cfb = CfbContainer.parse(data)
    assert cfb.entries[cfb.find_stream_id("WordDocument")].size >= cfb.mini_stream_cutoff
    assert doc_module.extract(cfb) == "big"


def test_last_cp_not_in_piece_table():
    word, table = build_word_streams([("abc", False)])
    word = bytearray(word)
    struct.pack_into("<I", word, 0x4C, 99)
    data = build_cfb([("WordDocument", bytes(word)), ("0Table", table)])
    with pytest.raises(MalformedPieceTableError):
        doc_module.extract_text(data)


def test_piece_outside_word_document():
    word, table = build_word_streams([("abc", False)])
    table = bytearray(table)
    # 첫 PCD 의 fc 를 스트림 밖으로
    fc_off = 16 + 5 + 8 + 2
    struct.pack_into("<I", table, fc_off, (0x100000 * 2) | 0x40000000)
    data = build_cfb([("WordDocument", word), ("0Table", bytes(table))])
    with pytest.raises(TruncatedDataError):
        doc_module.extract_text(data)


def test_clx_outside_table_stream():
    word, table = build_word_streams([("abc", False)])
    data = build_cfb([("WordDocument", word), ("0Table", table[:20])])
    with pytest.raises(TruncatedDataError):
        doc_module.extract_text(data)


class TestFib:
    def test_table_name(self):
        word, _ = build_word_streams([("x", False)])
        assert get_table_stream_name(word) == "0Table"
        word, _ = build_word_streams([("x", False)], table_name="1Table")
        assert get_table_stream_name(word) == "1Table"

    def test_last_cp_main_story_only(self):
        word = bytearray(0x200)
        struct.pack_into("<I", word, 0x4C, 42)
        assert compute_last_cp(bytes(word)) == 42

    def test_last_cp_with_other_stories(self):
        word = bytearray(0x200)
        struct.pack_into("<8I", word, 0x4C, 10, 1, 2, 0, 0, 0, 3, 0)
        assert compute_last_cp(bytes(word)) == 10 + 6 + 1


class TestPieceTable:
    def test_extract_plcpcd_skips_false_candidates(self):
        plcpcd = b"\xAA" * 12
        clx = b"\x01\x01\x00\x02" + b"\x02" + struct.pack("<I", len(plcpcd)) + plcpcd
        assert extract_plcpcd(clx) == plcpcd

    def test_extract_plcpcd_without_marker(self):
        with pytest.raises(MalformedPieceTableError):
            extract_plcpcd(b"\x01\x00\x00")
        with pytest.raises(MalformedPieceTableError):
            extract_plcpcd(b"\x02\xFF\x00\x00\x00")

    def test_parse_pieces(self):
        plcpcd = struct.pack("<III", 0, 4, 7)
        plcpcd += struct.pack("<HIH", 0, (0x800 * 2) | 0x40000000, 0)
        plcpcd += struct.pack("<HIH", 0, 0x900, 0)
        first, second = parse_plcpcd(plcpcd, 7)
        assert (first.fc, first.byte_count, first.compressed) == (0x800, 4, True)
        assert (second.fc, second.byte_count, second.compressed) == (0x900, 6, False)
        assert (second.cp_start, second.cp_end) == (4, 7)

    def test_too_few_descriptors(self):
        plcpcd = struct.pack("<III", 0, 4, 7) + struct.pack("<HIH", 0, 0x800, 0)
        with pytest.raises(MalformedPieceTableError):
            parse_plcpcd(plcpcd, 7)

    def test_decreasing_cps(self):
        plcpcd = struct.pack("<III", 0, 9, 7) + struct.pack("<HIH", 0, 0x800, 0) * 2
        with pytest.raises(MalformedPieceTableError):
            parse_plcpcd(plcpcd, 7)
