from legacytext.cli import main


def test_prints_text(tmp_path, capsys, ppt_bytes):
    p = tmp_path / "deck.ppt"
    p.write_bytes(ppt_bytes)
    assert main([str(p)]) == 0
    assert capsys.readouterr().out == "Hello from PowerPoint\n"


def test_writes_output_file(tmp_path, doc_bytes):
    src = tmp_path / "memo.doc"
    src.write_bytes(doc_bytes)
    out = tmp_path / "memo.txt"
    assert main([str(src), "-o", str(out)]) == 0
    assert out.read_text(encoding="utf-8") == "Hello from Word"


def test_parse_failure_exit_code(tmp_path, capsys):
    p = tmp_path / "broken.doc"
    p.write_bytes(b"\x00" * 600)
    assert main([str(p)]) == 1
    assert "InvalidFormat" in capsys.readouterr().err


def test_missing_file_exit_code(tmp_path, capsys):
    assert main([str(tmp_path / "gone.doc")]) == 1
    assert "IoFailure" in capsys.readouterr().err


def test_unsupported_exit_code(tmp_path, capsys):
    p = tmp_path / "notes.rtf"
    p.write_bytes(b"{\\rtf1}")
    assert main([str(p)]) == 2
    assert "UnsupportedFormat" in capsys.readouterr().err
