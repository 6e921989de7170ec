from pathlib import Path

import pytest

from PasteMark.cli import main


def test_cli_writes_standalone_page(tmp_path: Path):
    source = tmp_path / "paste.md"
    source.write_text("---\ntitle: My paste\n---\n\n# Hello\n\n```python\nx = 1\n```\n", encoding="utf-8")
    main([str(source)])
    output = tmp_path / "paste.html"
    html = output.read_text(encoding="utf-8")
    assert html.startswith("<!DOCTYPE html>")
    assert "<title>My paste</title>" in html
    assert ".highlight" in html
    assert 'id="hello"' in html


def test_cli_output_directory_and_config(tmp_path: Path):
    source = tmp_path / "notes.md"
    source.write_text("<u>raw</u>", encoding="utf-8")
    config = tmp_path / "config.yaml"
    config.write_text("allow_html: true\n", encoding="utf-8")
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    main([str(source), "-o", str(out_dir), "--config", str(config)])
    html = (out_dir / "notes.html").read_text(encoding="utf-8")
    assert '<u class="underline">raw</u>' in html


def test_cli_missing_input(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        main([str(tmp_path / "missing.md")])
