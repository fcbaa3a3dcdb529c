from __future__ import annotations

import json
import sys
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from imgopt_engine.cli import main


def _run(monkeypatch, tmp_path: Path, *argv: str) -> int:
    monkeypatch.setattr(sys, "argv", ["imgopt", *argv])
    with pytest.raises(SystemExit) as excinfo:
        main()
    return int(excinfo.value.code)


def test_parse_prints_operations(tmp_path: Path, monkeypatch, capsys) -> None:
    code = _run(monkeypatch, tmp_path, "parse", "width=300,format=webp,sharpen")
    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"width": 300, "format": "webp", "flags": ["sharpen"]}


def test_transform_writes_output(tmp_path: Path, monkeypatch, capsys) -> None:
    src = tmp_path / "in.png"
    buf = BytesIO()
    Image.new("RGB", (40, 20), (0, 0, 0)).save(buf, format="PNG")
    src.write_bytes(buf.getvalue())
    out = tmp_path / "out" / "small.jpg"

    code = _run(
        monkeypatch,
        tmp_path,
        "transform",
        "--input",
        str(src),
        "--directive",
        "width=20,format=jpeg",
        "--out",
        str(out),
        "--max-image-size",
        "1",
    )

    assert code == 0
    with Image.open(out) as img:
        assert img.format == "JPEG"
        assert img.size == (20, 10)
    printed = capsys.readouterr().out
    assert "image/jpeg" in printed
    assert "Server-Timing: img-transform;dur=" in printed
    assert "exceeds 1 bytes" in printed


def test_transform_reports_failure(tmp_path: Path, monkeypatch, capsys) -> None:
    src = tmp_path / "broken.png"
    src.write_bytes(b"nope")
    code = _run(monkeypatch, tmp_path, "transform", "--input", str(src), "--directive", "width=5", "--out", str(tmp_path / "o.png"))
    assert code == 1
    assert "Transform failed" in capsys.readouterr().err


def test_no_command_prints_help(tmp_path: Path, monkeypatch) -> None:
    assert _run(monkeypatch, tmp_path) == 1
