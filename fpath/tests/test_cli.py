from __future__ import annotations

import json
from pathlib import Path

import pytest

from fpath.cli import main


def test_main_without_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_info_reports_components(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    target = tmp_path / "report.final.csv"
    target.write_text("a,b\n", encoding="utf-8")

    assert main(["info", str(target)]) == 0
    details = json.loads(capsys.readouterr().out)
    assert details["base"] == "report.final.csv"
    assert details["stem"] == "report.final"
    assert details["ext"] == ".csv"
    assert details["size"] == 4


def test_info_missing_path(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["info", str(tmp_path / "missing")]) == 2
    assert json.loads(capsys.readouterr().out)["size"] == -1


def test_kv_prints_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "app.conf"
    config.write_text('root: /srv\nlogs: ${root}/logs\nname: "demo app"\n', encoding="utf-8")

    assert main(["kv", str(config), "--sep", ":", "--expand", "--unquote", "--json"]) == 0
    assert json.loads(capsys.readouterr().out) == {
        "root": "/srv",
        "logs": "/srv/logs",
        "name": "demo app",
    }


def test_kv_plain_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "app.env"
    config.write_text("A=1\nB=2\n", encoding="utf-8")

    assert main(["kv", str(config)]) == 0
    assert capsys.readouterr().out.splitlines() == ["A=1", "B=2"]


def test_kv_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["kv", str(tmp_path / "missing.env")]) == 2
    assert "Not a file" in capsys.readouterr().out


def test_download_existing_target_is_not_fetched(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    target = tmp_path / "cached.bin"
    target.write_bytes(b"1234")

    assert main(["download", "https://example.invalid/cached.bin", str(target)]) == 0
    assert "4 B" in capsys.readouterr().out


def test_download_invalid_url_reports_failure(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["download", "http://exa mple.com/\x00", str(tmp_path / "out.bin")]) == 1
    assert "Download failed" in capsys.readouterr().out
