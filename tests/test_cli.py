from __future__ import annotations

import json

from split_planner.cli import main


def test_cli_emits_json_plan(tmp_path, capsys):
    (tmp_path / "part-0.bin").write_bytes(b"x" * 21)
    (tmp_path / "part-1.bin").write_bytes(b"")
    (tmp_path / "_SUCCESS").write_bytes(b"")

    exit_code = main([str(tmp_path), "--block-size", "10", "--hostname", "worker-7", "--json"])
    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["files_processed"] == 2
    lengths = [(split["file"].rsplit("/", 1)[-1], split["length"]) for split in payload["splits"]]
    assert lengths == [("part-0.bin", 10), ("part-0.bin", 11), ("part-1.bin", 0)]
    assert payload["splits"][0]["hosts"] == ["worker-7"]


def test_cli_reports_missing_inputs(tmp_path, capsys):
    exit_code = main([str(tmp_path / "nothing-here"), str(tmp_path / "*.gz")])
    assert exit_code == 1


def test_cli_text_output(tmp_path, capsys):
    (tmp_path / "data.txt").write_bytes(b"abc")
    assert main([str(tmp_path / "*.txt")]) == 0
    out = capsys.readouterr().out
    assert "Files processed: 1" in out
    assert "data.txt [0, +3) hosts: localhost" in out


def test_cli_rejects_invalid_filter(tmp_path, caplog):
    (tmp_path / "data.txt").write_bytes(b"abc")
    assert main([str(tmp_path), "--filter", "("]) == 1
    assert "Invalid input path filter" in caplog.text
