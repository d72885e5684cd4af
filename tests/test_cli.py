"""Tests for the command line entry point."""

from pathlib import Path

from filescape.__main__ import main, parse_args


def test_parse_args_defaults():
    args = parse_args(["/tmp"])

    assert args.path == Path("/tmp")
    assert args.max_depth == 2
    assert args.limit == 256
    assert args.strategy == "family_arms"
    assert not args.show_hidden


def test_main_prints_layout(tmp_path: Path, capsys):
    (tmp_path / "a.txt").write_text("hello")
    (tmp_path / "b.py").write_text("print(1)\n" * 20)

    code = main([str(tmp_path), "--strategy", "grid", "--search", "a."])

    out = capsys.readouterr().out
    assert code == 0
    assert "in 2 files" in out
    assert "a.txt" in out
    assert "b.py" in out


def test_main_empty_folder(tmp_path: Path, capsys):
    assert main([str(tmp_path)]) == 0
    assert "appears empty" in capsys.readouterr().out


def test_main_rejects_missing_path(tmp_path: Path, capsys):
    code = main([str(tmp_path / "missing")])

    assert code == 2
    assert "Error" in capsys.readouterr().err


def test_main_rejects_bad_scale(tmp_path: Path):
    assert main([str(tmp_path), "--gap-scale", "5"]) == 2


def test_main_reports_budget(tmp_path: Path, capsys):
    for i in range(5):
        (tmp_path / f"f{i}").write_text("x")

    assert main([str(tmp_path), "--node-limit", "2"]) == 1
    assert "node count limit" in capsys.readouterr().err
