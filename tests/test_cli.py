"""
tests/test_cli.py

Tests for argument parsing and exit codes.
"""

from datetime import datetime

import pytest

from notifier import cli


class TestParser:
    def test_run_arguments(self):
        args = cli.build_parser().parse_args(
            ["run", "--config", "c.yaml", "--at", "2026-10-17T08:00", "--evaluator", "plan.reminders", "--dry-run"]
        )
        assert args.command == "run"
        assert args.config == "c.yaml"
        assert args.at == datetime(2026, 10, 17, 8, 0)
        assert args.evaluator == "plan.reminders"
        assert args.dry_run is True

    def test_serve_defaults(self):
        args = cli.build_parser().parse_args(["serve"])
        assert args.config == cli.DEFAULT_CONFIG
        assert args.dry_run is False

    def test_bad_at_is_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["run", "--at", "tomorrow"])


class TestMain:
    def test_missing_config_exits_1(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as exc:
            cli.main(["run", "--config", str(tmp_path / "nope.yaml"), "--dry-run"])
        assert exc.value.code == 1

    def test_invalid_config_exits_1(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "bad.yaml"
        path.write_text("timezone: Mars/Olympus\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            cli.main(["run", "--config", str(path), "--dry-run"])
        assert exc.value.code == 1
