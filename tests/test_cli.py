"""
Tests for the ssh-launcher CLI interface.

Tests the command-line interface for:
- Argument parsing
- Listing matches and hosts
- Template settings options
- --run dispatch to the launcher
- Event output with --events
"""
from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Callable
from unittest.mock import patch

import pytest

from ssh_launcher.__main__ import create_parser, main
from ssh_launcher.events import read_jsonl_events
from ssh_launcher.templates import (
    COMMANDLINE_KEY,
    DEFAULT_COMMANDLINE,
    REMOTE_COMMANDLINE_KEY,
)


@pytest.fixture
def config(write_config: Callable[..., Path]) -> Path:
    return write_config("Host web01 web02\nHost db01\n")


class TestArgumentParsing:
    """Tests for CLI argument parsing."""

    def test_defaults(self) -> None:
        args = create_parser().parse_args([])
        assert args.query == []
        assert args.triggered is False
        assert args.config_files is None
        assert args.run is False
        assert args.verbose == 0

    def test_query_words(self) -> None:
        args = create_parser().parse_args(["-t", "alice@web01", "uptime"])
        assert args.triggered is True
        assert args.query == ["alice@web01", "uptime"]

    def test_multiple_config_files(self) -> None:
        args = create_parser().parse_args(["-F", "a", "-F", "b"])
        assert args.config_files == ["a", "b"]


class TestListing:
    """Tests for result output."""

    def test_lists_matches(self, config: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["-F", str(config), "web"]) == 0
        lines = capsys.readouterr().out.splitlines()

        assert [line.split("\t")[0] for line in lines] == ["web01", "web02"]
        host, score, label, command = lines[0].split("\t")
        assert score == "0.60"
        assert label == "Connect"
        assert command.startswith("ssh -t web01 ")

    def test_json_output(self, config: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["-F", str(config), "--json", "db"]) == 0
        [line] = capsys.readouterr().out.splitlines()
        data = json.loads(line)
        assert data["id"] == "db01"
        assert data["actions"][0]["label"] == "Connect"

    def test_untriggered_script_prints_nothing(
        self, config: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["-F", str(config), "web01", "uptime"]) == 0
        assert capsys.readouterr().out == ""

    def test_triggered_script(self, config: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["-F", str(config), "-t", "alice@web01", "uptime"]) == 0
        [line] = capsys.readouterr().out.splitlines()
        assert "\tRun\tssh -t alice@web01 " in line
        assert "uptime ; exec $SHELL" in line

    def test_list_hosts(self, config: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["-F", str(config), "--list-hosts"]) == 0
        assert capsys.readouterr().out.splitlines() == ["db01", "web01", "web02"]


class TestTemplateOptions:
    """Tests for template settings options."""

    def test_show_defaults(self, config: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["-F", str(config), "--show-templates"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0] == f"{COMMANDLINE_KEY} {DEFAULT_COMMANDLINE}"
        assert out[1].startswith(f"{REMOTE_COMMANDLINE_KEY} ")

    def test_set_persists_to_settings_file(
        self, config: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        settings = tmp_path / "settings.json"
        main(["-F", str(config), "--settings", str(settings),
              "--set-commandline", "mosh %1 -- %2", "--show-templates"])
        capsys.readouterr()

        assert json.loads(settings.read_text()) == {COMMANDLINE_KEY: "mosh %1 -- %2"}

        main(["-F", str(config), "--settings", str(settings), "db01"])
        assert capsys.readouterr().out.split("\t")[3].startswith("mosh db01 -- ")

    def test_empty_value_resets(self, config: Path, tmp_path: Path,
                                capsys: pytest.CaptureFixture[str]) -> None:
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({COMMANDLINE_KEY: "mosh %1 %2"}))

        main(["-F", str(config), "--settings", str(settings),
              "--set-commandline", "", "--show-templates"])

        assert capsys.readouterr().out.splitlines()[0] == (
            f"{COMMANDLINE_KEY} {DEFAULT_COMMANDLINE}"
        )
        assert json.loads(settings.read_text()) == {}

    def test_reset_templates(self, config: Path, tmp_path: Path) -> None:
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({
            COMMANDLINE_KEY: "a %1 %2",
            REMOTE_COMMANDLINE_KEY: "b %1",
        }))
        main(["-F", str(config), "--settings", str(settings), "--reset-templates",
              "--list-hosts"])
        assert json.loads(settings.read_text()) == {}


class TestRun:
    """Tests for --run."""

    def test_run_best_match(self, config: Path) -> None:
        with patch("ssh_launcher.handler.subprocess.run") as run:
            run.return_value.returncode = 0
            assert main(["-F", str(config), "--run", "web02"]) == 0

        argv = run.call_args.args[0]
        assert argv[:2] == ["/bin/sh", "-c"]
        assert argv[2].startswith("ssh -t web02 ")

    def test_run_propagates_exit_code(self, config: Path) -> None:
        with patch("ssh_launcher.handler.subprocess.run") as run:
            run.return_value.returncode = 255
            assert main(["-F", str(config), "--run", "db01"]) == 255

    def test_run_with_terminal(self, config: Path) -> None:
        with patch("ssh_launcher.handler.subprocess.run") as run:
            run.return_value.returncode = 0
            main(["-F", str(config), "--run", "--terminal", "xterm -e", "db01"])
        assert run.call_args.args[0][:2] == ["xterm", "-e"]

    def test_run_no_match(self, config: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("ssh_launcher.handler.subprocess.run") as run:
            assert main(["-F", str(config), "--run", "nothing"]) == 1
        run.assert_not_called()
        assert "No host matches" in capsys.readouterr().err


class TestEventsOption:
    """Tests for --events."""

    def test_events_on_stderr(self, config: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["-F", str(config), "--events", "web"]) == 0
        err_lines = capsys.readouterr().err.splitlines()
        jsonl = "\n".join(line for line in err_lines if line.startswith("{"))
        events = read_jsonl_events(io.StringIO(jsonl))
        assert [e.event_type for e in events] == ["SCAN", "QUERY"]
        assert events[0].data["duration_ms"] >= 0
