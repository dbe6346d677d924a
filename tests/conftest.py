"""
Pytest fixtures for ssh-launcher tests.

Provides:
- home: A temporary home directory that ~ expands to
- write_config: Factory writing SSH config files under tmp_path
- templates / catalog / handler: Wired-up objects for handler tests
"""
from __future__ import annotations

import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator
from unittest.mock import patch

import pytest

from ssh_launcher.events import EventCollector, EventEmitter
from ssh_launcher.handler import SSHQueryHandler
from ssh_launcher.scanner import HostCatalog
from ssh_launcher.templates import CommandTemplates


@dataclass
class RecordingLauncher:
    """TerminalLauncher that remembers the command lines it was given."""
    commands: list[str] = field(default_factory=list)

    def run_terminal(self, commandline: str) -> None:
        self.commands.append(commandline)


@pytest.fixture
def home(tmp_path: Path) -> Iterator[Path]:
    """Point home-directory lookups at a temporary directory."""
    home_dir = tmp_path / "home"
    (home_dir / ".ssh").mkdir(parents=True)
    with patch("ssh_launcher.platform.get_home_dir", return_value=home_dir):
        yield home_dir


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Write a dedented SSH config file relative to tmp_path."""
    def write(content: str, name: str = "config") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip("\n"))
        return path
    return write


@pytest.fixture
def catalog(write_config: Callable[..., Path]) -> HostCatalog:
    config = write_config("""
        Host web01 web02
            HostName 10.0.0.1
        Host db01
        Host *.internal
    """)
    return HostCatalog([config])


@pytest.fixture
def templates() -> CommandTemplates:
    return CommandTemplates()


@pytest.fixture
def launcher() -> RecordingLauncher:
    return RecordingLauncher()


@pytest.fixture
def event_collector() -> EventCollector:
    return EventCollector()


@pytest.fixture
def handler(
    catalog: HostCatalog,
    templates: CommandTemplates,
    launcher: RecordingLauncher,
    event_collector: EventCollector,
) -> Iterator[SSHQueryHandler]:
    h = SSHQueryHandler(
        catalog,
        templates,
        launcher=launcher,
        emitter=EventEmitter(event_collector),
    )
    yield h
    h.close()
