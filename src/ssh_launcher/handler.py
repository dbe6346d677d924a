"""
Query handler tying the catalog, parser, ranker and templates together.

Provides:
- SSHQueryHandler: query string in, ranked ResultItems out
- ResultItem / ResultAction: the records handed to a presentation layer
- TerminalLauncher: protocol for whatever runs the chosen command line
- SubprocessLauncher: a TerminalLauncher that runs the command via the shell

Usage:
    handler = SSHQueryHandler(HostCatalog(), CommandTemplates(),
                              launcher=SubprocessLauncher())
    items = handler.handle_query("alice@web01 uptime", triggered=True)
    handler.activate(items[0])
"""
from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from ssh_launcher.errors import (
    LauncherUnavailableError,
    UnknownActionError,
)
from ssh_launcher.events import EventEmitter, EventType
from ssh_launcher.query import SYNOPSIS, is_applicable, parse_query
from ssh_launcher.ranking import Match, rank_hosts
from ssh_launcher.scanner import HostCatalog
from ssh_launcher.templates import CommandTemplates

logger = logging.getLogger(__name__)

ACTION_ID = "c"
ICON = "ssh"
SUBTEXT = "SSH host"


class TerminalLauncher(Protocol):
    """Runs a fully rendered command line in an interactive terminal."""

    def run_terminal(self, commandline: str) -> None: ...


@dataclass(frozen=True)
class ResultAction:
    id: str
    label: str
    command: str


@dataclass(frozen=True)
class ResultItem:
    """
    One ranked result.

    completion is empty: completing to a host name would drop the
    user@ prefix and any script already typed.
    """
    id: str
    text: str
    subtext: str
    icon: str
    actions: tuple[ResultAction, ...]
    score: float
    completion: str = ""

    def action(self, action_id: str = ACTION_ID) -> ResultAction:
        for action in self.actions:
            if action.id == action_id:
                return action
        raise UnknownActionError(self.id, action_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "subtext": self.subtext,
            "icon": self.icon,
            "completion": self.completion,
            "score": self.score,
            "actions": [
                {"id": a.id, "label": a.label, "command": a.command}
                for a in self.actions
            ],
        }

    @classmethod
    def from_match(cls, match: Match) -> "ResultItem":
        return cls(
            id=match.host,
            text=match.host,
            subtext=SUBTEXT,
            icon=ICON,
            actions=(ResultAction(ACTION_ID, match.label, match.command),),
            score=match.score,
        )


@dataclass
class SubprocessLauncher:
    """
    Run command lines through /bin/sh with subprocess.

    - terminal: Optional terminal emulator prefix, e.g. ["xterm", "-e"].
      Without it the command runs in the current terminal.

    returncode holds the exit status of the last command run.
    """
    terminal: Sequence[str] = field(default_factory=tuple)
    returncode: int | None = None

    def argv(self, commandline: str) -> list[str]:
        return [*self.terminal, "/bin/sh", "-c", commandline]

    def run_terminal(self, commandline: str) -> None:
        argv = self.argv(commandline)
        logger.debug("Running %s", shlex.join(argv))
        # $SHELL must be set for the default templates' fallback shell
        env = dict(os.environ)
        env.setdefault("SHELL", "/bin/sh")
        self.returncode = subprocess.run(argv, env=env).returncode


class SSHQueryHandler:
    """
    Answers `[user@]<host> [script]` queries against a host catalog.

    Queries never raise: anything unparseable or not applicable in the
    current context yields an empty list.
    """

    synopsis = SYNOPSIS
    default_trigger = "ssh "
    allow_trigger_remap = False

    def __init__(
        self,
        catalog: HostCatalog,
        templates: CommandTemplates | None = None,
        launcher: TerminalLauncher | None = None,
        emitter: EventEmitter | None = None,
    ) -> None:
        self.catalog = catalog
        self.templates = templates if templates is not None else CommandTemplates()
        self.launcher = launcher
        self._emitter = emitter
        self._unsubscribe = self.templates.subscribe(self._on_template_change)

        if self._emitter:
            # The catalog scanned on construction; report that scan
            self._emitter.emit(
                EventType.SCAN,
                host_count=len(self.catalog),
                duration_ms=self.catalog.last_scan_ms,
            )

    def close(self) -> None:
        """Detach from the template store."""
        self._unsubscribe()

    def rescan(self) -> int:
        """Re-read the SSH config files. Returns the new host count."""
        if not self._emitter:
            return self.catalog.rescan()
        with self._emitter.timed_event(EventType.SCAN) as data:
            data["host_count"] = self.catalog.rescan()
        return data["host_count"]

    def rank(self, query: str, triggered: bool = False) -> list[Match]:
        parsed = parse_query(query)
        if parsed is None:
            logger.debug("Unparseable query %r", query)
            return []
        if not is_applicable(parsed, triggered):
            return []
        return rank_hosts(self.catalog.hosts, parsed, self.templates)

    def handle_query(self, query: str, triggered: bool = False) -> list[ResultItem]:
        """
        Rank hosts for a query.

        Args:
            query: Raw query text, without the trigger
            triggered: True if the handler was invoked explicitly, which
                is required for trailing script text to be accepted

        Returns:
            Result items, best match first
        """
        if not self._emitter:
            return [ResultItem.from_match(m) for m in self.rank(query, triggered)]

        with self._emitter.timed_event(
            EventType.QUERY, query=query, triggered=triggered
        ) as data:
            items = [ResultItem.from_match(m) for m in self.rank(query, triggered)]
            data["match_count"] = len(items)
        return items

    def activate(self, item: ResultItem, action_id: str = ACTION_ID) -> None:
        """
        Hand a result's command line to the terminal launcher.

        Raises:
            UnknownActionError: item has no action with that id
            LauncherUnavailableError: no launcher configured
        """
        try:
            action = item.action(action_id)
            if self.launcher is None:
                raise LauncherUnavailableError("No terminal launcher configured")
        except (UnknownActionError, LauncherUnavailableError) as e:
            if self._emitter:
                self._emitter.emit(EventType.ERROR, **e.to_dict())
            raise

        logger.info("%s %s", action.label, item.id)
        if self._emitter:
            self._emitter.emit(EventType.LAUNCH, host=item.id, action=action.id)
        self.launcher.run_terminal(action.command)

    def _on_template_change(self, key: str, value: str) -> None:
        if self._emitter:
            self._emitter.emit(
                EventType.SETTINGS,
                key=key,
                reset=value == self.templates.defaults()[key],
            )
