"""
Prefix matching and scoring of hosts against a parsed query.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ssh_launcher.query import ParsedQuery
from ssh_launcher.templates import CommandTemplates, build_commandline

LABEL_CONNECT = "Connect"
LABEL_RUN = "Run"


@dataclass(frozen=True)
class Match:
    """
    One host matching a query.

    - host: The configured host alias
    - score: len(fragment) / len(host), in [0, 1]
    - target: "user@host" or "host", as passed to ssh
    - command: Fully rendered local command line
    - label: "Connect" without a script, "Run" with one
    """
    host: str
    score: float
    target: str
    command: str
    label: str


def target_spec(host: str, user: str | None) -> str:
    return f"{user}@{host}" if user else host


def score(fragment: str, host: str) -> float:
    """Share of the host name already typed; 1.0 for an exact match."""
    return len(fragment) / len(host)


def rank_hosts(
    hosts: Iterable[str],
    query: ParsedQuery,
    templates: CommandTemplates,
) -> list[Match]:
    """
    Match hosts by case-insensitive prefix and render their command lines.

    Results are ordered by score, highest first; equal scores are
    ordered by host name.
    """
    fragment = query.host_fragment.lower()
    script = query.script
    label = LABEL_RUN if script else LABEL_CONNECT
    commandline, remote_commandline = templates.snapshot()

    matches = []
    for host in hosts:
        if not host.lower().startswith(fragment):
            continue
        target = target_spec(host, query.user)
        matches.append(Match(
            host=host,
            score=score(query.host_fragment, host),
            target=target,
            command=build_commandline(commandline, remote_commandline, target, script),
            label=label,
        ))

    matches.sort(key=lambda m: (-m.score, m.host))
    return matches
