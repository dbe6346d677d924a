"""
Host alias discovery from SSH client config files.

Provides:
- scan_config_files: Recursive scan of config files into a set of host aliases
- HostCatalog: Immutable, sorted snapshot of the discovered hosts with rescan()

Only two keywords matter here:
- Host: every literal alias on the line is collected (wildcards are skipped)
- Include: the named file is scanned recursively (~ is expanded)

Everything else in the file (options, Match blocks, ...) is ignored.
"""
from __future__ import annotations

import logging
import os
import threading
import time
from pathlib import Path
from typing import Iterable, Iterator

from ssh_launcher.platform import default_config_paths, expand_path

logger = logging.getLogger(__name__)

# Same nesting limit OpenSSH applies to Include (READCONF_MAX_DEPTH)
MAX_INCLUDE_DEPTH = 16

GLOB_CHARS = frozenset("*?")


def is_literal_host(token: str) -> bool:
    """True if a Host token names a single host rather than a pattern."""
    return bool(token) and not (GLOB_CHARS & set(token))


def _fields(line: str) -> list[str]:
    """Split a config line into whitespace-separated fields, dropping comments."""
    fields = line.split()
    for i, token in enumerate(fields):
        if token.startswith("#"):
            return fields[:i]
    return fields


def _resolve_include(value: str) -> Path:
    if value.startswith("~"):
        return expand_path(value)
    return Path(value)


class _Scan:
    """
    State of a single scan pass: results plus the shallowest depth each
    file was read at.

    A file is read again only when reached at a shallower depth, since
    its own includes may have been cut off by the depth limit before.
    """

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self.hosts: set[str] = set()
        self.visited: dict[str, int] = {}

    def file(self, path: Path, depth: int = 0) -> None:
        if depth > self.max_depth:
            logger.warning(
                "Include depth limit (%d) reached, skipping %s", self.max_depth, path
            )
            return

        key = os.path.realpath(path)
        if self.visited.get(key, self.max_depth + 1) <= depth:
            logger.debug("Already scanned %s, skipping", path)
            return
        self.visited[key] = depth

        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                lines = f.readlines()
        except OSError as e:
            logger.debug("Cannot read SSH config %s: %s", path, e)
            return

        logger.debug("Scanning SSH config %s", path)
        for line in lines:
            fields = _fields(line)
            if len(fields) < 2:
                continue
            if fields[0] == "Host":
                self.hosts.update(f for f in fields[1:] if is_literal_host(f))
            elif fields[0] == "Include":
                self.file(_resolve_include(fields[1]), depth + 1)


def scan_config_files(
    paths: Iterable[Path | str],
    max_depth: int = MAX_INCLUDE_DEPTH,
) -> frozenset[str]:
    """
    Collect literal host aliases from SSH config files.

    Files are read in order and results merged as a set. Missing or
    unreadable files (including included ones) are skipped. A file is
    re-read only when reached at a shallower Include depth than before,
    so include cycles terminate.

    Args:
        paths: Config files to scan
        max_depth: Maximum Include nesting below a top-level file

    Returns:
        Set of host aliases, none containing '*' or '?'
    """
    assert max_depth >= 0, f"max_depth must be non-negative, got {max_depth}"

    scan = _Scan(max_depth)
    for path in paths:
        scan.file(Path(path))
    return frozenset(scan.hosts)


class HostCatalog:
    """
    Read-only snapshot of the configured SSH hosts.

    Scans once on construction. Iteration is alphabetical so that
    ranking ties resolve the same way on every platform. rescan()
    builds a new snapshot and swaps it in; readers holding the old
    tuple are unaffected.

    Usage:
        catalog = HostCatalog()                  # system + user config
        catalog = HostCatalog(["~/.ssh/work"])   # explicit files
        "web01" in catalog
    """

    def __init__(
        self,
        paths: Iterable[Path | str] | None = None,
        max_depth: int = MAX_INCLUDE_DEPTH,
    ) -> None:
        if paths is None:
            self._paths: list[Path] | None = None
        else:
            self._paths = [expand_path(p) for p in paths]
        self._max_depth = max_depth
        self._lock = threading.Lock()
        self._hosts: tuple[str, ...] = ()
        self.last_scan_ms = 0.0
        self.rescan()

    @property
    def paths(self) -> list[Path]:
        """Top-level config files this catalog scans."""
        return list(self._paths) if self._paths is not None else default_config_paths()

    @property
    def hosts(self) -> tuple[str, ...]:
        return self._hosts

    def rescan(self) -> int:
        """
        Re-read the config files and replace the snapshot.

        Returns:
            Number of hosts found
        """
        with self._lock:
            start_ms = time.time() * 1000
            found = scan_config_files(self.paths, self._max_depth)
            self._hosts = tuple(sorted(found))
            self.last_scan_ms = (time.time() * 1000) - start_ms
        logger.info("Found %d ssh hosts.", len(self._hosts))
        return len(self._hosts)

    def __len__(self) -> int:
        return len(self._hosts)

    def __iter__(self) -> Iterator[str]:
        return iter(self._hosts)

    def __contains__(self, host: object) -> bool:
        return host in self._hosts
