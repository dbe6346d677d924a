"""
Query parsing for `[user@]<host> [script]` strings.

The whole grammar is one pattern:
- optional `user@`, where user is one or more word characters
- a host fragment of word characters, dots and hyphens (may be empty),
  optionally wrapped in [ ]
- optional horizontal whitespace followed by free trailing text
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

SYNOPSIS: Final[str] = "[user@]<host> [script]"

_QUERY_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?:(\w+)@)?\[?([\w.-]*)\]?(?:[ \t]+(.*))?"
)


@dataclass(frozen=True)
class ParsedQuery:
    """
    A query split into its parts.

    trailing is None when nothing followed the host. It is "" when only
    whitespace followed; that still counts as trailing text for
    is_applicable().
    """
    user: str | None
    host_fragment: str
    trailing: str | None = None

    @property
    def has_trailing(self) -> bool:
        return self.trailing is not None

    @property
    def script(self) -> str | None:
        """Trailing text usable as a remote command, or None if blank."""
        return self.trailing or None


def parse_query(raw: str) -> ParsedQuery | None:
    """
    Parse a raw query string.

    Returns:
        ParsedQuery, or None if the string does not fit the grammar
        (e.g. it spans several lines)
    """
    match = _QUERY_PATTERN.fullmatch(raw)
    if match is None:
        return None
    user, host, trailing = match.groups()
    return ParsedQuery(user=user, host_fragment=host, trailing=trailing)


def is_applicable(query: ParsedQuery, triggered: bool) -> bool:
    """
    Decide whether a parsed query should produce results at all.

    Trailing text is only meaningful when the user explicitly invoked
    the handler and named a host. Otherwise every multi-word query would
    produce noisy partial matches.
    """
    if query.has_trailing:
        return triggered and bool(query.host_fragment)
    return True
