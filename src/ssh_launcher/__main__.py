"""
CLI interface for ssh-launcher.

Usage:
    python -m ssh_launcher web                      # List hosts starting with "web"
    python -m ssh_launcher -t alice@web01 uptime    # Triggered: script allowed
    python -m ssh_launcher --run web01              # Connect to the best match
    python -m ssh_launcher -F ./ssh_config db       # Scan only the given file
    python -m ssh_launcher --list-hosts
    python -m ssh_launcher --settings s.json --set-commandline 'kitty ssh %1 %2'
    python -m ssh_launcher --show-templates
    python -m ssh_launcher --help
"""
from __future__ import annotations

import argparse
import json
import logging
import shlex
import sys

from ssh_launcher import __version__
from ssh_launcher.events import EventEmitter, JSONLEventWriter
from ssh_launcher.handler import SSHQueryHandler, SubprocessLauncher
from ssh_launcher.platform import expand_path
from ssh_launcher.scanner import HostCatalog
from ssh_launcher.templates import (
    COMMANDLINE_KEY,
    REMOTE_COMMANDLINE_KEY,
    CommandTemplates,
    JSONFileBackend,
    MemoryBackend,
)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ssh-launcher",
        description="Find SSH hosts from your ssh config and build connection "
                    "command lines.",
        epilog="Query syntax: [user@]<host> [script]",
    )

    parser.add_argument(
        "query",
        nargs="*",
        help="Query words, joined with single spaces",
    )

    parser.add_argument(
        "-t", "--triggered",
        action="store_true",
        help="Treat the query as explicitly triggered, which allows a "
             "trailing script after the host",
    )

    parser.add_argument(
        "-F", "--config-file",
        metavar="FILE",
        action="append",
        dest="config_files",
        help="Scan this config file instead of the system and user configs. "
             "Can be specified multiple times.",
    )

    parser.add_argument(
        "--settings",
        metavar="FILE",
        help="JSON file holding template overrides (default: in memory only)",
    )

    parser.add_argument(
        "--set-commandline",
        metavar="TEMPLATE",
        help="Set the local command template (%%1 = target, %%2 = remote "
             "command). Empty resets.",
    )

    parser.add_argument(
        "--set-remote-commandline",
        metavar="TEMPLATE",
        help="Set the remote command template (%%1 = script). Empty resets.",
    )

    parser.add_argument(
        "--reset-templates",
        action="store_true",
        help="Reset both templates to their defaults",
    )

    parser.add_argument(
        "--show-templates",
        action="store_true",
        help="Print the effective templates and exit",
    )

    parser.add_argument(
        "--list-hosts",
        action="store_true",
        help="Print all discovered hosts and exit",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON lines",
    )

    parser.add_argument(
        "--run",
        action="store_true",
        help="Run the best match instead of listing results",
    )

    parser.add_argument(
        "--terminal",
        metavar="COMMAND",
        help="Terminal emulator prefix for --run, e.g. 'xterm -e'",
    )

    parser.add_argument(
        "--events",
        action="store_true",
        help="Print JSONL events to stderr",
    )

    parser.add_argument(
        "--verbose",
        action="count",
        default=0,
        help="Verbose mode (repeat for debug output)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (only errors)",
    )

    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def setup_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def build_templates(args: argparse.Namespace) -> CommandTemplates:
    if args.settings:
        backend = JSONFileBackend(expand_path(args.settings))
    else:
        backend = MemoryBackend()
    return CommandTemplates(backend)


def apply_template_options(templates: CommandTemplates, args: argparse.Namespace) -> None:
    if args.reset_templates:
        templates.reset(COMMANDLINE_KEY)
        templates.reset(REMOTE_COMMANDLINE_KEY)
    if args.set_commandline is not None:
        templates.set(COMMANDLINE_KEY, args.set_commandline)
    if args.set_remote_commandline is not None:
        templates.set(REMOTE_COMMANDLINE_KEY, args.set_remote_commandline)


def run(args: argparse.Namespace) -> int:
    """
    Execute the CLI request.

    Returns:
        Exit code
    """
    setup_logging(args.verbose, args.quiet)

    emitter = EventEmitter(JSONLEventWriter(sys.stderr)) if args.events else None

    templates = build_templates(args)
    catalog = HostCatalog(args.config_files)
    launcher = SubprocessLauncher(
        terminal=tuple(shlex.split(args.terminal)) if args.terminal else ()
    )
    handler = SSHQueryHandler(catalog, templates, launcher=launcher, emitter=emitter)

    try:
        apply_template_options(templates, args)
        return _dispatch(handler, launcher, args)
    finally:
        handler.close()


def _dispatch(
    handler: SSHQueryHandler,
    launcher: SubprocessLauncher,
    args: argparse.Namespace,
) -> int:
    if args.show_templates:
        local, remote = handler.templates.snapshot()
        print(f"{COMMANDLINE_KEY} {local}")
        print(f"{REMOTE_COMMANDLINE_KEY} {remote}")
        return 0

    if args.list_hosts:
        for host in handler.catalog:
            print(host)
        return 0

    query = " ".join(args.query)
    items = handler.handle_query(query, triggered=args.triggered)

    if args.run:
        if not items:
            print(f"No host matches {query!r}", file=sys.stderr)
            return 1
        handler.activate(items[0])
        return launcher.returncode or 0

    for item in items:
        if args.json:
            print(json.dumps(item.to_dict()))
        else:
            action = item.actions[0]
            print(f"{item.text}\t{item.score:.2f}\t{action.label}\t{action.command}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
