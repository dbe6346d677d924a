"""ssh-launcher: SSH host discovery and ranked connection command lines."""

__version__ = "0.1.0"

from ssh_launcher.errors import (
    ActivationError,
    ErrorContext,
    LauncherError,
    LauncherUnavailableError,
    SettingsError,
    UnknownActionError,
    UnknownSettingError,
)
from ssh_launcher.events import (
    Event,
    EventCollector,
    EventEmitter,
    EventType,
    JSONLEventWriter,
    read_jsonl_events,
)
from ssh_launcher.handler import (
    ResultAction,
    ResultItem,
    SSHQueryHandler,
    SubprocessLauncher,
    TerminalLauncher,
)
from ssh_launcher.platform import (
    default_config_paths,
    expand_path,
    get_config_path,
    get_ssh_dir,
    get_system_config_path,
    is_windows,
)
from ssh_launcher.query import SYNOPSIS, ParsedQuery, is_applicable, parse_query
from ssh_launcher.ranking import Match, rank_hosts
from ssh_launcher.scanner import MAX_INCLUDE_DEPTH, HostCatalog, scan_config_files
from ssh_launcher.templates import (
    COMMANDLINE_KEY,
    DEFAULT_COMMANDLINE,
    DEFAULT_REMOTE_COMMANDLINE,
    NOOP_COMMAND,
    REMOTE_COMMANDLINE_KEY,
    CommandTemplates,
    JSONFileBackend,
    MemoryBackend,
    SettingsBackend,
    build_commandline,
    render_template,
)

__all__ = [
    # Scanner
    "HostCatalog",
    "scan_config_files",
    "MAX_INCLUDE_DEPTH",
    # Query
    "ParsedQuery",
    "parse_query",
    "is_applicable",
    "SYNOPSIS",
    # Ranking
    "Match",
    "rank_hosts",
    # Templates
    "CommandTemplates",
    "SettingsBackend",
    "MemoryBackend",
    "JSONFileBackend",
    "render_template",
    "build_commandline",
    "COMMANDLINE_KEY",
    "REMOTE_COMMANDLINE_KEY",
    "DEFAULT_COMMANDLINE",
    "DEFAULT_REMOTE_COMMANDLINE",
    "NOOP_COMMAND",
    # Handler
    "SSHQueryHandler",
    "ResultItem",
    "ResultAction",
    "TerminalLauncher",
    "SubprocessLauncher",
    # Errors
    "LauncherError",
    "SettingsError",
    "UnknownSettingError",
    "ActivationError",
    "UnknownActionError",
    "LauncherUnavailableError",
    "ErrorContext",
    # Events
    "Event",
    "EventCollector",
    "EventEmitter",
    "EventType",
    "JSONLEventWriter",
    "read_jsonl_events",
    # Platform
    "is_windows",
    "get_ssh_dir",
    "get_config_path",
    "get_system_config_path",
    "default_config_paths",
    "expand_path",
]
