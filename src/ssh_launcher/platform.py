"""
Cross-platform locations of SSH client configuration files.

Provides:
- Platform-appropriate SSH directory and config file paths
- The default scan order (system-wide config, then user config)
- Path expansion for ~ and environment variables
"""
from __future__ import annotations

import os
import sys
from pathlib import Path


def is_windows() -> bool:
    """Check if running on Windows."""
    return sys.platform == "win32"


def get_home_dir() -> Path:
    """
    Get the current user's home directory.

    Returns:
        %USERPROFILE% on Windows when set, otherwise Path.home()
    """
    if is_windows():
        userprofile = os.environ.get("USERPROFILE")
        if userprofile:
            return Path(userprofile)
    return Path.home()


def get_ssh_dir() -> Path:
    """
    Get the platform-appropriate SSH directory.

    Returns:
        ~/.ssh on Unix, %USERPROFILE%\\.ssh on Windows
    """
    return get_home_dir() / ".ssh"


def get_config_path() -> Path:
    """
    Get the per-user SSH client config file path.

    Returns:
        Path to ~/.ssh/config
    """
    return get_ssh_dir() / "config"


def get_system_config_path() -> Path:
    """
    Get the system-wide SSH client config file path.

    Returns:
        Path to system SSH config file (/etc/ssh/ssh_config on Unix)
    """
    if is_windows():
        # Windows OpenSSH uses ProgramData
        program_data = os.environ.get("ProgramData", "C:\\ProgramData")
        return Path(program_data) / "ssh" / "ssh_config"
    return Path("/etc/ssh/ssh_config")


def default_config_paths() -> list[Path]:
    """
    Config files scanned when none are given explicitly.

    Order matters only for logging; results are merged as a set.
    """
    return [get_system_config_path(), get_config_path()]


def expand_path(path: str | Path) -> Path:
    """
    Expand a path, handling ~ and environment variables.

    On Unix: expands ~ to $HOME
    On Windows: expands ~ to %USERPROFILE%, also expands %VAR% syntax

    Args:
        path: Path string or Path object to expand

    Returns:
        Expanded Path object
    """
    path_str = str(path)

    if is_windows():
        path_str = os.path.expandvars(path_str)

    if path_str == "~":
        return get_home_dir()
    if path_str.startswith(("~/", "~\\")):
        return get_home_dir() / path_str[2:]

    # ~user forms; unknown users are left unexpanded
    try:
        return Path(path_str).expanduser()
    except RuntimeError:
        return Path(path_str)
