"""
Command line templates and their settings store.

Provides:
- render_template: Positional %1/%2 substitution
- CommandTemplates: The local and remote templates, with get/set/reset,
  change notification and persistence through a SettingsBackend
- MemoryBackend / JSONFileBackend: Settings persistence

Two templates combine into the final command line:

    remote = render_template(remote_commandline, [script])
    final  = render_template(commandline, [target, remote])

With the defaults, connecting to web01 gives:

    ssh -t web01 '$SHELL -i -c "true ; exec $SHELL" || true' || exec $SHELL
"""
from __future__ import annotations

import json
import logging
import os
import re
import threading
from pathlib import Path
from typing import Callable, Final, Protocol, Sequence

from ssh_launcher.errors import UnknownSettingError

logger = logging.getLogger(__name__)

COMMANDLINE_KEY: Final[str] = "ssh_commandline"
REMOTE_COMMANDLINE_KEY: Final[str] = "ssh_remote_commandline"

# -t: no TUI without a pty.
# || exec $SHELL: keeps the terminal open so ssh errors stay readable.
DEFAULT_COMMANDLINE: Final[str] = "ssh -t %1 %2 || exec $SHELL"

# Quoted so $SHELL expands on the remote side. `$SHELL -i -c` because
# `cmd ; exec $SHELL -i` alone does not give an interactive shell.
# || true keeps the remote exit status away from the local shell.
DEFAULT_REMOTE_COMMANDLINE: Final[str] = "'$SHELL -i -c \"%1 ; exec $SHELL\" || true'"

# Remote command used when the query has no script: succeed, do nothing.
NOOP_COMMAND: Final[str] = "true"

DEFAULTS: Final[dict[str, str]] = {
    COMMANDLINE_KEY: DEFAULT_COMMANDLINE,
    REMOTE_COMMANDLINE_KEY: DEFAULT_REMOTE_COMMANDLINE,
}

_PLACEHOLDER: Final[re.Pattern[str]] = re.compile(r"%(\d+)")


def render_template(template: str, args: Sequence[str]) -> str:
    """
    Substitute positional placeholders in one pass.

    %1 becomes args[0], %2 becomes args[1], and so on. Placeholders with no
    matching argument are left as written, and substituted text is not
    scanned again, so an argument containing "%2" stays literal.
    """
    def replace(match: re.Match[str]) -> str:
        index = int(match.group(1))
        if 1 <= index <= len(args):
            return args[index - 1]
        return match.group(0)

    return _PLACEHOLDER.sub(replace, template)


def build_commandline(
    commandline: str,
    remote_commandline: str,
    target: str,
    script: str | None = None,
) -> str:
    """
    Render the full local command line for a target.

    Args:
        commandline: Local (outer) template; %1 = target, %2 = remote command
        remote_commandline: Remote (inner) template; %1 = script
        target: "host" or "user@host"
        script: Command to run before the interactive shell; None connects only
    """
    remote = render_template(remote_commandline, [script or NOOP_COMMAND])
    return render_template(commandline, [target, remote])


# ---------------------------------------------------------------------------
# Settings backends
# ---------------------------------------------------------------------------

class SettingsBackend(Protocol):
    """Key-value persistence for template overrides."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryBackend:
    """Non-persistent backend; the default."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class JSONFileBackend:
    """
    Stores overrides as a flat JSON object.

    A missing file reads as empty. A file that is not a JSON object is
    logged and treated as empty; it is overwritten on the next change.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._values = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self._path, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", self._path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._values, f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp, self._path)

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._save()


# ---------------------------------------------------------------------------
# Template store
# ---------------------------------------------------------------------------

ChangeListener = Callable[[str, str], None]


class CommandTemplates:
    """
    The local and remote command line templates.

    Values are read lazily from the backend on first use and fall back
    to the built-in defaults. Setting an empty string resets a template.
    Listeners are called with (key, new_value) after every effective
    change, outside the lock.

    Usage:
        templates = CommandTemplates(JSONFileBackend("~/.config/x.json"))
        templates.commandline = "kitty ssh %1 %2"
        local, remote = templates.snapshot()
    """

    def __init__(self, backend: SettingsBackend | None = None) -> None:
        self._backend: SettingsBackend = backend if backend is not None else MemoryBackend()
        self._lock = threading.Lock()
        self._values: dict[str, str] | None = None
        self._listeners: list[ChangeListener] = []

    @staticmethod
    def keys() -> tuple[str, ...]:
        return tuple(DEFAULTS)

    @staticmethod
    def defaults() -> dict[str, str]:
        return dict(DEFAULTS)

    def _check_key(self, key: str) -> None:
        if key not in DEFAULTS:
            raise UnknownSettingError(key, self.keys())

    def _loaded(self) -> dict[str, str]:
        # Caller holds the lock
        if self._values is None:
            self._values = {
                key: self._backend.get(key) or default
                for key, default in DEFAULTS.items()
            }
        return self._values

    def get(self, key: str) -> str:
        self._check_key(key)
        with self._lock:
            return self._loaded()[key]

    def set(self, key: str, value: str) -> bool:
        """
        Set a template; an empty value resets it to the default.

        Returns:
            True if the effective value changed
        """
        self._check_key(key)
        if not value:
            return self.reset(key)

        with self._lock:
            values = self._loaded()
            if values[key] == value:
                return False
            # Backend first: a failed write leaves the live value untouched
            self._backend.set(key, value)
            values[key] = value

        logger.debug("Template %s set to %r", key, value)
        self._notify(key, value)
        return True

    def reset(self, key: str) -> bool:
        """
        Restore a template to its built-in default and drop the stored override.

        Returns:
            True if the effective value changed
        """
        self._check_key(key)
        default = DEFAULTS[key]
        with self._lock:
            values = self._loaded()
            changed = values[key] != default
            self._backend.remove(key)
            values[key] = default

        if changed:
            logger.debug("Template %s reset to default", key)
            self._notify(key, default)
        return changed

    def snapshot(self) -> tuple[str, str]:
        """Return (commandline, remote_commandline) read under one lock."""
        with self._lock:
            values = self._loaded()
            return values[COMMANDLINE_KEY], values[REMOTE_COMMANDLINE_KEY]

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            A callable that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str, value: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(key, value)

    @property
    def commandline(self) -> str:
        return self.get(COMMANDLINE_KEY)

    @commandline.setter
    def commandline(self, value: str) -> None:
        self.set(COMMANDLINE_KEY, value)

    @property
    def remote_commandline(self) -> str:
        return self.get(REMOTE_COMMANDLINE_KEY)

    @remote_commandline.setter
    def remote_commandline(self, value: str) -> None:
        self.set(REMOTE_COMMANDLINE_KEY, value)
