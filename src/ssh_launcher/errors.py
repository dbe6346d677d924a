"""
Error taxonomy with structured data for JSONL logging.

Normal query handling never raises: missing config files are skipped and
unusable queries produce empty results. The exceptions below cover caller
mistakes at the API seams.

Error hierarchy:
- LauncherError (base)
  - SettingsError
    - UnknownSettingError (template key not recognised)
  - ActivationError
    - UnknownActionError (result has no action with that id)
    - LauncherUnavailableError (no terminal launcher configured)
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any


@dataclass
class ErrorContext:
    """
    Structured context for launcher errors.

    Carries whatever is known at the failure site for debugging
    and JSONL event logging.
    """
    host: str | None = None
    key: str | None = None
    action: str | None = None
    path: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = {}
        for key, value in asdict(self).items():
            if value is None:
                continue
            if key == "extra":
                # Extra keys must not shadow dataclass fields
                field_names = {f.name for f in fields(self)} - {"extra"}
                collisions = field_names & value.keys()
                assert not collisions, (
                    f"Extra keys collision with dataclass field names: "
                    f"{collisions}. Use distinct key names in extra."
                )
                result.update(value)
            else:
                result[key] = value
        return result


class LauncherError(Exception):
    """
    Base exception for all ssh-launcher errors.

    All errors carry structured context for logging and debugging.
    """

    def __init__(self, message: str, context: ErrorContext | None = None) -> None:
        assert isinstance(message, str) and message.strip(), (
            f"LauncherError message must be a non-empty string, got {message!r}"
        )
        super().__init__(message)
        self.context = context or ErrorContext()

    @property
    def error_type(self) -> str:
        """Return the error type name for logging."""
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSONL logging."""
        return {
            "error_type": self.error_type,
            "message": str(self),
            **self.context.to_dict(),
        }


# ---------------------------------------------------------------------------
# Settings Errors
# ---------------------------------------------------------------------------

class SettingsError(LauncherError):
    """Base class for template settings errors."""
    pass


class UnknownSettingError(SettingsError):
    """A settings key outside the known template keys was requested."""

    def __init__(self, key: str, known: tuple[str, ...] = ()) -> None:
        context = ErrorContext(key=key)
        if known:
            context.extra["known_keys"] = list(known)
        super().__init__(f"Unknown setting: {key!r}", context)


# ---------------------------------------------------------------------------
# Activation Errors
# ---------------------------------------------------------------------------

class ActivationError(LauncherError):
    """Base class for failures activating a result action."""
    pass


class UnknownActionError(ActivationError):
    """The result item has no action with the requested id."""

    def __init__(self, host: str, action: str) -> None:
        super().__init__(
            f"Result {host!r} has no action {action!r}",
            ErrorContext(host=host, action=action),
        )


class LauncherUnavailableError(ActivationError):
    """
    No terminal launcher is configured.

    The handler only renders command lines; something else has to run them.
    """
    pass
