"""Error types and message helpers for envlib."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ConfigError(RuntimeError):
    pass


class SourceReadError(ConfigError):
    """The config file exists but could not be read."""

    def __init__(self, path: Path, cause: Exception) -> None:
        super().__init__(f"Unable to read config file {path}: {cause}")
        self.path = path
        self.cause = cause


class FieldError(ConfigError):
    """Base for errors tied to a single field of the mirrored target."""

    def __init__(self, message: str, field: str, lookup_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field
        self.lookup_name = lookup_name or field


class MissingValueError(FieldError):
    def __init__(self, field: str, lookup_name: str) -> None:
        super().__init__(
            f"Configurator variable {lookup_name} was not provided (field {field})",
            field,
            lookup_name,
        )


class DirectiveError(FieldError):
    pass


class ValueFormatError(FieldError):
    pass


class NoAdapterError(FieldError):
    def __init__(self, field: str, lookup_name: str, value_type: object) -> None:
        type_name = getattr(value_type, "__name__", repr(value_type))
        super().__init__(
            f"No adapter registered for type {type_name} of field {field}",
            field,
            lookup_name,
        )
        self.value_type = value_type


class AdapterError(FieldError):
    def __init__(self, field: str, lookup_name: str, cause: Exception, redacted: bool = False) -> None:
        # the cause message may echo a secret value
        detail = type(cause).__name__ if redacted else str(cause)
        super().__init__(
            f"Adapter failed to convert {lookup_name} for field {field}: {detail}",
            field,
            lookup_name,
        )
        self.cause = cause


class FieldAccessError(FieldError):
    pass


def format_config_error(error: Exception) -> str:
    """Format a user-friendly message for a binding or source error."""
    error_str = str(error)

    if isinstance(error, SourceReadError):
        return (
            f"Could not read {error.path}. "
            f"Check that the file is readable and UTF-8 encoded. "
            f"Original error: {error.cause}"
        )

    if isinstance(error, MissingValueError):
        return (
            f"Required setting '{error.lookup_name}' is missing. "
            f"Add {error.lookup_name}=<value> to your env file or export it in the environment."
        )

    if isinstance(error, ValueFormatError):
        return f"Invalid value for '{error.lookup_name}': {error_str}"

    if isinstance(error, NoAdapterError):
        return (
            f"{error_str}. "
            f"Mark the field with Ignore() or register an adapter with add_adapter(...)."
        )

    if isinstance(error, (AdapterError, DirectiveError, FieldAccessError)):
        return f"Configuration error in field '{error.field}': {error_str}"

    return f"Configuration error: {error_str}"


def suggest_troubleshooting_steps(error: Exception) -> list[str]:
    """Suggest troubleshooting steps for a binding or source error."""
    suggestions = []

    if isinstance(error, SourceReadError):
        suggestions.extend([
            f"Check file permissions: ls -l {error.path}",
            "Make sure the file is saved as UTF-8",
        ])

    elif isinstance(error, MissingValueError):
        suggestions.extend([
            "List the keys the file provides: envctl list",
            f"Check whether the environment has it: envctl get {error.lookup_name}",
            "Keys in the file are case-insensitive, environment variables are not",
        ])

    elif isinstance(error, ValueFormatError):
        suggestions.extend([
            f"Show the raw value: envctl get {error.lookup_name}",
            "Numbers must be plain base-10 (no thousands separators)",
        ])

    elif isinstance(error, (NoAdapterError, AdapterError)):
        suggestions.extend([
            "Register adapters before calling mirror()",
            "Use register_builtin_adapters() for Path, Decimal and dict fields",
        ])

    elif isinstance(error, DirectiveError):
        suggestions.append("Array(...) can only be used on list, tuple or Sequence fields")

    if not suggestions:
        suggestions.append("Re-run with -v/--verbose to see each variable as it is set")

    return suggestions
