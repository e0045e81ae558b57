from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, List, Optional, TypeVar, Union, get_origin

from .adapters import AdapterRegistry, default_registry
from .coercion import is_native, parse_native
from .directives import FieldDirective, resolve_directives
from .errors import (
    AdapterError,
    ConfigError,
    FieldAccessError,
    MissingValueError,
    NoAdapterError,
    ValueFormatError,
)
from .source import ConfigSource

log = logging.getLogger(__name__)

DEFAULT_ENV_FILE = ".env"
REDACTED_PLACEHOLDER = "*****<REDACTED>*****"
NULL_LITERAL = "null"

T = TypeVar("T")


class Configurator:
    """Mirrors values from a :class:`ConfigSource` onto annotated fields.

    Lookups go to the env file first (case-insensitive) and then, unless
    disabled, to the process environment using the exact key.
    """

    def __init__(
        self,
        source: ConfigSource,
        registry: Optional[AdapterRegistry] = None,
        allow_system_environment_fallback: bool = True,
    ) -> None:
        self.source = source
        self.registry = registry if registry is not None else default_registry
        self.allow_system_environment_fallback = allow_system_environment_fallback

    @classmethod
    def create(cls, registry: Optional[AdapterRegistry] = None) -> "Configurator":
        """Configurator backed by ``.env`` in the current working directory."""
        return cls.from_path(DEFAULT_ENV_FILE, registry=registry)

    @classmethod
    def from_path(cls, path: Union[str, Path], registry: Optional[AdapterRegistry] = None) -> "Configurator":
        return cls(ConfigSource.load(path), registry=registry)

    def get(self, key: str) -> Optional[str]:
        value = self.source.get(key)
        if value is not None:
            return value
        if self.allow_system_environment_fallback:
            return os.environ.get(key)
        return None

    def allow_default_to_system_environment(self, allow: bool) -> "Configurator":
        self.allow_system_environment_fallback = allow
        return self

    def mirror(self, target: T) -> T:
        """Assign configured values to every annotated field of ``target``.

        ``target`` may be a class (class attributes are set) or an instance.
        The first failing field raises a :class:`ConfigError` subclass and
        stops the pass; fields set before it keep their new values.
        """
        # resolve everything first so directive errors surface before any assignment
        directives = list(resolve_directives(target))
        for directive in directives:
            if directive.ignored:
                continue
            self._mirror_field(target, directive)
        return target

    def mirror_or_exit(self, target: T) -> T:
        """Like :meth:`mirror`, but log the error and exit with status 1."""
        try:
            return self.mirror(target)
        except ConfigError as e:
            log.error("Configurator failed to mirror %s: %s", _target_name(target), e, exc_info=e.__cause__)
            sys.exit(1)

    def _mirror_field(self, target: Any, directive: FieldDirective) -> None:
        name = directive.lookup_name
        value = self.get(name)
        if value is None:
            value = directive.default
        if value is None:
            if directive.required:
                raise MissingValueError(directive.name, name)
            return

        is_null = _binds_null(directive, value)
        if is_null:
            parsed: Any = directive.container() if directive.is_array else None
            raw_values: List[str] = []
        elif directive.is_array:
            raw_values = split_array(value, directive.array_delimiter)
            parsed = directive.container(self._convert(directive, raw) for raw in raw_values)
        else:
            raw_values = [value]
            parsed = self._convert(directive, value)

        if directive.redacted:
            log_value = REDACTED_PLACEHOLDER
        elif is_null:
            log_value = NULL_LITERAL
        else:
            log_value = directive.array_delimiter.join(raw_values)
        log.debug("Setting variable %s=%s", name, log_value)

        _assign(target, directive, parsed)

    def _convert(self, directive: FieldDirective, value: str) -> Any:
        type_ = directive.value_type
        if is_native(type_):
            try:
                return parse_native(type_, value)
            except ValueError as e:
                shown = REDACTED_PLACEHOLDER if directive.redacted else repr(value)
                error = ValueFormatError(
                    f"Cannot convert {shown} to {getattr(type_, '__name__', type_)} for {directive.lookup_name}",
                    directive.name,
                    directive.lookup_name,
                )
                # the parser's message echoes the raw value
                raise error from (None if directive.redacted else e)

        adapter = self.registry.resolve(type_)
        if adapter is None and get_origin(type_) is not None:
            adapter = self.registry.resolve(get_origin(type_))
        if adapter is None:
            raise NoAdapterError(directive.name, directive.lookup_name, type_)

        try:
            return adapter(directive.lookup_name, value, self)
        except ConfigError:
            raise
        except Exception as e:
            error = AdapterError(directive.name, directive.lookup_name, e, redacted=directive.redacted)
            raise error from (None if directive.redacted else e)


def _binds_null(directive: FieldDirective, value: str) -> bool:
    """``null`` clears text, optional, sequence and adapter-typed fields.

    Other native types parse the literal like any other input, so an ``int``
    field set to ``null`` is a format error and a ``bool`` field is False.
    """
    if value != NULL_LITERAL:
        return False
    type_ = directive.value_type
    return directive.is_array or directive.optional or type_ is str or not is_native(type_)


def split_array(value: str, delimiter: str) -> List[str]:
    """Split on the literal delimiter; an empty value is an empty list."""
    if value == "":
        return []
    return value.split(delimiter)


def _assign(target: Any, directive: FieldDirective, value: Any) -> None:
    try:
        setattr(target, directive.name, value)
        return
    except (AttributeError, TypeError) as e:
        error: Exception = e

    # frozen dataclasses and similar refuse plain setattr
    if not isinstance(target, type):
        try:
            object.__setattr__(target, directive.name, value)
            return
        except (AttributeError, TypeError) as e:
            error = e

    raise FieldAccessError(
        f"Configurator failed to set field {directive.name} on {_target_name(target)}: {error}",
        directive.name,
        directive.lookup_name,
    ) from error


def _target_name(target: Any) -> str:
    cls = target if isinstance(target, type) else type(target)
    return cls.__qualname__
