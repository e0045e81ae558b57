"""Core library for envctl.

Loads ``KEY=VALUE`` env files and mirrors their values onto annotated
settings classes. Used by the CLI and importable on its own.
"""

from .adapters import AdapterRegistry, add_adapter, default_registry, register_builtin_adapters
from .binder import Configurator
from .coercion import Float32, Int32, Int64
from .directives import Array, Default, FieldDirective, Ignore, Redacted, Rename, Required, resolve_directives
from .errors import ConfigError
from .source import ConfigSource

__all__ = [
    "AdapterRegistry",
    "Array",
    "ConfigError",
    "ConfigSource",
    "Configurator",
    "Default",
    "FieldDirective",
    "Float32",
    "Ignore",
    "Int32",
    "Int64",
    "Redacted",
    "Rename",
    "Required",
    "add_adapter",
    "default_registry",
    "register_builtin_adapters",
    "resolve_directives",
]
