from __future__ import annotations

import threading
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import yaml

if TYPE_CHECKING:
    from .binder import Configurator

Adapter = Callable[[str, str, "Configurator"], Any]


class AdapterRegistry:
    """Maps a target type to the callable that converts raw strings into it.

    Registrations are additive; registering the same type again replaces the
    previous adapter.
    """

    def __init__(self) -> None:
        self._adapters: Dict[Any, Adapter] = {}
        self._lock = threading.Lock()

    def register(self, type_: Any, adapter: Adapter) -> None:
        with self._lock:
            self._adapters[type_] = adapter

    def resolve(self, type_: Any) -> Optional[Adapter]:
        with self._lock:
            return self._adapters.get(type_)

    def types(self) -> List[Any]:
        with self._lock:
            return list(self._adapters)

    def __contains__(self, type_: object) -> bool:
        return self.resolve(type_) is not None


default_registry = AdapterRegistry()


def add_adapter(type_: Any, adapter: Adapter) -> None:
    """Register ``adapter`` for ``type_`` on the process-wide registry."""
    default_registry.register(type_, adapter)


def _path_adapter(key: str, value: str, configurator: "Configurator") -> Path:
    return Path(value).expanduser()


def _decimal_adapter(key: str, value: str, configurator: "Configurator") -> Decimal:
    # Decimal raises InvalidOperation (an ArithmeticError) on junk input
    return Decimal(value.strip())


def _mapping_adapter(key: str, value: str, configurator: "Configurator") -> Dict[str, Any]:
    # Accepts YAML flow mappings, e.g. {region: us-east-1, retries: 3}
    data = yaml.safe_load(value) if value.strip() else {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{key} must be a mapping, got {type(data).__name__}")
    return data


def register_builtin_adapters(registry: Optional[AdapterRegistry] = None) -> AdapterRegistry:
    """Install adapters for Path, Decimal and dict onto ``registry``."""
    registry = registry if registry is not None else default_registry
    registry.register(Path, _path_adapter)
    registry.register(Decimal, _decimal_adapter)
    registry.register(dict, _mapping_adapter)
    return registry
