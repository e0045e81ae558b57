from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List

import pytest

from envlib.adapters import AdapterRegistry, add_adapter, default_registry, register_builtin_adapters
from envlib.binder import Configurator
from envlib.errors import AdapterError
from envlib.source import ConfigSource


class Paths:
    data_dir: Path = Path(".")
    search: List[Path] = []


class Money:
    price: Decimal = Decimal("0")


class Mapped:
    overrides: Dict[str, Any] = {}
    extra: dict = {}


class Marker:
    pass


def make(text: str, registry: AdapterRegistry) -> Configurator:
    return Configurator(ConfigSource.parse(text), registry=registry, allow_system_environment_fallback=False)


@pytest.fixture
def builtins() -> AdapterRegistry:
    return register_builtin_adapters(AdapterRegistry())


def test_registry_register_and_resolve():
    registry = AdapterRegistry()
    assert registry.resolve(Marker) is None
    assert Marker not in registry

    def adapter(key, value, conf):
        return Marker()

    registry.register(Marker, adapter)
    assert registry.resolve(Marker) is adapter
    assert Marker in registry
    assert registry.types() == [Marker]


def test_registry_replace():
    registry = AdapterRegistry()
    first = lambda key, value, conf: 1  # noqa: E731
    second = lambda key, value, conf: 2  # noqa: E731
    registry.register(Marker, first)
    registry.register(Marker, second)
    assert registry.resolve(Marker) is second
    assert registry.types() == [Marker]


def test_add_adapter_uses_process_registry():
    class OnlyHere:
        pass

    add_adapter(OnlyHere, lambda key, value, conf: OnlyHere())
    assert OnlyHere in default_registry


def test_configurator_defaults_to_process_registry():
    conf = Configurator(ConfigSource())
    assert conf.registry is default_registry


def test_builtin_registration_targets(builtins):
    assert set(builtins.types()) == {Path, Decimal, dict}


def test_path_adapter(builtins, monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    p = make("DATA_DIR=~/data\nSEARCH=/a:/b", builtins).mirror(Paths())
    assert p.data_dir == tmp_path / "data"
    assert p.search == [Path("/a:/b")]


def test_path_array(builtins):
    p = make("SEARCH=/usr/lib,/opt/lib", builtins).mirror(Paths())
    assert p.search == [Path("/usr/lib"), Path("/opt/lib")]


def test_decimal_adapter(builtins):
    m = make("PRICE=19.99", builtins).mirror(Money())
    assert m.price == Decimal("19.99")


def test_decimal_adapter_rejects_junk(builtins):
    with pytest.raises(AdapterError) as excinfo:
        make("PRICE=cheap", builtins).mirror(Money())
    assert excinfo.value.field == "price"


def test_mapping_adapter(builtins):
    m = make("OVERRIDES={region: us-east-1, retries: 3}\nEXTRA=", builtins).mirror(Mapped())
    assert m.overrides == {"region": "us-east-1", "retries": 3}
    assert m.extra == {}


def test_mapping_adapter_rejects_scalars(builtins):
    with pytest.raises(AdapterError) as excinfo:
        make("EXTRA=[1, 2]", builtins).mirror(Mapped())
    assert isinstance(excinfo.value.cause, ValueError)


def test_mapping_adapter_rejects_bad_yaml(builtins):
    with pytest.raises(AdapterError):
        make("EXTRA={unclosed", builtins).mirror(Mapped())
