from __future__ import annotations

from typing import Annotated, ClassVar, List, Optional, Sequence, Tuple

import pytest

from envlib.directives import Array, Default, Ignore, Redacted, Rename, Required, resolve_directives
from envlib.errors import DirectiveError


class BaseSettings:
    log_level: str = "info"


class AppSettings(BaseSettings):
    token: Annotated[str, Required(), Redacted(), Rename("APP_TOKEN")] = ""
    brokers: Annotated[List[str], Array(";")] = []
    ports: Tuple[int, ...] = ()
    retries: Optional[int] = None
    region: Annotated[str, Default("eu-west-1")] = ""
    legacy: Annotated[int, Ignore(), Array(";")] = 0
    instances: ClassVar[int] = 0


class BareMarkers:
    secret: Annotated[str, Required, Redacted] = ""
    hosts: Annotated[Sequence[str], Array] = ()


class OptionalWrapped:
    token: Optional[Annotated[str, Required(), Redacted(), Rename("APP_TOKEN")]] = None
    hosts: Optional[Annotated[List[str], Array(";")]] = None
    legacy: Optional[Annotated[int, Ignore()]] = None


class MixedTuple:
    pair: Tuple[str, int] = ("a", 1)


class ArrayOnScalar:
    first: str = ""
    count: Annotated[int, Array(",")] = 0


class EmptyDelimiter:
    items: Annotated[List[str], Array("")] = []


def by_name(target):
    return {d.name: d for d in resolve_directives(target)}


def test_declaration_order_with_base_fields_first():
    names = [d.name for d in resolve_directives(AppSettings)]
    assert names == ["log_level", "token", "brokers", "ports", "retries", "region", "legacy"]


def test_instance_and_class_resolve_the_same():
    assert list(resolve_directives(AppSettings())) == list(resolve_directives(AppSettings))


def test_plain_field_defaults():
    d = by_name(AppSettings)["log_level"]
    assert d.lookup_name == "log_level"
    assert d.value_type is str
    assert not (d.required or d.redacted or d.is_array or d.ignored)
    assert d.array_delimiter == ","
    assert d.default is None


def test_markers_are_applied():
    d = by_name(AppSettings)["token"]
    assert d.lookup_name == "APP_TOKEN"
    assert d.required and d.redacted
    assert not d.is_array


def test_array_fields():
    fields = by_name(AppSettings)
    brokers = fields["brokers"]
    assert brokers.is_array
    assert brokers.array_delimiter == ";"
    assert brokers.value_type is str
    assert brokers.container is list

    ports = fields["ports"]
    assert ports.is_array
    assert ports.array_delimiter == ","
    assert ports.value_type is int
    assert ports.container is tuple


def test_optional_is_unwrapped():
    d = by_name(AppSettings)["retries"]
    assert d.value_type is int
    assert d.optional


def test_default_marker():
    assert by_name(AppSettings)["region"].default == "eu-west-1"


def test_ignore_short_circuits_validation():
    d = by_name(AppSettings)["legacy"]
    assert d.ignored
    assert not d.is_array


def test_markers_inside_optional():
    fields = by_name(OptionalWrapped)
    token = fields["token"]
    assert token.lookup_name == "APP_TOKEN"
    assert token.required and token.redacted and token.optional
    assert token.value_type is str

    hosts = fields["hosts"]
    assert hosts.is_array and hosts.optional
    assert hosts.array_delimiter == ";"
    assert hosts.value_type is str

    assert fields["legacy"].ignored


def test_classvar_is_not_a_field():
    assert "instances" not in by_name(AppSettings)


def test_marker_classes_without_parentheses():
    fields = by_name(BareMarkers)
    assert fields["secret"].required and fields["secret"].redacted
    assert fields["hosts"].is_array
    assert fields["hosts"].container is list


def test_array_on_non_sequence_is_rejected():
    with pytest.raises(DirectiveError) as excinfo:
        list(resolve_directives(ArrayOnScalar))
    assert excinfo.value.field == "count"


def test_mixed_tuple_is_rejected():
    with pytest.raises(DirectiveError):
        list(resolve_directives(MixedTuple))


def test_empty_delimiter_is_rejected():
    with pytest.raises(DirectiveError):
        list(resolve_directives(EmptyDelimiter))
