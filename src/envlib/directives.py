"""Field markers and the resolver that turns annotations into directives.

Markers are attached with :data:`typing.Annotated`::

    class Settings:
        token: Annotated[str, Required(), Redacted()]
        brokers: Annotated[list[str], Array(";")]
        port: int = 8080
"""

from __future__ import annotations

import collections.abc
import types
from dataclasses import dataclass
from typing import Any, ClassVar, Iterator, List, Optional, Tuple, Union, get_args, get_origin, get_type_hints

from .errors import DirectiveError

DEFAULT_DELIMITER = ","


@dataclass(frozen=True)
class Ignore:
    pass


@dataclass(frozen=True)
class Rename:
    name: str


@dataclass(frozen=True)
class Required:
    pass


@dataclass(frozen=True)
class Array:
    delimiter: str = DEFAULT_DELIMITER


@dataclass(frozen=True)
class Redacted:
    pass


@dataclass(frozen=True)
class Default:
    value: str


_ARGLESS_MARKERS = (Ignore, Required, Array, Redacted)

_SEQUENCE_ORIGINS = {
    list: list,
    tuple: tuple,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
}

_UNION_TYPES: Tuple[Any, ...] = (Union,)
if hasattr(types, "UnionType"):
    _UNION_TYPES += (types.UnionType,)


@dataclass(frozen=True)
class FieldDirective:
    name: str
    lookup_name: str
    value_type: Any = str
    required: bool = False
    is_array: bool = False
    array_delimiter: str = DEFAULT_DELIMITER
    container: type = list
    redacted: bool = False
    ignored: bool = False
    default: Optional[str] = None
    optional: bool = False


def _split_annotated(tp: Any) -> Tuple[Any, List[Any]]:
    if hasattr(tp, "__metadata__"):
        markers = []
        for m in tp.__metadata__:
            if isinstance(m, type) and issubclass(m, _ARGLESS_MARKERS):
                m = m()
            markers.append(m)
        return tp.__origin__, markers
    return tp, []


def _unwrap_optional(tp: Any) -> Tuple[Any, bool]:
    if get_origin(tp) in _UNION_TYPES:
        args = get_args(tp)
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1 and len(rest) < len(args):
            return rest[0], True
    return tp, False


def _sequence_info(name: str, tp: Any) -> Optional[Tuple[type, Any]]:
    """Return ``(container, element_type)`` for sequence types, else None."""
    if tp in (list, tuple):
        return tp, str

    origin = get_origin(tp)
    if origin not in _SEQUENCE_ORIGINS:
        return None

    args = get_args(tp)
    if not args:
        return _SEQUENCE_ORIGINS[origin], str
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple, args[0]
        if len(set(args)) == 1:
            return tuple, args[0]
        raise DirectiveError(
            f"Field {name} is a tuple of mixed element types, which cannot be split from one value",
            name,
        )
    return _SEQUENCE_ORIGINS[origin], args[0]


def resolve_field(name: str, annotation: Any) -> FieldDirective:
    """Build the directive for a single declared field."""
    tp, markers = _split_annotated(annotation)
    tp, optional = _unwrap_optional(tp)
    # Optional[Annotated[...]] carries its markers inside the union
    tp, inner = _split_annotated(tp)
    markers += inner

    if any(isinstance(m, Ignore) for m in markers):
        return FieldDirective(name=name, lookup_name=name, value_type=tp, ignored=True)

    lookup_name = name
    required = redacted = False
    array: Optional[Array] = None
    default: Optional[str] = None
    for m in markers:
        if isinstance(m, Rename):
            lookup_name = m.name
        elif isinstance(m, Required):
            required = True
        elif isinstance(m, Redacted):
            redacted = True
        elif isinstance(m, Array):
            array = m
        elif isinstance(m, Default):
            default = m.value

    seq = _sequence_info(name, tp)
    if seq is None:
        if array is not None:
            raise DirectiveError(
                f"Field {name} is marked with Array(...) even though it's not a sequence type",
                name,
                lookup_name,
            )
        return FieldDirective(
            name=name,
            lookup_name=lookup_name,
            value_type=tp,
            required=required,
            redacted=redacted,
            default=default,
            optional=optional,
        )

    container, element_type = seq
    delimiter = array.delimiter if array is not None else DEFAULT_DELIMITER
    if not delimiter:
        raise DirectiveError(f"Field {name} has an empty array delimiter", name, lookup_name)
    return FieldDirective(
        name=name,
        lookup_name=lookup_name,
        value_type=element_type,
        required=required,
        is_array=True,
        array_delimiter=delimiter,
        container=container,
        redacted=redacted,
        default=default,
        optional=optional,
    )


def resolve_directives(target: Any) -> Iterator[FieldDirective]:
    """Yield a directive per annotated field of ``target`` in declaration order.

    ``target`` may be a class or an instance. Base-class fields come first.
    ``ClassVar`` annotations are not fields and are skipped.
    """
    cls = target if isinstance(target, type) else type(target)
    hints = get_type_hints(cls, include_extras=True)
    for name, annotation in hints.items():
        base, _ = _split_annotated(annotation)
        if base is ClassVar or get_origin(base) is ClassVar:
            continue
        yield resolve_field(name, annotation)
