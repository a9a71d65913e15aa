from __future__ import annotations
"""Binding of normalized value trees to record dataclasses."""
from dataclasses import Field, fields, is_dataclass
import types
from typing import Any, Type, TypeVar, Union, get_args, get_origin, get_type_hints

from .errors import BindingError
from .models import REQUIRED, WIRE_NAME

RecordT = TypeVar("RecordT")


def bind(value: Any, record_type: Type[RecordT], **extra: Any) -> RecordT:
    """Build a ``record_type`` instance from a normalized object value.

    Keys are matched against the wire tag declared by each field. Unknown
    keys are ignored and missing optional keys keep the field default.
    ``extra`` sets fields that are not read from the wire.

    Raises:
        BindingError: when a value does not have the shape the field expects.
    """

    record_name = record_type.__name__
    if not isinstance(value, dict):
        raise BindingError(
            f"{record_name} expects an object but got {_describe(value)}",
            record=record_name,
            field="",
            value=value,
        )

    hints = get_type_hints(record_type)
    kwargs: dict[str, Any] = {}
    for item in fields(record_type):
        tag = item.metadata.get(WIRE_NAME)
        if tag is None:
            continue
        raw = value.get(tag)
        if raw is None:
            if item.metadata.get(REQUIRED):
                raise BindingError(
                    f"{record_name}.{item.name} is required but <{tag}> is missing",
                    record=record_name,
                    field=item.name,
                )
            continue
        kwargs[item.name] = _bind_field(record_name, item, hints[item.name], raw)
    kwargs.update(extra)
    return record_type(**kwargs)


def _bind_field(record_name: str, item: Field, hint: Any, raw: Any) -> Any:
    target = _strip_optional(hint)

    def fail(expected: str) -> BindingError:
        return BindingError(
            f"{record_name}.{item.name} expects {expected} but got {_describe(raw)}",
            record=record_name,
            field=item.name,
            value=raw,
        )

    if get_origin(target) is tuple:
        if not isinstance(raw, list):
            raise fail("an array")
        item_type = get_args(target)[0]
        if is_dataclass(item_type):
            return tuple(bind(entry, item_type) for entry in raw)
        bound = []
        for entry in raw:
            converted = _bind_scalar(item_type, entry)
            if converted is _MISMATCH:
                raise fail(f"an array of {_type_name(item_type)}")
            bound.append(converted)
        return tuple(bound)

    if is_dataclass(target):
        if not isinstance(raw, dict):
            raise fail("an object")
        return bind(raw, target)

    converted = _bind_scalar(target, raw)
    if converted is _MISMATCH:
        raise fail(_type_name(target))
    return converted


_MISMATCH = object()


def _bind_scalar(target: Any, raw: Any) -> Any:
    if isinstance(raw, (dict, list)):
        return _MISMATCH
    candidates = _union_args(target) or (target,)
    for candidate in candidates:
        if candidate is int:
            if isinstance(raw, bool):
                continue
            if isinstance(raw, int):
                return raw
        elif isinstance(raw, candidate):
            return raw
    if int in candidates and isinstance(raw, str):
        try:
            return int(raw)
        except ValueError:
            return _MISMATCH
    return _MISMATCH


def _union_args(hint: Any) -> tuple[Any, ...]:
    if get_origin(hint) in (Union, types.UnionType):
        return get_args(hint)
    return ()


def _strip_optional(hint: Any) -> Any:
    args = _union_args(hint)
    if not args:
        return hint
    remaining = tuple(arg for arg in args if arg is not type(None))
    if len(remaining) == 1:
        return remaining[0]
    return Union[remaining]


def _type_name(hint: Any) -> str:
    args = _union_args(hint)
    if args:
        return " or ".join(_type_name(arg) for arg in args)
    return getattr(hint, "__name__", str(hint))


def _describe(value: Any) -> str:
    if value is None:
        return "nothing"
    if isinstance(value, dict):
        return "an object"
    if isinstance(value, list):
        return "an array"
    return type(value).__name__
