from __future__ import annotations
"""Encoding of request objects into query string parameters."""
from dataclasses import fields, is_dataclass
import re
from typing import Any, Mapping

_UPPERCASE = re.compile(r"([A-Z])")


def to_kebab_case(name: str) -> str:
    """Return the wire name for a request field (``maxKeys`` -> ``max-keys``)."""

    return _UPPERCASE.sub(r"-\1", name).replace("_", "-").lower()


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_parameters(request: object | None) -> dict[str, str]:
    """Map the set fields of ``request`` to wire parameter names.

    Fields holding None are left out entirely. The result keeps the field
    declaration order of dataclasses (or the insertion order of mappings).
    """

    if request is None:
        return {}
    if isinstance(request, Mapping):
        items = list(request.items())
    elif is_dataclass(request) and not isinstance(request, type):
        items = [(item.name, getattr(request, item.name)) for item in fields(request)]
    else:
        raise TypeError(f"Cannot encode parameters from {type(request).__name__}")

    return {
        to_kebab_case(name): _stringify(value)
        for name, value in items
        if value is not None
    }
