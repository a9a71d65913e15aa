from __future__ import annotations
"""Normalization of S3 XML replies into plain value trees.

The service does not say whether an element holds one nested object or a
repeated collection, nor which text is a date. Both are decided from the tag
name through a field kind table. A tag missing from the table is a nested
object when it has child elements, ``None`` when it is empty, and a string
(or a boolean for the exact texts ``true``/``false``) when it holds text.

Repeated elements with a tag that is not marked as a collection overwrite
each other, so only the last one is kept. New collection-shaped fields have to
be added to the table.
"""
from datetime import datetime
import enum
import logging
from typing import Mapping, Optional, Union
from xml.etree.ElementTree import Element

from botocore.utils import parse_timestamp

from .errors import NormalizationError

LOGGER = logging.getLogger(__name__)

Value = Union[None, str, bool, datetime, dict[str, "Value"], list["Value"]]


class FieldKind(enum.Enum):
    """How the text or children of a tag are interpreted."""

    TIMESTAMP = "timestamp"
    COLLECTION = "collection"
    STRING = "string"


DEFAULT_FIELD_KINDS: Mapping[str, FieldKind] = {
    "CreationDate": FieldKind.TIMESTAMP,
    "LastModified": FieldKind.TIMESTAMP,
    "Buckets": FieldKind.COLLECTION,
    # User supplied text is never read as a boolean.
    "Key": FieldKind.STRING,
    "Prefix": FieldKind.STRING,
    "Marker": FieldKind.STRING,
    "NextMarker": FieldKind.STRING,
    "Delimiter": FieldKind.STRING,
    "Name": FieldKind.STRING,
    "ID": FieldKind.STRING,
    "DisplayName": FieldKind.STRING,
    "ETag": FieldKind.STRING,
    "StorageClass": FieldKind.STRING,
    "Size": FieldKind.STRING,
}


def local_name(tag: object) -> str:
    """Strip the namespace from an ElementTree tag (``{ns}Key`` -> ``Key``)."""

    if not isinstance(tag, str):
        # Comments and processing instructions carry a factory as their tag.
        return ""
    return tag.rsplit("}", 1)[-1]


def _is_blank(text: Optional[str]) -> bool:
    return text is None or not text.strip()


class XmlNormalizer:
    """Walks an element tree depth-first and returns its value tree."""

    def __init__(self, field_kinds: Mapping[str, FieldKind] | None = None):
        kinds = DEFAULT_FIELD_KINDS if field_kinds is None else field_kinds
        self._field_kinds = dict(kinds)

    @property
    def field_kinds(self) -> dict[str, FieldKind]:
        return dict(self._field_kinds)

    def normalize(self, element: Element) -> Value:
        """Return the value tree for ``element``.

        Raises:
            NormalizationError: with ``partial`` set to the value built so far.
        """

        name = local_name(element.tag)
        children = list(element)
        if not children:
            if _is_blank(element.text):
                return None
            return self._coerce(name, element.text)
        if not _is_blank(element.text):
            raise NormalizationError(f"Element <{name}> mixes text and child elements", partial={})
        return self._normalize_object(children)

    def _normalize_object(self, children: list[Element]) -> dict[str, Value]:
        result: dict[str, Value] = {}
        for child in children:
            name = local_name(child.tag)
            if not name:
                continue
            try:
                result[name] = self._normalize_child(name, child)
            except NormalizationError as exc:
                result[name] = exc.partial
                raise NormalizationError(str(exc), partial=result) from exc
        return result

    def _normalize_child(self, name: str, child: Element) -> Value:
        grandchildren = list(child)
        if not _is_blank(child.text):
            if grandchildren:
                raise NormalizationError(f"Element <{name}> mixes text and child elements", partial={})
            return self._coerce(name, child.text)
        if self._field_kinds.get(name) is FieldKind.COLLECTION:
            items: list[Value] = []
            for grandchild in grandchildren:
                try:
                    items.append(self.normalize(grandchild))
                except NormalizationError as exc:
                    items.append(exc.partial)
                    raise NormalizationError(str(exc), partial=items) from exc
            return items
        return self.normalize(child)

    def _coerce(self, name: str, text: str) -> Value:
        kind = self._field_kinds.get(name)
        if kind is FieldKind.TIMESTAMP:
            try:
                return parse_timestamp(text.strip())
            except (ValueError, RuntimeError) as exc:
                LOGGER.debug("Unparsable timestamp in <%s>: %r", name, text)
                raise NormalizationError(f"Invalid timestamp in <{name}>: {text!r}") from exc
        if kind is FieldKind.STRING:
            return text
        if text == "true":
            return True
        if text == "false":
            return False
        return text


def normalize(element: Element, field_kinds: Mapping[str, FieldKind] | None = None) -> Value:
    """Normalize ``element`` with a one-off :class:`XmlNormalizer`."""

    return XmlNormalizer(field_kinds).normalize(element)
