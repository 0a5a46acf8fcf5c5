"""Value-to-XML marshalling and XML-to-value unmarshalling.

Built on ``xml.etree.ElementTree``. Objects control their own markup by
defining ``__xml__()`` (returning ``str`` or ``bytes``); everything else
is mapped structurally:

- dataclass instance -> element named after the class, one child per field
- mapping            -> ``<response>`` with one child per key
- list / tuple       -> ``<items>`` with ``<item>`` children
- scalar             -> ``<value>`` text

``None`` fields are omitted, ``bool`` renders as ``true``/``false``.
"""

import dataclasses
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from typing import Any

XML_HEADER = b'<?xml version="1.0" encoding="UTF-8"?>\n'


def marshal(value: Any) -> bytes:
    """Serialize *value* to XML bytes (no declaration).

    Raises:
        TypeError: If a value has no XML representation.
        ValueError: If a mapping key is not a usable element name.
        xml.etree.ElementTree.ParseError: If a nested ``__xml__()`` returns
            markup that does not parse.
    """
    custom = getattr(value, "__xml__", None)
    if callable(custom):
        markup = custom()
        return markup if isinstance(markup, bytes) else str(markup).encode("utf-8")
    if isinstance(value, ET.Element):
        return ET.tostring(value, encoding="utf-8", xml_declaration=False)
    root = _element(_root_tag(value), value)
    return ET.tostring(root, encoding="utf-8", xml_declaration=False)


def has_declaration(body: bytes, limit: int = 100) -> bool:
    """True if ``<?xml`` appears within the first *limit* bytes.

    Looking past the very start tolerates leading whitespace and comments
    emitted by custom marshalers.
    """
    return b"<?xml" in body[:limit]


def _root_tag(value: Any) -> str:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return type(value).__name__
    if isinstance(value, Mapping):
        return "response"
    if isinstance(value, (list, tuple)):
        return "items"
    return "value"


def _element(tag: str, value: Any) -> ET.Element:
    if not tag or not (tag[0].isalpha() or tag[0] == "_") or any(c.isspace() for c in tag):
        msg = f"Invalid XML element name: {tag!r}"
        raise ValueError(msg)
    element = ET.Element(tag)
    custom = getattr(value, "__xml__", None)
    if callable(custom):
        markup = custom()
        element.append(ET.fromstring(markup))
        return element
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        for field in dataclasses.fields(value):
            child = getattr(value, field.name)
            if child is not None:
                element.append(_element(field.name, child))
    elif isinstance(value, Mapping):
        for key, child in value.items():
            if child is not None:
                element.append(_element(str(key), child))
    elif isinstance(value, (list, tuple)):
        for child in value:
            element.append(_element("item", child))
    else:
        element.text = _scalar_text(value)
    return element


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8")
    msg = f"Cannot marshal {type(value).__name__} to XML"
    raise TypeError(msg)


# -- Unmarshalling --


def unmarshal(body: bytes) -> Any:
    """Parse XML bytes into nested dicts, lists, and strings.

    The root element is unwrapped. Repeated child tags collect into a
    list; leaf elements become their text (``""`` when empty).

    Raises:
        xml.etree.ElementTree.ParseError: On malformed input.
    """
    return _to_value(ET.fromstring(body))


def _to_value(element: ET.Element) -> Any:
    children = list(element)
    if not children:
        return (element.text or "").strip()
    result: dict[str, Any] = {}
    for child in children:
        value = _to_value(child)
        if child.tag in result:
            existing = result[child.tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[child.tag] = [existing, value]
        else:
            result[child.tag] = value
    return result
