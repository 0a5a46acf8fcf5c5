"""Binding decoded payloads into dataclasses.

Decoders produce plain structures (dicts, lists, strings). ``bind()``
turns such a mapping into an instance of a user dataclass: fields with
defaults are optional, fields without defaults are required, and
nested dataclasses (or lists of them) are bound recursively.

With ``coerce=True`` (form and XML payloads, where every value is a
string) ``str``, ``int``, ``float`` and ``bool`` fields are converted.
With ``strict=True`` keys that match no field are errors.
"""

import dataclasses
import types
import typing
from collections.abc import Mapping
from typing import Any, get_type_hints

from parley.errors import DecodeError


class BindingError(DecodeError):
    """Raised when a payload cannot be bound to a dataclass.

    Attributes:
        errors: Dict mapping field names to lists of error messages.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Binding failed for: {fields}")


_COERCIONS: dict[type, Any] = {
    str: lambda v: v.strip(),
    int: int,
    float: float,
    bool: lambda v: v.lower() in ("true", "1", "yes", "on"),
}


def is_dataclass_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def bind[T](
    datacls: type[T],
    data: Mapping[str, Any],
    *,
    strict: bool = False,
    coerce: bool = False,
) -> T:
    """Populate *datacls* from *data*.

    Raises:
        BindingError: If required fields are missing, values have the
            wrong shape, or (strict) unknown keys are present.
    """
    if not isinstance(data, Mapping):
        msg = f"Cannot bind {type(data).__name__} to {datacls.__name__}"
        raise DecodeError(msg)

    hints = get_type_hints(datacls)
    field_defs = dataclasses.fields(datacls)  # type: ignore[arg-type]

    errors: dict[str, list[str]] = {}
    values: dict[str, Any] = {}

    if strict:
        known = {f.name for f in field_defs}
        for key in data:
            if key not in known:
                errors.setdefault(key, []).append(f"unknown field {key!r}")

    for f in field_defs:
        if not f.init:
            continue
        if f.name not in data:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                errors.setdefault(f.name, []).append(f"{f.name} is required.")
            continue
        try:
            values[f.name] = _convert(hints.get(f.name, Any), data[f.name], strict=strict, coerce=coerce)
        except BindingError as exc:
            for name, messages in exc.errors.items():
                errors.setdefault(f"{f.name}.{name}", []).extend(messages)
        except (ValueError, TypeError, AttributeError):
            errors.setdefault(f.name, []).append(
                f"Invalid value for {f.name}: expected {_type_name(hints.get(f.name))}."
            )

    if errors:
        raise BindingError(errors)

    return datacls(**values)


def _convert(hint: Any, raw: Any, *, strict: bool, coerce: bool) -> Any:
    base = _unwrap_optional(hint)
    if raw is None:
        return None
    if is_dataclass_type(base):
        return bind(base, raw, strict=strict, coerce=coerce)
    origin = typing.get_origin(base)
    if origin in (list, tuple) and isinstance(raw, (list, tuple)):
        args = typing.get_args(base)
        item_hint = args[0] if args else Any
        items = [_convert(item_hint, item, strict=strict, coerce=coerce) for item in raw]
        return items if origin is list else tuple(items)
    if coerce and isinstance(raw, str) and base in _COERCIONS:
        return _COERCIONS[base](raw)
    if base in (int, str, bool) and not _exact(raw, base):
        raise TypeError(base)
    if base is float:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise TypeError(base)
        return float(raw)
    return raw


def _exact(raw: Any, base: type) -> bool:
    # bool is an int subclass; don't let True bind to an int field
    if base is int:
        return isinstance(raw, int) and not isinstance(raw, bool)
    return isinstance(raw, base)


def _unwrap_optional(hint: Any) -> Any:
    """Extract the base type from ``X | None`` or ``Optional[X]``."""
    if isinstance(hint, types.UnionType) or typing.get_origin(hint) is typing.Union:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _type_name(hint: Any) -> str:
    base = _unwrap_optional(hint)
    return getattr(base, "__name__", str(base))
