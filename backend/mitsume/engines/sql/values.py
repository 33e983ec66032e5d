"""
Parameter values decoded from JSON.

Request payloads carry loosely typed values (string, number, bool, list, or a
``{start, end}`` object for date ranges).  ``decode_value`` turns each into
one of the value classes below once, at the boundary, so the formatters only
deal with a closed set of shapes.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class TextValue:
    text: str

    def as_text(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class NumberValue:
    number: int | float

    def as_text(self) -> str:
        """Integral floats drop the decimal point; others keep full precision."""
        n = self.number
        if isinstance(n, int):
            return str(n)
        if n.is_integer():
            return str(int(n))
        return format(Decimal(repr(n)), "f")


@dataclass(frozen=True, slots=True)
class BoolValue:
    flag: bool

    def as_text(self) -> str:
        return "true" if self.flag else "false"


@dataclass(frozen=True, slots=True)
class ListValue:
    items: tuple[ParamValue, ...]

    def as_text(self) -> str:
        return ",".join(item.as_text() for item in self.items)


@dataclass(frozen=True, slots=True)
class RangeValue:
    start: str
    end: str

    def as_text(self) -> str:
        return f"{self.start},{self.end}"


ParamValue = Union[TextValue, NumberValue, BoolValue, ListValue, RangeValue]


class ParamValueError(ValueError):
    """Raised when a payload value has a shape that cannot be decoded."""

    pass


def decode_value(raw: Any) -> ParamValue | None:
    """Decode one JSON value. ``None`` stays ``None`` (null / absent)."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            raise ParamValueError(f"{raw!r} is not a valid parameter value")
        return NumberValue(raw)
    if isinstance(raw, str):
        return TextValue(raw)
    if isinstance(raw, (list, tuple)):
        items: list[ParamValue] = []
        for item in raw:
            v = decode_value(item)
            if v is not None:
                items.append(v)
        return ListValue(tuple(items))
    if isinstance(raw, Mapping):
        start = raw.get("start")
        end = raw.get("end")
        return RangeValue(
            "" if start is None else str(start).strip(),
            "" if end is None else str(end).strip(),
        )
    raise ParamValueError(f"Unsupported parameter value type: {type(raw).__name__}")


def decode_values(raw: Mapping[str, Any] | None) -> dict[str, ParamValue | None]:
    """Decode a ``{key: value}`` request mapping.

    Undecodable values are dropped so they are reported missing later.
    """
    out: dict[str, ParamValue | None] = {}
    for key, value in (raw or {}).items():
        try:
            out[str(key)] = decode_value(value)
        except ParamValueError:
            continue
    return out


def is_empty(value: ParamValue | None) -> bool:
    """Absent, null, blank text and empty list count as empty."""
    if value is None:
        return True
    if isinstance(value, TextValue):
        return value.text.strip() == ""
    if isinstance(value, ListValue):
        return not value.items
    if isinstance(value, RangeValue):
        return value.start == "" and value.end == ""
    return False


def split_range(value: ParamValue) -> tuple[str, str] | None:
    """Return ``(start, end)`` of a range value, or ``None`` if not a range.

    Accepts ``"start,end"`` text, a ``{start, end}`` object or a two item list.
    """
    if isinstance(value, RangeValue):
        return value.start, value.end
    if isinstance(value, TextValue):
        parts = value.text.split(",")
        if len(parts) != 2:
            return None
        return parts[0].strip(), parts[1].strip()
    if isinstance(value, ListValue) and len(value.items) == 2:
        return value.items[0].as_text().strip(), value.items[1].as_text().strip()
    return None
