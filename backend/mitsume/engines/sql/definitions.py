"""
Map a placeholder to its declared parameter definition.

A daterange parameter ``period`` can be used in a template three ways:

* ``{{period}}``                      -> whole range (``start AND end``)
* ``{{period_start}}`` / ``{{period_end}}`` (naming convention)
* explicit ``targets.start`` / ``targets.end`` placeholder names
"""

from collections.abc import Mapping, Sequence
from typing import Any

from mitsume.engines.sql.values import ParamValueError, decode_value, is_empty
from mitsume.models_params import (
    ParameterDefinition,
    ParameterTypeEnum,
    RangePartEnum,
    SqlFormatEnum,
)


def resolve_definition(
    token: str,
    definitions: Sequence[ParameterDefinition],
) -> tuple[ParameterDefinition | None, RangePartEnum]:
    """Return ``(definition, range_part)`` for a placeholder token.

    Exact name match wins; then explicit daterange targets; then the
    ``{name}_start`` / ``{name}_end`` convention.  No match -> ``(None, WHOLE)``
    (legacy untyped parameter).
    """
    for d in definitions:
        if d.name == token:
            return d, RangePartEnum.WHOLE

    ranges = [d for d in definitions if d.type == ParameterTypeEnum.DATERANGE]
    for d in ranges:
        if d.targets is None:
            continue
        if d.targets.start and d.targets.start == token:
            return d, RangePartEnum.START
        if d.targets.end and d.targets.end == token:
            return d, RangePartEnum.END

    for d in ranges:
        if token == f"{d.name}_start":
            return d, RangePartEnum.START
        if token == f"{d.name}_end":
            return d, RangePartEnum.END

    return None, RangePartEnum.WHOLE


def effective_sql_format(definition: ParameterDefinition | None) -> SqlFormatEnum:
    """Declared sql_format; otherwise ``date`` for dateranges and ``raw`` for
    everything else (including placeholders with no definition)."""
    if definition is None:
        return SqlFormatEnum.RAW
    if definition.sql_format is not None:
        return definition.sql_format
    if definition.type == ParameterTypeEnum.DATERANGE:
        return SqlFormatEnum.DATE
    return SqlFormatEnum.RAW


def _site_keys(definition: ParameterDefinition) -> list[str]:
    """Request keys that can carry a value for *definition*."""
    keys = [definition.name]
    if definition.type == ParameterTypeEnum.DATERANGE:
        keys += [f"{definition.name}_start", f"{definition.name}_end"]
        if definition.targets is not None:
            keys += [k for k in (definition.targets.start, definition.targets.end) if k]
    return keys


def _has_value(raw: Any) -> bool:
    try:
        return not is_empty(decode_value(raw))
    except ParamValueError:
        return False


def apply_defaults(
    values: Mapping[str, Any] | None,
    definitions: Sequence[ParameterDefinition],
) -> dict[str, Any]:
    """Fill each definition's ``default_value`` where the caller sent nothing.

    A daterange counts as supplied when any of its placeholder keys
    (``period_start``, explicit targets, ...) holds a value.
    """
    _values = dict(values or {})
    for d in definitions:
        if not _has_value(d.default_value):
            continue
        if any(_has_value(_values.get(k)) for k in _site_keys(d)):
            continue
        _values[d.name] = d.default_value
    return _values
