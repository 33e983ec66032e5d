"""
Dashboard SQL template resolution.

Replaces ``{{name}}`` placeholders with formatted literals according to the
dashboard's parameter definitions.

Security: a placeholder is either replaced by the output of a formatter in
``filters`` or left untouched and reported missing.  A formatting failure is
never an exception to the caller; it lands in ``ResolvedQuery.missing`` and
the caller must not execute a query whose missing list is non-empty.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from mitsume.engines.sql.definitions import effective_sql_format, resolve_definition
from mitsume.engines.sql.filters import ParamFormatError, format_value
from mitsume.engines.sql.parser import PLACEHOLDER_PATTERN, extract_parameters
from mitsume.engines.sql.values import (
    ParamValue,
    RangeValue,
    TextValue,
    decode_values,
    is_empty,
    split_range,
)
from mitsume.models_params import (
    EmptyBehaviorEnum,
    ParameterDefinition,
    ParameterTypeEnum,
    RangePartEnum,
    ResolvedQuery,
    SqlFormatEnum,
)

_log = logging.getLogger(__name__)

_EMPTY_SUBSTITUTES: Mapping[EmptyBehaviorEnum, str] = {
    EmptyBehaviorEnum.NULL: "NULL",
    EmptyBehaviorEnum.MATCH_NONE: "1=0",
}


def _lookup(
    values: Mapping[str, ParamValue | None],
    logical: str,
    token: str,
) -> tuple[ParamValue | None, bool]:
    """Return ``(value, keyed_by_logical_name)``; the logical name wins."""
    v = values.get(logical)
    if not is_empty(v):
        return v, True
    if token != logical:
        v = values.get(token)
        if not is_empty(v):
            return v, False
    return None, True


def _format_endpoint(s: str, fmt: SqlFormatEnum, trusted: bool) -> str:
    if not s:
        raise ParamFormatError("Date range bound is empty")
    return format_value(TextValue(s), fmt, trusted=trusted)


def _format_range(
    value: ParamValue,
    *,
    by_logical: bool,
    part: RangePartEnum,
    fmt: SqlFormatEnum,
    trusted: bool,
) -> str:
    # A value keyed by the site's own placeholder (e.g. period_start) is the
    # bound itself, not a "start,end" pair.
    if part != RangePartEnum.WHOLE and not by_logical and not isinstance(value, RangeValue):
        return _format_endpoint(value.as_text().strip(), fmt, trusted)

    bounds = split_range(value)
    if bounds is None:
        raise ParamFormatError("Date range must be 'start,end' or {start, end}")
    start, end = bounds
    if part == RangePartEnum.START:
        return _format_endpoint(start, fmt, trusted)
    if part == RangePartEnum.END:
        return _format_endpoint(end, fmt, trusted)
    return f"{_format_endpoint(start, fmt, trusted)} AND {_format_endpoint(end, fmt, trusted)}"


def resolve_parameters(
    template: str,
    values: Mapping[str, Any] | None,
    definitions: Sequence[ParameterDefinition] | None = None,
    trusted: bool = False,
) -> ResolvedQuery:
    """Resolve every placeholder in *template*.

    *values* are raw JSON values keyed by logical parameter name or by the
    literal placeholder name.  Returns ``ResolvedQuery(sql, missing)``; the
    same inputs always produce the same output.
    """
    defs = list(definitions or [])
    decoded = decode_values(values)
    replacements: dict[str, str] = {}
    missing: list[str] = []

    for token in extract_parameters(template):
        definition, part = resolve_definition(token, defs)
        logical = definition.name if definition is not None else token
        value, by_logical = _lookup(decoded, logical, token)

        if value is None:
            behavior = definition.empty_behavior if definition is not None else EmptyBehaviorEnum.MISSING
            substitute = _EMPTY_SUBSTITUTES.get(behavior)
            if substitute is not None:
                replacements[token] = substitute
            elif logical not in missing:
                missing.append(logical)
            continue

        fmt = effective_sql_format(definition)
        try:
            if definition is not None and definition.type == ParameterTypeEnum.DATERANGE:
                replacements[token] = _format_range(
                    value, by_logical=by_logical, part=part, fmt=fmt, trusted=trusted
                )
            else:
                replacements[token] = format_value(value, fmt, trusted=trusted)
        except ParamFormatError as e:
            _log.debug("Parameter %s rejected (%s): %s", logical, fmt.value, e)
            if logical not in missing:
                missing.append(logical)

    sql = PLACEHOLDER_PATTERN.sub(
        lambda m: replacements.get(m.group(1), m.group(0)), template or ""
    )
    return ResolvedQuery(sql=sql, missing=tuple(missing))


class ParameterTemplateEngine:
    """Resolves dashboard SQL templates and lists their placeholders."""

    def __init__(self, definitions: Sequence[ParameterDefinition] | None = None) -> None:
        self.definitions: list[ParameterDefinition] = list(definitions or [])

    def resolve(
        self,
        template: str,
        values: Mapping[str, Any] | None,
        *,
        trusted: bool = False,
    ) -> ResolvedQuery:
        """Resolve *template* with *values* against this engine's definitions."""
        resolved = resolve_parameters(template, values, self.definitions, trusted)
        if resolved.missing:
            _log.debug("Unresolved parameters: %s", ", ".join(resolved.missing))
        else:
            _log.debug("Resolved SQL: %s", resolved.sql)
        return resolved

    def parse_parameters(self, template: str) -> list[str]:
        """Placeholder names used in *template*, in first-occurrence order."""
        return extract_parameters(template)

    def logical_parameters(self, template: str) -> list[str]:
        """Logical parameter names behind the placeholders of *template*.

        ``period_start`` and ``period_end`` both map to ``period``.
        """
        out: list[str] = []
        for token in extract_parameters(template):
            definition, _ = resolve_definition(token, self.definitions)
            name = definition.name if definition is not None else token
            if name not in out:
                out.append(name)
        return out
