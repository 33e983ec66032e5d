"""
SQL value formatters for dashboard parameters.

One formatter per ``sql_format``.  Each either returns a ``SqlSafe`` literal
or raises ``ParamFormatError``; the template resolver treats a raised error
exactly like an absent value, so unvalidated text is never interpolated.

All formatters return ``SqlSafe`` so callers can tell a sanitised fragment
from untouched input.
"""

import re
from collections.abc import Callable, Mapping
from types import MappingProxyType

from mitsume.engines.sql.values import ListValue, ParamValue, RangeValue
from mitsume.models_params import SqlFormatEnum

# Single-quote escape for SQL strings
_SQL_QUOTE_ESCAPE = str.maketrans({"'": "''"})

_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
# Untrusted raw values: a single token, no whitespace, quotes or operators
_RAW_TOKEN_RE = re.compile(r"^[a-zA-Z0-9_.,:@/\-]+$")


class SqlSafe(str):
    """String subclass marking a value as already SQL-escaped."""


class ParamFormatError(ValueError):
    """Raised when a value does not satisfy its declared sql_format."""

    pass


def _safe(v: str) -> SqlSafe:
    return SqlSafe(v)


def _quote(s: str) -> str:
    return "'" + s.translate(_SQL_QUOTE_ESCAPE) + "'"


def _elements(value: ParamValue) -> list[str]:
    """List elements from a native list or a comma-separated string.

    Elements are trimmed; blank elements are dropped.
    """
    if isinstance(value, ListValue):
        raw = [item.as_text() for item in value.items]
    elif isinstance(value, RangeValue):
        raw = [value.start, value.end]
    else:
        raw = value.as_text().split(",")
    out = [x.strip() for x in raw if x.strip()]
    if not out:
        raise ParamFormatError("List is empty")
    return out


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def sql_string(value: ParamValue, trusted: bool = False) -> SqlSafe:
    """Quote as a string literal, doubling embedded single quotes."""
    return _safe(_quote(value.as_text()))


def sql_number(value: ParamValue, trusted: bool = False) -> SqlSafe:
    s = value.as_text().strip()
    if not _NUMBER_RE.fullmatch(s):
        raise ParamFormatError(f"Invalid number: {s[:50]!r}")
    return _safe(s)


def sql_date(value: ParamValue, trusted: bool = False) -> SqlSafe:
    """Format as ``DATE 'YYYY-MM-DD'``."""
    s = value.as_text().strip()
    if not _DATE_RE.fullmatch(s):
        raise ParamFormatError(f"Invalid date (expected YYYY-MM-DD): {s[:50]!r}")
    return _safe(f"DATE '{s}'")


def sql_identifier(value: ParamValue, trusted: bool = False) -> SqlSafe:
    s = value.as_text().strip()
    if not _IDENTIFIER_RE.fullmatch(s):
        raise ParamFormatError(f"Invalid identifier: {s[:50]!r}")
    return _safe(f'"{s}"')


def sql_string_list(value: ParamValue, trusted: bool = False) -> SqlSafe:
    """``a,b`` / ``["a", "b"]`` -> ``'a','b'``."""
    return _safe(",".join(_quote(x) for x in _elements(value)))


def sql_number_list(value: ParamValue, trusted: bool = False) -> SqlSafe:
    parts = _elements(value)
    for x in parts:
        if not _NUMBER_RE.fullmatch(x):
            raise ParamFormatError(f"Invalid number in list: {x[:50]!r}")
    return _safe(",".join(parts))


def sql_raw(value: ParamValue, trusted: bool = False) -> SqlSafe:
    """Insert the value unquoted.

    Only editors (``trusted``) may pass free-form text; everyone else is
    limited to a single conservative token.  Single quotes are doubled either
    way.
    """
    s = value.as_text()
    if not trusted and not _RAW_TOKEN_RE.fullmatch(s):
        raise ParamFormatError("Raw value rejected: only [A-Za-z0-9_.,:@/-] allowed")
    return _safe(s.translate(_SQL_QUOTE_ESCAPE))


SQL_FORMATTERS: Mapping[SqlFormatEnum, Callable[[ParamValue, bool], SqlSafe]] = MappingProxyType(
    {
        SqlFormatEnum.STRING: sql_string,
        SqlFormatEnum.NUMBER: sql_number,
        SqlFormatEnum.DATE: sql_date,
        SqlFormatEnum.IDENTIFIER: sql_identifier,
        SqlFormatEnum.STRING_LIST: sql_string_list,
        SqlFormatEnum.NUMBER_LIST: sql_number_list,
        SqlFormatEnum.RAW: sql_raw,
    }
)


def format_value(
    value: ParamValue,
    sql_format: SqlFormatEnum | str,
    *,
    trusted: bool = False,
) -> SqlSafe:
    """Format *value* per *sql_format*. Raises ParamFormatError on rejection.

    Unknown format names are handled as ``raw``.
    """
    try:
        fmt = SqlFormatEnum(sql_format)
    except ValueError:
        fmt = SqlFormatEnum.RAW
    return SQL_FORMATTERS[fmt](value, trusted)
