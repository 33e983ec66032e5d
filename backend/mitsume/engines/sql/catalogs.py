"""
Catalog references in SQL text (Trino).

A textual scan, not a SQL parser: it finds ``catalog.schema.table`` references
and the catalog operand of ``SHOW SCHEMAS``, ``SHOW TABLES`` and ``USE``.
Catalogs reached only through CTE names or views are not seen, and
catalog-like tokens inside comments or string literals are reported.
"""

import re

_IDENT = r'(?:[a-zA-Z_][a-zA-Z0-9_]*|"[^"]+")'

SHOW_CATALOGS_PATTERN = re.compile(r"\bSHOW\s+CATALOGS\b", re.IGNORECASE)

# catalog.schema.table references (quoted or unquoted identifiers)
_THREE_PART_PATTERN = re.compile(
    rf"({_IDENT})\s*\.\s*({_IDENT})\s*\.\s*({_IDENT})",
    re.IGNORECASE,
)

# Trino metadata statements; group 2 is the unquoted body of a quoted catalog
_SHOW_SCHEMAS_PATTERN = re.compile(
    r'\bSHOW\s+SCHEMAS\s+(?:FROM|IN)\s+("([^"]+)"|[a-zA-Z_][a-zA-Z0-9_]*)',
    re.IGNORECASE,
)
_SHOW_TABLES_PATTERN = re.compile(
    r'\bSHOW\s+TABLES\s+(?:FROM|IN)\s+("([^"]+)"|[a-zA-Z_][a-zA-Z0-9_]*)\s*\.',
    re.IGNORECASE,
)
_USE_PATTERN = re.compile(
    r'\bUSE\s+("([^"]+)"|[a-zA-Z_][a-zA-Z0-9_]*)\s*\.',
    re.IGNORECASE,
)

_STATEMENT_PATTERNS: tuple[re.Pattern[str], ...] = (
    _SHOW_SCHEMAS_PATTERN,
    _SHOW_TABLES_PATTERN,
    _USE_PATTERN,
)


def unquote_identifier(identifier: str) -> str:
    """``"hive"`` -> ``hive``; unquoted identifiers are returned unchanged."""
    if len(identifier) >= 2 and identifier[0] == '"' and identifier[-1] == '"':
        return identifier[1:-1]
    return identifier


def is_show_catalogs(query: str) -> bool:
    return bool(SHOW_CATALOGS_PATTERN.search(query or ""))


def extract_referenced_catalogs(query: str) -> list[str]:
    """Catalog names referenced by *query*, de-duplicated, in order found.

    Three-part references are collected first, then SHOW SCHEMAS, SHOW TABLES
    and USE operands.
    """
    catalogs: list[str] = []
    if not query:
        return catalogs

    def add(catalog: str) -> None:
        if catalog and catalog not in catalogs:
            catalogs.append(catalog)

    for m in _THREE_PART_PATTERN.finditer(query):
        add(unquote_identifier(m.group(1)))
    for pattern in _STATEMENT_PATTERNS:
        for m in pattern.finditer(query):
            add(m.group(2) or unquote_identifier(m.group(1)))
    return catalogs
