"""
Parse ``{{name}}`` placeholders from a SQL template.

Placeholder names are identifiers: ``[a-zA-Z_][a-zA-Z0-9_]*``.  Anything else
between braces (``{{ name }}``, ``{{a-b}}``) is not a placeholder and is left
alone; ``safety.check_template_parameters`` reports such text.
"""

import functools
import re
from collections.abc import Iterable, Mapping
from typing import Any

PLACEHOLDER_PATTERN = re.compile(r"\{\{([a-zA-Z_][a-zA-Z0-9_]*)\}\}")


@functools.lru_cache(maxsize=512)
def _extract_cached(template: str) -> tuple[str, ...]:
    seen: set[str] = set()
    names: list[str] = []
    for m in PLACEHOLDER_PATTERN.finditer(template):
        name = m.group(1)
        if name not in seen:
            seen.add(name)
            names.append(name)
    return tuple(names)


def extract_parameters(template: str) -> list[str]:
    """Placeholder names in first-occurrence order, without duplicates."""
    if not template:
        return []
    return list(_extract_cached(template))


def extract_all_parameters(templates: Iterable[str]) -> list[str]:
    """Union of placeholder names across several templates, in order."""
    out: list[str] = []
    for template in templates:
        for name in extract_parameters(template):
            if name not in out:
                out.append(name)
    return out


def has_unresolved_parameters(template: str, values: Mapping[str, Any] | None) -> bool:
    """True if some placeholder has no value (absent, None or blank string)."""
    _values = values or {}
    for name in extract_parameters(template):
        v = _values.get(name)
        if v is None or (isinstance(v, str) and v.strip() == ""):
            return True
    return False
