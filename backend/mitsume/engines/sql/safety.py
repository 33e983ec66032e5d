"""
Static checks for dashboard SQL templates.

Older templates were written against a permissive placeholder grammar
(anything but ``}`` between double braces, e.g. ``{{ region }}`` or
``{{order-date}}``).  The resolver only accepts identifier names, so such text
is now passed through verbatim instead of being substituted.  This module
reports those sites, plus placeholders with no declared definition (which are
resolved as untyped ``raw`` values).

Usage::

    warnings = check_template_parameters(query_text, definitions)
    # [{"placeholder": "{{ region }}", "line": 3, "kind": "legacy_syntax", "message": "..."}]
"""

import re
from collections.abc import Sequence
from typing import Any

from mitsume.engines.sql.definitions import resolve_definition
from mitsume.engines.sql.parser import PLACEHOLDER_PATTERN
from mitsume.models_params import ParameterDefinition

# Grammar accepted before placeholder names were restricted to identifiers
_LEGACY_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

KIND_LEGACY_SYNTAX = "legacy_syntax"
KIND_UNDECLARED = "undeclared"


def check_template_parameters(
    template: str,
    definitions: Sequence[ParameterDefinition] | None = None,
) -> list[dict[str, Any]]:
    """Return warnings for placeholder sites that need attention.

    Each warning is a dict with ``placeholder``, ``line``, ``kind`` and
    ``message`` keys.  An empty list means no issues detected.
    """
    warnings: list[dict[str, Any]] = []
    if not template:
        return warnings
    defs = list(definitions or [])
    reported_undeclared: set[str] = set()

    for line_no, line_text in enumerate(template.split("\n"), start=1):
        for match in _LEGACY_PATTERN.finditer(line_text):
            text = match.group(0)
            strict = PLACEHOLDER_PATTERN.fullmatch(text)
            if strict is None:
                suggestion = match.group(1).strip()
                warnings.append(
                    {
                        "placeholder": text,
                        "line": line_no,
                        "kind": KIND_LEGACY_SYNTAX,
                        "message": (
                            f"'{text}' is not a valid placeholder and will not be substituted. "
                            f"Placeholder names must match [a-zA-Z_][a-zA-Z0-9_]* with no spaces"
                            + (
                                f" (did you mean '{{{{{suggestion}}}}}'?)."
                                if PLACEHOLDER_PATTERN.fullmatch(f"{{{{{suggestion}}}}}")
                                else "."
                            )
                        ),
                    }
                )
                continue

            name = strict.group(1)
            if not defs or name in reported_undeclared:
                continue
            definition, _ = resolve_definition(name, defs)
            if definition is None:
                reported_undeclared.add(name)
                warnings.append(
                    {
                        "placeholder": text,
                        "line": line_no,
                        "kind": KIND_UNDECLARED,
                        "message": (
                            f"'{text}' has no parameter definition. "
                            f"It will be substituted as a raw value; viewers may only "
                            f"pass a single token. Declare it with an sql_format."
                        ),
                    }
                )

    return warnings
