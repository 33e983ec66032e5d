"""
Engines: dashboard SQL template resolution.
"""

from mitsume.engines.sql import (
    ParameterTemplateEngine,
    extract_parameters,
    extract_referenced_catalogs,
    resolve_parameters,
)

__all__ = [
    "ParameterTemplateEngine",
    "extract_parameters",
    "extract_referenced_catalogs",
    "resolve_parameters",
]
