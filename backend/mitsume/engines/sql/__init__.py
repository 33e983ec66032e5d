"""
Dashboard SQL templates: placeholder parsing, value formatting, resolution,
and catalog reference extraction.

Exports: ParameterTemplateEngine, resolve_parameters, extract_parameters,
format_value, extract_referenced_catalogs.
"""

from mitsume.engines.sql.catalogs import extract_referenced_catalogs, is_show_catalogs
from mitsume.engines.sql.filters import ParamFormatError, SqlSafe, format_value
from mitsume.engines.sql.parser import extract_all_parameters, extract_parameters
from mitsume.engines.sql.template_engine import ParameterTemplateEngine, resolve_parameters

__all__ = [
    "ParamFormatError",
    "ParameterTemplateEngine",
    "SqlSafe",
    "extract_all_parameters",
    "extract_parameters",
    "extract_referenced_catalogs",
    "format_value",
    "is_show_catalogs",
    "resolve_parameters",
]
