"""
Query runner: resolve parameters, enforce catalog access, hand SQL to the
executor.

The executor (Trino + result cache) is an external collaborator reached via
the QueryExecutor protocol.  Nothing is executed while a parameter is missing
or a catalog check fails.
"""

import logging
import uuid
from collections.abc import Mapping, Sequence
from enum import IntEnum
from typing import Any, Protocol

from mitsume.core.catalog_guard import check_catalog_access, enforce_catalog_access
from mitsume.core.config import settings
from mitsume.core.permission import AllowedCatalogSource
from mitsume.engines.sql.definitions import apply_defaults
from mitsume.engines.sql.safety import KIND_LEGACY_SYNTAX, check_template_parameters
from mitsume.engines.sql.template_engine import ParameterTemplateEngine
from mitsume.models_params import (
    ParameterDefinition,
    ParameterOption,
    SavedQuery,
    WidgetDataResponse,
)
from mitsume.models_permission import PermissionContext

logger = logging.getLogger(__name__)


class CachePriorityEnum(IntEnum):
    """Result cache priority (drives TTL in the executor)."""

    LOW = 1  # ad-hoc queries
    NORMAL = 2  # widget data
    HIGH = 3  # scheduled queries


class QueryExecutor(Protocol):
    def execute_query_with_cache(
        self,
        query: str,
        catalog: str,
        schema: str,
        priority: int,
        query_id: uuid.UUID | None = None,
    ) -> dict[str, Any]:
        """Return ``{"columns": [...], "rows": [[...]], "row_count": n, ...}``."""
        ...


class ParameterOptionsError(ValueError):
    """Raised when options are requested for a parameter that has none."""

    pass


def _effective_catalog_schema(
    catalog: str | None, schema: str | None
) -> tuple[str, str]:
    return (catalog or settings.DEFAULT_CATALOG, schema or settings.DEFAULT_SCHEMA)


def _warn_legacy_placeholders(query_text: str, definitions: Sequence[ParameterDefinition]) -> None:
    for w in check_template_parameters(query_text, definitions):
        if w["kind"] == KIND_LEGACY_SYNTAX:
            logger.warning("Query line %s: %s", w["line"], w["message"])


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def run_widget_query(
    *,
    executor: QueryExecutor,
    ctx: PermissionContext,
    widget_id: uuid.UUID | str,
    saved_query: SavedQuery,
    definitions: Sequence[ParameterDefinition] | None = None,
    parameters: Mapping[str, Any] | None = None,
) -> WidgetDataResponse:
    """Resolve and run a widget's saved query.

    Missing parameters -> response listing them, nothing executed.
    Catalog denial -> CatalogGuardError is raised.
    Executor failure -> response with ``error`` set.
    """
    defs = list(definitions or [])
    engine = ParameterTemplateEngine(defs)
    required = engine.logical_parameters(saved_query.query_text)
    _warn_legacy_placeholders(saved_query.query_text, defs)

    values = apply_defaults(parameters, defs)
    resolved = engine.resolve(saved_query.query_text, values, trusted=ctx.trusted)
    if resolved.missing:
        logger.info(
            "Widget %s: missing parameters %s", widget_id, ", ".join(resolved.missing)
        )
        return WidgetDataResponse(
            widget_id=str(widget_id),
            required_parameters=required,
            missing_parameters=list(resolved.missing),
        )

    catalog, schema = _effective_catalog_schema(saved_query.catalog, saved_query.schema_name)
    check_catalog_access(ctx.allowed_catalogs, resolved.sql, catalog)

    try:
        result = executor.execute_query_with_cache(
            resolved.sql, catalog, schema, int(CachePriorityEnum.NORMAL), saved_query.id
        )
    except Exception as e:
        logger.error("Widget %s query failed: %s", widget_id, e, exc_info=True)
        return WidgetDataResponse(
            widget_id=str(widget_id),
            error=str(e),
            required_parameters=required,
        )
    return WidgetDataResponse(
        widget_id=str(widget_id),
        query_result=result,
        required_parameters=required,
    )


def run_parameter_options(
    *,
    executor: QueryExecutor,
    ctx: PermissionContext,
    definition: ParameterDefinition,
    options_query: SavedQuery | None,
    definitions: Sequence[ParameterDefinition] | None = None,
    parameters: Mapping[str, Any] | None = None,
) -> list[ParameterOption]:
    """Options for a select / multiselect parameter.

    Static ``options`` are returned as-is.  Otherwise the options query is
    resolved with the dependent parameter values (cascading selects) and its
    rows become options: first column value, second column label.  While a
    dependency has no value the result is empty.
    """
    if definition.options_query_id is None:
        if definition.options is not None:
            return list(definition.options)
        raise ParameterOptionsError(f"Parameter '{definition.name}' has no options query")
    if options_query is None:
        raise ParameterOptionsError(f"Options query for '{definition.name}' not found")

    engine = ParameterTemplateEngine(definitions)
    resolved = engine.resolve(options_query.query_text, parameters, trusted=ctx.trusted)
    if resolved.missing:
        logger.info(
            "Options for %s waiting on %s", definition.name, ", ".join(resolved.missing)
        )
        return []

    catalog, schema = _effective_catalog_schema(options_query.catalog, options_query.schema_name)
    check_catalog_access(ctx.allowed_catalogs, resolved.sql, catalog)

    result = executor.execute_query_with_cache(
        resolved.sql, catalog, schema, int(CachePriorityEnum.NORMAL), options_query.id
    )
    options: list[ParameterOption] = []
    for row in (result or {}).get("rows") or []:
        if len(options) >= settings.PARAM_OPTIONS_LIMIT:
            break
        if not row or row[0] is None:
            continue
        value = str(row[0])
        label = str(row[1]) if len(row) > 1 and row[1] is not None else value
        options.append(ParameterOption(value=value, label=label))
    return options


def run_adhoc_query(
    *,
    executor: QueryExecutor,
    source: AllowedCatalogSource | None,
    user_id: uuid.UUID,
    query: str,
    catalog: str | None = None,
    schema: str | None = None,
) -> dict[str, Any]:
    """Run a query typed in the editor (no parameters) for *user_id*."""
    catalog, schema = _effective_catalog_schema(catalog, schema)
    enforce_catalog_access(source, user_id, query, catalog)
    return executor.execute_query_with_cache(
        query, catalog, schema, int(CachePriorityEnum.LOW), None
    )
