"""
Dashboard parameter schemas.

ParameterDefinition is decoded from the dashboard's JSON ``parameters`` column.
ResolvedQuery / CatalogSet are the results of template resolution and catalog
extraction.
"""

import uuid
from enum import Enum
from typing import Any, NamedTuple

from pydantic import field_validator
from sqlmodel import Field, SQLModel

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ParameterTypeEnum(str, Enum):
    """Input widget type of a dashboard parameter."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    DATERANGE = "daterange"
    SELECT = "select"
    MULTISELECT = "multiselect"


class SqlFormatEnum(str, Enum):
    """How a parameter value is rendered into SQL text."""

    RAW = "raw"
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    IDENTIFIER = "identifier"
    STRING_LIST = "string_list"
    NUMBER_LIST = "number_list"


class EmptyBehaviorEnum(str, Enum):
    """What to substitute when a parameter has no value."""

    MISSING = "missing"
    NULL = "null"
    MATCH_NONE = "match_none"


class RangePartEnum(str, Enum):
    """Which end of a date range a placeholder site refers to."""

    WHOLE = ""
    START = "start"
    END = "end"


# ---------------------------------------------------------------------------
# Parameter definition
# ---------------------------------------------------------------------------


class DateRangeTargets(SQLModel):
    """Explicit placeholder names for the two ends of a daterange parameter."""

    start: str = ""
    end: str = ""


class ParameterOption(SQLModel):
    value: str
    label: str


class ParameterDefinition(SQLModel):
    """A declared dashboard parameter (wire format: JSON)."""

    name: str = Field(..., min_length=1)
    type: ParameterTypeEnum = ParameterTypeEnum.TEXT
    label: str | None = None
    required: bool = False
    sql_format: SqlFormatEnum | None = None
    targets: DateRangeTargets | None = None
    default_value: Any = None
    options: list[ParameterOption] | None = None
    options_query_id: str | None = None
    depends_on: list[str] = Field(default_factory=list)
    empty_behavior: EmptyBehaviorEnum = EmptyBehaviorEnum.MISSING

    @field_validator("sql_format", mode="before")
    @classmethod
    def unknown_sql_format_is_raw(cls, v: Any) -> Any:
        # Unrecognized formats fall back to raw, which stays trust gated.
        if v is None or v == "":
            return None
        if isinstance(v, SqlFormatEnum):
            return v
        try:
            return SqlFormatEnum(v)
        except ValueError:
            return SqlFormatEnum.RAW

    @field_validator("empty_behavior", mode="before")
    @classmethod
    def blank_empty_behavior(cls, v: Any) -> Any:
        if v is None or v == "":
            return EmptyBehaviorEnum.MISSING
        return v


def parse_parameter_definitions(
    raw: list[dict[str, Any]] | None,
) -> list[ParameterDefinition]:
    """Validate a JSON list of definitions. Raises pydantic ValidationError."""
    if not raw:
        return []
    return [ParameterDefinition.model_validate(item) for item in raw]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ResolvedQuery(NamedTuple):
    """Resolved SQL plus the ordered, de-duplicated missing parameter names."""

    sql: str
    missing: tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        return not self.missing


class CatalogSet(NamedTuple):
    """Catalogs referenced by a query text plus its effective catalog."""

    referenced: tuple[str, ...] = ()
    effective_catalog: str = ""

    @property
    def required(self) -> tuple[str, ...]:
        out = list(self.referenced)
        if self.effective_catalog and self.effective_catalog not in out:
            out.append(self.effective_catalog)
        return tuple(out)


class WidgetDataResponse(SQLModel):
    """Result of running a widget query with parameters."""

    widget_id: str
    query_result: dict[str, Any] | None = None
    error: str | None = None
    required_parameters: list[str] = Field(default_factory=list)
    missing_parameters: list[str] = Field(default_factory=list)


class SavedQuery(SQLModel):
    """The parts of a saved query needed to run it."""

    id: uuid.UUID | None = None
    query_text: str
    catalog: str | None = None
    schema_name: str | None = None
