"""
Catalog access enforcement for SQL about to be executed.

Required catalogs = catalogs referenced in the SQL text + the effective
catalog.  A restricted caller must hold every one of them; the request is
rejected as a whole otherwise (catalogs are never stripped or rewritten).
``SHOW CATALOGS`` is refused for restricted callers; they list catalogs
through ``filter_catalogs`` instead.

Denial messages are deliberately generic: the denied catalog names go to the
server log only.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Collection, Iterable
from typing import TYPE_CHECKING

from mitsume.engines.sql.catalogs import extract_referenced_catalogs, is_show_catalogs
from mitsume.models_params import CatalogSet

if TYPE_CHECKING:
    from mitsume.core.permission import AllowedCatalogSource

_log = logging.getLogger(__name__)


class CatalogGuardError(PermissionError):
    """Base class: the query must not be executed."""

    pass


class CatalogAccessDenied(CatalogGuardError):
    def __init__(self, message: str = "access denied to catalog") -> None:
        super().__init__(message)


class ShowCatalogsForbidden(CatalogGuardError):
    def __init__(
        self, message: str = "SHOW CATALOGS is not allowed; use the catalogs API instead"
    ) -> None:
        super().__init__(message)


class PermissionLookupError(CatalogGuardError):
    """The role service failed; treated as a denial."""

    def __init__(self, message: str = "failed to load catalog permissions") -> None:
        super().__init__(message)


def referenced_catalog_set(query: str, effective_catalog: str = "") -> CatalogSet:
    return CatalogSet(
        referenced=tuple(extract_referenced_catalogs(query)),
        effective_catalog=effective_catalog or "",
    )


def user_can_access_catalogs(
    allowed_catalogs: Collection[str] | None,
    catalogs: Iterable[str],
) -> bool:
    """True if every catalog is allowed. ``None`` allowed means unrestricted."""
    if allowed_catalogs is None:
        return True
    allowed = set(allowed_catalogs)
    return all(c in allowed for c in catalogs)


def check_catalog_access(
    allowed_catalogs: Collection[str] | None,
    query: str,
    effective_catalog: str = "",
) -> None:
    """Raise CatalogGuardError unless the caller may run *query*.

    - ``allowed_catalogs is None`` (unrestricted) -> always allowed.
    - ``SHOW CATALOGS`` -> ShowCatalogsForbidden.
    - Any referenced or effective catalog not allowed -> CatalogAccessDenied.
    """
    if allowed_catalogs is None:
        return
    if is_show_catalogs(query):
        raise ShowCatalogsForbidden()

    required = referenced_catalog_set(query, effective_catalog).required
    allowed = set(allowed_catalogs)
    denied = [c for c in required if c not in allowed]
    if denied:
        _log.warning("Catalog access denied: %s", ", ".join(denied))
        raise CatalogAccessDenied()


def load_allowed_catalogs(source: AllowedCatalogSource, user_id: uuid.UUID) -> list[str] | None:
    """Allowed catalogs for *user_id*; a failing lookup raises PermissionLookupError.

    TimeoutError propagates unchanged.
    """
    try:
        return source.get_user_allowed_catalogs(user_id)
    except TimeoutError:
        raise
    except Exception as e:
        _log.exception("Catalog permission lookup failed for user %s", user_id)
        raise PermissionLookupError() from e


def enforce_catalog_access(
    source: AllowedCatalogSource | None,
    user_id: uuid.UUID,
    query: str,
    effective_catalog: str = "",
) -> None:
    """Look up the user's catalogs and check *query* against them.

    ``source is None`` means catalog permissions are not configured (no
    restriction).  A failing lookup raises PermissionLookupError; it is never
    treated as allowed.
    """
    if source is None:
        return
    allowed = load_allowed_catalogs(source, user_id)
    check_catalog_access(allowed, query, effective_catalog)


def filter_catalogs(
    available: Iterable[str],
    allowed_catalogs: Collection[str] | None,
) -> list[str]:
    """Catalogs from *available* the caller may see, in *available* order."""
    if allowed_catalogs is None:
        return list(available)
    allowed = set(allowed_catalogs)
    return [c for c in available if c in allowed]
