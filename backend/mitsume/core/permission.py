"""
Role / catalog permission lookup.

get_user_allowed_catalogs(user_id) -> list of catalog names, or None when the
user holds the admin role (unrestricted).  This is the only I/O the catalog
guard performs.
"""

from __future__ import annotations

import uuid
from typing import Protocol

from sqlmodel import Session, select

from mitsume.core.catalog_guard import load_allowed_catalogs
from mitsume.core.config import settings
from mitsume.models_permission import (
    PermissionContext,
    PermissionLevelEnum,
    Role,
    RoleCatalogPermission,
    UserRoleLink,
)


class AllowedCatalogSource(Protocol):
    """Anything that can answer "which catalogs may this user query?"."""

    def get_user_allowed_catalogs(self, user_id: uuid.UUID) -> list[str] | None:
        """Allowed catalog names; ``None`` means every catalog."""
        ...


class RoleCatalogService:
    """AllowedCatalogSource backed by the role store tables."""

    def __init__(self, session: Session, *, admin_role_name: str | None = None) -> None:
        self.session = session
        self.admin_role_name = admin_role_name or settings.ADMIN_ROLE_NAME

    def get_user_role_ids(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        """Return role IDs assigned to the user."""
        stmt = select(UserRoleLink.role_id).where(UserRoleLink.user_id == user_id)
        return list(self.session.exec(stmt).all())

    def is_user_admin(self, user_id: uuid.UUID) -> bool:
        stmt = (
            select(Role.id)
            .join(UserRoleLink, UserRoleLink.role_id == Role.id)
            .where(UserRoleLink.user_id == user_id, Role.name == self.admin_role_name)
        )
        return self.session.exec(stmt).first() is not None

    def get_user_allowed_catalogs(self, user_id: uuid.UUID) -> list[str] | None:
        """
        Union of catalogs granted to the user's roles, sorted.
        Admin -> None (all catalogs).  No roles -> [] (nothing).
        """
        if self.is_user_admin(user_id):
            return None
        stmt = (
            select(RoleCatalogPermission.catalog_name)
            .join(UserRoleLink, UserRoleLink.role_id == RoleCatalogPermission.role_id)
            .where(UserRoleLink.user_id == user_id)
            .distinct()
            .order_by(RoleCatalogPermission.catalog_name)
        )
        return list(self.session.exec(stmt).all())

    def can_user_access_catalog(self, user_id: uuid.UUID, catalog: str) -> bool:
        allowed = self.get_user_allowed_catalogs(user_id)
        if allowed is None:
            return True
        return catalog in allowed

    def set_role_catalogs(self, role_id: uuid.UUID, catalogs: list[str]) -> list[str]:
        """Replace the catalogs granted to a role. Returns the stored names."""
        existing = self.session.exec(
            select(RoleCatalogPermission).where(RoleCatalogPermission.role_id == role_id)
        ).all()
        for row in existing:
            self.session.delete(row)
        names: list[str] = []
        for c in catalogs:
            c = (c or "").strip()
            if c and c not in names:
                names.append(c)
                self.session.add(RoleCatalogPermission(role_id=role_id, catalog_name=c))
        self.session.commit()
        return names


def build_permission_context(
    source: AllowedCatalogSource,
    user_id: uuid.UUID,
    permission_level: PermissionLevelEnum | str = PermissionLevelEnum.VIEW,
) -> PermissionContext:
    """Look up the user's catalogs once and wrap them with the permission level.

    A failing lookup raises PermissionLookupError, as in enforce_catalog_access.
    """
    return PermissionContext(
        user_id=user_id,
        allowed_catalogs=load_allowed_catalogs(source, user_id),
        permission_level=PermissionLevelEnum(permission_level),
    )
