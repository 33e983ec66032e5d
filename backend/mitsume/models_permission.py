"""
Role / catalog permission models.

Role, UserRoleLink, RoleCatalogPermission (role store tables) plus the
per-request PermissionContext handed to the parameter resolver and the
catalog guard.

A user holding the admin role (settings.ADMIN_ROLE_NAME) may query every
catalog; everyone else is limited to the union of their roles' catalogs.
"""

import uuid
from collections.abc import Iterable
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class PermissionLevelEnum(str, Enum):
    """Dashboard permission level of the caller."""

    NONE = ""
    VIEW = "view"
    EDIT = "edit"
    OWNER = "owner"

    @property
    def can_view(self) -> bool:
        return self in (PermissionLevelEnum.VIEW, PermissionLevelEnum.EDIT, PermissionLevelEnum.OWNER)

    @property
    def can_edit(self) -> bool:
        return self in (PermissionLevelEnum.EDIT, PermissionLevelEnum.OWNER)


# ---------------------------------------------------------------------------
# Link tables
# ---------------------------------------------------------------------------


class UserRoleLink(SQLModel, table=True):
    """User <-> Role many-to-many."""

    __tablename__ = "user_role_link"
    __table_args__ = (UniqueConstraint("user_id", "role_id", name="uq_user_role"),)

    user_id: uuid.UUID = Field(primary_key=True)
    role_id: uuid.UUID = Field(foreign_key="role.id", primary_key=True)
    assigned_at: datetime = Field(default_factory=_utc_now)


class RoleCatalogPermission(SQLModel, table=True):
    """Grants a role read access to one data-source catalog."""

    __tablename__ = "role_catalog_permission"
    __table_args__ = (
        UniqueConstraint("role_id", "catalog_name", name="uq_role_catalog"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    role_id: uuid.UUID = Field(foreign_key="role.id", index=True)
    catalog_name: str = Field(max_length=255, index=True)
    created_at: datetime = Field(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# Role
# ---------------------------------------------------------------------------


class Role(SQLModel, table=True):
    __tablename__ = "role"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=100, unique=True, index=True)
    description: str | None = Field(default=None, max_length=255)
    is_system: bool = Field(default=False)
    created_at: datetime = Field(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# Per-request context
# ---------------------------------------------------------------------------


class PermissionContext:
    """Caller identity, allowed catalogs and dashboard permission level.

    ``allowed_catalogs is None`` means unrestricted (admin).  An empty set is
    a restricted caller with no catalog grants.
    """

    __slots__ = ("user_id", "allowed_catalogs", "permission_level")

    def __init__(
        self,
        *,
        user_id: uuid.UUID,
        allowed_catalogs: Iterable[str] | None,
        permission_level: PermissionLevelEnum = PermissionLevelEnum.VIEW,
    ) -> None:
        self.user_id = user_id
        self.allowed_catalogs: frozenset[str] | None = (
            None if allowed_catalogs is None else frozenset(allowed_catalogs)
        )
        self.permission_level = PermissionLevelEnum(permission_level)

    @property
    def unrestricted(self) -> bool:
        return self.allowed_catalogs is None

    @property
    def trusted(self) -> bool:
        """Edit capability relaxes raw-format validation."""
        return self.permission_level.can_edit

    def __repr__(self) -> str:
        return (
            f"PermissionContext(user_id={self.user_id!s}, "
            f"allowed_catalogs={None if self.allowed_catalogs is None else sorted(self.allowed_catalogs)}, "
            f"permission_level={self.permission_level.value!r})"
        )
