"""Test helpers for roles and catalog grants."""

import uuid

from sqlmodel import Session, select

from mitsume.core.config import settings
from mitsume.models_permission import Role, RoleCatalogPermission, UserRoleLink
from tests.utils.utils import random_lower_string


def create_random_role(
    db: Session,
    *,
    name: str | None = None,
    catalogs: list[str] | None = None,
) -> Role:
    role = Role(name=name or f"role-{random_lower_string()}")
    db.add(role)
    db.commit()
    db.refresh(role)
    for c in catalogs or []:
        db.add(RoleCatalogPermission(role_id=role.id, catalog_name=c))
    db.commit()
    return role


def assign_role(db: Session, user_id: uuid.UUID, role: Role) -> None:
    db.add(UserRoleLink(user_id=user_id, role_id=role.id))
    db.commit()


def get_admin_role(db: Session) -> Role:
    return db.exec(select(Role).where(Role.name == settings.ADMIN_ROLE_NAME)).one()
