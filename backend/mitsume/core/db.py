from sqlmodel import Session, SQLModel, create_engine, select

from mitsume.core.config import settings
from mitsume.models_permission import Role

engine = create_engine(str(settings.SQLALCHEMY_DATABASE_URI))


def init_db(session: Session) -> None:
    """Create role store tables and the system admin role if absent."""
    SQLModel.metadata.create_all(session.get_bind())

    admin = session.exec(
        select(Role).where(Role.name == settings.ADMIN_ROLE_NAME)
    ).first()
    if admin is None:
        admin = Role(
            name=settings.ADMIN_ROLE_NAME,
            description="Full access to all catalogs",
            is_system=True,
        )
        session.add(admin)
        session.commit()
