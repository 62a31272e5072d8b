"""ORM model for roles granted to credentials."""

from sqlalchemy import Column, DateTime, Integer, String, func

from crm_identity.models.base import Base


class Role(Base):
    """Named role (e.g. ADMIN, USER). Reference data; assignments live in auth_role_assignments."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), nullable=False, unique=True)
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
