"""ORM model for lifecycle states (ACTIVE, INACTIVE, PENDING, ELIMINATED)."""

from sqlalchemy import Column, DateTime, Integer, String, func

from crm_identity.models.base import Base


class LifecycleState(Base):
    """
    Reference row naming a lifecycle status.

    Seeded at bootstrap and read-only afterwards. Every soft-deletable entity
    points at one of these by id.
    """

    __tablename__ = "lifecycle_states"

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

    def __repr__(self) -> str:
        return f"<LifecycleState id={self.id} name={self.name!r}>"
