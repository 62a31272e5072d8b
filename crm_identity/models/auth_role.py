"""ORM model for role assignments (credential <-> role), soft-deleted via lifecycle state."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, func, text
from sqlalchemy.orm import relationship

from crm_identity.core.config import settings
from crm_identity.models.base import Base

# Partial unique index predicate: a pair may repeat only among eliminated rows.
ACTIVE_PAIR_PREDICATE = text(f"state_id <> {int(settings.ELIMINATED_STATE_ID)}")
ACTIVE_PAIR_INDEX_NAME = "uq_auth_role_assignments_active_pair"


class AuthRole(Base):
    """
    Grant of a role to a credential.

    Among rows not in the eliminated state, (auth_id, role_id) is unique; the
    partial unique index is the source of truth for that rule.
    """

    __tablename__ = "auth_role_assignments"
    __table_args__ = (
        Index(
            ACTIVE_PAIR_INDEX_NAME,
            "auth_id",
            "role_id",
            unique=True,
            postgresql_where=ACTIVE_PAIR_PREDICATE,
            sqlite_where=ACTIVE_PAIR_PREDICATE,
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    auth_id = Column(Integer, ForeignKey("credentials.id"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)
    state_id = Column(Integer, ForeignKey("lifecycle_states.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    credential = relationship("Credential", back_populates="role_assignments")
    role = relationship("Role")
    state = relationship("LifecycleState")
