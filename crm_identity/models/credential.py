"""ORM model for principal credentials (email, username, password hash)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from crm_identity.models.base import Base


class Credential(Base):
    """
    Login credential owned by one principal (admin, user, ...).

    entity_type: kind of principal that owns the credential, e.g. 'ADMIN' or 'USER'
    linked_id: id of the owning principal row, when the principal lives elsewhere
    """

    __tablename__ = "credentials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    contact = Column(String(32), nullable=True, index=True)
    entity_type = Column(String(32), nullable=False, default="USER")
    linked_id = Column(Integer, nullable=True)
    state_id = Column(Integer, ForeignKey("lifecycle_states.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    state = relationship("LifecycleState")
    role_assignments = relationship("AuthRole", back_populates="credential")
