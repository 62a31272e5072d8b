"""ORM model for one-time passcodes."""

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, false, func

from crm_identity.models.base import Base


class OneTimePasscode(Base):
    """
    Short-lived, single-use verification code bound to a contact and a purpose.

    Only `used` ever changes after insert, and only from False to True.
    Expiry is derived from expires_at at verification time; it is not stored.
    """

    __tablename__ = "one_time_passcodes"
    __table_args__ = (
        Index("ix_one_time_passcodes_lookup", "contact", "purpose", "otp_code"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    contact = Column(String(255), nullable=False)
    contact_type = Column(String(16), nullable=False)
    otp_code = Column(String(16), nullable=False)
    purpose = Column(String(32), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    used = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
