"""Schemas and enums for one-time passcodes."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ContactType(str, Enum):
    """Channel a passcode is bound to."""

    EMAIL = "EMAIL"
    PHONE = "PHONE"


class OtpPurpose(str, Enum):
    """Flow a passcode belongs to; codes for different purposes never interfere."""

    LOGIN = "LOGIN"
    LOGIN_BACKOFFICE = "LOGIN_BACKOFFICE"
    LOGIN_USER = "LOGIN_USER"
    RESET_PASSWORD = "RESET_PASSWORD"


class OtpIssueRequest(BaseModel):
    """Request to issue a passcode for a contact."""

    contact: str = Field(..., min_length=1, max_length=255, description="Email address or phone number")
    purpose: OtpPurpose = Field(..., description="Flow the code is issued for")
    contact_type: ContactType | None = Field(
        default=None, description="Detected from the contact when omitted"
    )


class OtpIssueResponse(BaseModel):
    """Issued passcode metadata. The code itself is only handed to the deliverer."""

    contact: str
    contact_type: ContactType
    purpose: OtpPurpose
    expires_at: datetime


class OtpVerifyRequest(BaseModel):
    """Submitted passcode."""

    contact: str = Field(..., min_length=1, max_length=255)
    purpose: OtpPurpose
    otp_code: str = Field(..., min_length=1, max_length=16)


class OtpVerifyResponse(BaseModel):
    """Successful verification."""

    verified: bool = True
    contact: str
    purpose: OtpPurpose
