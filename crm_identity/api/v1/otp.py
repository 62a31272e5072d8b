"""Passcode issue/verify endpoints for verification-flow orchestrators (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from crm_identity.api.v1.auth import get_otp_deliverer, require_admin
from crm_identity.core.database import get_db
from crm_identity.schemas.auth import CurrentPrincipal
from crm_identity.schemas.otp import (
    ContactType,
    OtpIssueRequest,
    OtpIssueResponse,
    OtpPurpose,
    OtpVerifyRequest,
    OtpVerifyResponse,
)
from crm_identity.services.otp import OtpDeliverer, issue_otp, verify_otp

router = APIRouter()


@router.post("/issue", response_model=OtpIssueResponse, status_code=status.HTTP_201_CREATED)
def issue(
    body: OtpIssueRequest,
    _admin: Annotated[CurrentPrincipal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    deliverer: Annotated[OtpDeliverer, Depends(get_otp_deliverer)],
) -> OtpIssueResponse:
    """Issue a code and hand it to the deliverer. The code is never returned."""
    otp = issue_otp(
        db,
        body.contact,
        body.purpose,
        contact_type=body.contact_type,
        deliverer=deliverer,
    )
    return OtpIssueResponse(
        contact=otp.contact,
        contact_type=ContactType(otp.contact_type),
        purpose=OtpPurpose(otp.purpose),
        expires_at=otp.expires_at,
    )


@router.post("/verify", response_model=OtpVerifyResponse)
def verify(
    body: OtpVerifyRequest,
    _admin: Annotated[CurrentPrincipal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> OtpVerifyResponse:
    """Consume a code. 400 with reason invalid, expired or already_used on rejection."""
    verify_otp(db, body.contact, body.purpose, body.otp_code)
    return OtpVerifyResponse(contact=body.contact.strip(), purpose=body.purpose)
