"""OTP-gated login, password recovery, and auth dependencies (get_current_principal, require_admin)."""

from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from crm_identity.core.config import get_settings
from crm_identity.core.database import get_db
from crm_identity.core.security import decode_access_token
from crm_identity.models import Credential
from crm_identity.schemas.auth import (
    CurrentPrincipal,
    ForgotPasswordRequest,
    LoginRequest,
    LoginStartedResponse,
    LoginVerifyRequest,
    MessageResponse,
    ResendOtpRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from crm_identity.schemas.otp import OtpPurpose
from crm_identity.services.auth_flows import (
    complete_login,
    request_password_reset,
    resend_login_otp,
    reset_password,
    start_login,
)
from crm_identity.services.auth_roles import active_role_names
from crm_identity.services.credentials import is_active_credential_by_auth_id
from crm_identity.services.otp import LoggingOtpDeliverer, OtpDeliverer

router = APIRouter()
security = HTTPBearer(auto_error=False)

ADMIN_ROLE = "ADMIN"


def get_otp_deliverer() -> OtpDeliverer:
    """Dependency: the collaborator that sends passcodes. Override in tests or deployments."""
    return LoggingOtpDeliverer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


Db = Annotated[Session, Depends(get_db)]
Deliverer = Annotated[OtpDeliverer, Depends(get_otp_deliverer)]


def _token(access_token: str) -> TokenResponse:
    return TokenResponse(access_token=access_token, token_type="bearer")


@router.post("/login", response_model=LoginStartedResponse)
def login(body: LoginRequest, db: Db, deliverer: Deliverer) -> LoginStartedResponse:
    """
    Check email/username/phone and password; on success a one-time passcode is
    sent to the registered phone (phone logins) or email. Exchange it at /auth/login/verify.
    """
    return LoginStartedResponse.sent_to(start_login(db, body.login, body.password, deliverer))


@router.post("/login/verify", response_model=TokenResponse)
def verify_login(body: LoginVerifyRequest, db: Db) -> TokenResponse:
    """
    Exchange a LOGIN passcode for a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    return _token(complete_login(db, body.contact, body.otp_code))


@router.post("/login/resend", response_model=LoginStartedResponse)
def resend_login(body: ResendOtpRequest, db: Db, deliverer: Deliverer) -> LoginStartedResponse:
    return LoginStartedResponse.sent_to(resend_login_otp(db, body.login, deliverer))


@router.post("/login/backoffice", response_model=LoginStartedResponse)
def login_backoffice(body: LoginRequest, db: Db, deliverer: Deliverer) -> LoginStartedResponse:
    """Back-office login: active ADMIN credentials only. 401 for anyone else."""
    contact_type = start_login(
        db, body.login, body.password, deliverer, purpose=OtpPurpose.LOGIN_BACKOFFICE
    )
    return LoginStartedResponse.sent_to(contact_type)


@router.post("/login/backoffice/verify", response_model=TokenResponse)
def verify_login_backoffice(body: LoginVerifyRequest, db: Db) -> TokenResponse:
    return _token(
        complete_login(db, body.contact, body.otp_code, purpose=OtpPurpose.LOGIN_BACKOFFICE)
    )


@router.post("/login/backoffice/resend", response_model=LoginStartedResponse)
def resend_login_backoffice(
    body: ResendOtpRequest, db: Db, deliverer: Deliverer
) -> LoginStartedResponse:
    contact_type = resend_login_otp(db, body.login, deliverer, purpose=OtpPurpose.LOGIN_BACKOFFICE)
    return LoginStartedResponse.sent_to(contact_type)


@router.post("/login/user", response_model=LoginStartedResponse)
def login_user(body: LoginRequest, db: Db, deliverer: Deliverer) -> LoginStartedResponse:
    """User-app login: active USER credentials only."""
    contact_type = start_login(
        db, body.login, body.password, deliverer, purpose=OtpPurpose.LOGIN_USER
    )
    return LoginStartedResponse.sent_to(contact_type)


@router.post("/login/user/verify", response_model=TokenResponse)
def verify_login_user(body: LoginVerifyRequest, db: Db) -> TokenResponse:
    return _token(complete_login(db, body.contact, body.otp_code, purpose=OtpPurpose.LOGIN_USER))


@router.post("/login/user/resend", response_model=LoginStartedResponse)
def resend_login_user(body: ResendOtpRequest, db: Db, deliverer: Deliverer) -> LoginStartedResponse:
    contact_type = resend_login_otp(db, body.login, deliverer, purpose=OtpPurpose.LOGIN_USER)
    return LoginStartedResponse.sent_to(contact_type)


@router.post("/password/forgot", response_model=MessageResponse)
def forgot_password(body: ForgotPasswordRequest, db: Db, deliverer: Deliverer) -> MessageResponse:
    """
    Send a reset code to the email (or phone, for phone logins) on file.
    Registered and unregistered logins get the same answer; inactive accounts get 401.
    """
    request_password_reset(db, body.contact, deliverer)
    return MessageResponse(message="If the contact is registered, a reset code has been sent.")


@router.post("/password/reset", response_model=MessageResponse)
def password_reset(body: ResetPasswordRequest, db: Db) -> MessageResponse:
    reset_password(db, body.contact, body.otp_code, body.new_password)
    return MessageResponse(message="Password updated.")


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentPrincipal:
    """
    Dependency: require a valid Bearer JWT for an active credential.
    Raises 401 if missing or invalid. With AUTH_ENABLED=false a synthetic admin is returned.
    """
    if not get_settings().AUTH_ENABLED:
        return CurrentPrincipal(id=0, username="dev", roles=[ADMIN_ROLE])
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise _unauthorized("Invalid or expired token")
    try:
        auth_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token payload")
    if not is_active_credential_by_auth_id(db, auth_id):
        raise _unauthorized("Credential not found or inactive")
    credential = db.get(Credential, auth_id)
    return CurrentPrincipal(
        id=credential.id,
        username=credential.username,
        roles=active_role_names(db, auth_id),
    )


def require_admin(
    current: Annotated[CurrentPrincipal, Depends(get_current_principal)],
) -> CurrentPrincipal:
    """Dependency: require an authenticated credential holding the ADMIN role. Raises 403 otherwise."""
    if ADMIN_ROLE not in current.roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current
