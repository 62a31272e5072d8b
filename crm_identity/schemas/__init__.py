"""Pydantic request/response schemas."""

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
from crm_identity.schemas.auth_roles import AuthRolesDto, AuthRolesResponse
from crm_identity.schemas.health import HealthResponse
from crm_identity.schemas.lifecycle import LifecycleStateResponse
from crm_identity.schemas.otp import (
    ContactType,
    OtpIssueRequest,
    OtpIssueResponse,
    OtpPurpose,
    OtpVerifyRequest,
    OtpVerifyResponse,
)

__all__ = [
    "AuthRolesDto",
    "AuthRolesResponse",
    "ContactType",
    "CurrentPrincipal",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LifecycleStateResponse",
    "LoginRequest",
    "LoginStartedResponse",
    "LoginVerifyRequest",
    "MessageResponse",
    "OtpIssueRequest",
    "OtpIssueResponse",
    "OtpPurpose",
    "OtpVerifyRequest",
    "OtpVerifyResponse",
    "ResendOtpRequest",
    "ResetPasswordRequest",
    "TokenResponse",
]
