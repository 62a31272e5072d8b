"""Request/response schemas for login and password recovery endpoints."""

from pydantic import BaseModel, Field

from crm_identity.schemas.otp import ContactType


class LoginRequest(BaseModel):
    """Credentials for the first login step (email, username or phone)."""

    login: str = Field(..., min_length=1, max_length=255, description="Email, username or phone")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class LoginStartedResponse(BaseModel):
    """First login step accepted; a passcode was sent to the registered email or phone."""

    otp_required: bool = True
    contact_type: ContactType = Field(..., description="Channel the passcode was sent to")
    message: str

    @classmethod
    def sent_to(cls, contact_type: ContactType) -> "LoginStartedResponse":
        channel = "email" if contact_type == ContactType.EMAIL else "phone"
        return cls(
            contact_type=contact_type,
            message=f"OTP sent to your registered {channel}. Please check and enter the code.",
        )


class ResendOtpRequest(BaseModel):
    """Ask for a new login passcode (email, username or phone)."""

    login: str = Field(..., min_length=1, max_length=255, description="Email, username or phone")


class LoginVerifyRequest(BaseModel):
    """Second login step: the passcode and the contact it was sent to."""

    contact: str = Field(..., min_length=1, max_length=255)
    otp_code: str = Field(..., min_length=1, max_length=16)


class TokenResponse(BaseModel):
    """JWT access token returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class ForgotPasswordRequest(BaseModel):
    """Start password recovery for a login (email, username or phone)."""

    contact: str = Field(..., min_length=1, max_length=255, description="Email, username or phone")


class ResetPasswordRequest(BaseModel):
    """Finish password recovery with the received passcode."""

    contact: str = Field(..., min_length=1, max_length=255)
    otp_code: str = Field(..., min_length=1, max_length=16)
    new_password: str = Field(..., min_length=8, max_length=128)


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class CurrentPrincipal(BaseModel):
    """Authenticated credential (id, username, roles) for dependency injection."""

    id: int
    username: str
    roles: list[str] = Field(default_factory=list)
