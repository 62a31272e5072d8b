"""Domain errors raised by the identity core.

The API layer maps these to HTTP responses; services never raise HTTPException.
"""


class IdentityError(Exception):
    """Base class for all identity-core failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InputValidationError(IdentityError):
    """Raised when a required field is missing, blank, or malformed."""


class NotFoundError(IdentityError):
    """Raised when an id does not resolve or a state assertion does not match."""


class ConflictError(IdentityError):
    """Raised on a uniqueness violation (duplicate role pair, email or username)."""


class AuthenticationError(IdentityError):
    """Raised when credentials are wrong or the credential is not active."""


class OtpRejectedError(IdentityError):
    """Base class for rejected passcode verification attempts."""

    reason = "rejected"


class OtpInvalidError(OtpRejectedError):
    """No passcode matches the submitted contact, purpose and code."""

    reason = "invalid"


class OtpExpiredError(OtpRejectedError):
    """The matching passcode exists and is unused but past its expiry."""

    reason = "expired"


class OtpAlreadyUsedError(OtpRejectedError):
    """The matching passcode was already consumed."""

    reason = "already_used"
