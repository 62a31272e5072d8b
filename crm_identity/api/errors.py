"""Map identity-core errors to HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from crm_identity.core.errors import (
    AuthenticationError,
    ConflictError,
    IdentityError,
    InputValidationError,
    NotFoundError,
    OtpRejectedError,
)

# First match wins; order subclasses before their bases.
ERROR_STATUS_CODES: tuple[tuple[type[IdentityError], int], ...] = (
    (InputValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (OtpRejectedError, status.HTTP_400_BAD_REQUEST),
)


def status_code_for(exc: IdentityError) -> int:
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
    content: dict[str, str] = {"detail": exc.message}
    if isinstance(exc, OtpRejectedError):
        content["reason"] = exc.reason
    return JSONResponse(status_code=status_code_for(exc), content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IdentityError, identity_error_handler)
