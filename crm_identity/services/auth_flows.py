"""Login and password-recovery flows built on credentials and one-time passcodes.

Three login channels share one two-step shape (password, then passcode) and
differ only in the passcode purpose and in who may use them:

- LOGIN: any active credential.
- LOGIN_BACKOFFICE: active ADMIN credentials.
- LOGIN_USER: active USER credentials.

A passcode goes to the phone on file when the login was a phone number and to
the email otherwise.
"""

import logging

from sqlalchemy.orm import Session

from crm_identity.core.errors import AuthenticationError, InputValidationError, NotFoundError
from crm_identity.core.security import create_access_token
from crm_identity.models import Credential
from crm_identity.schemas.otp import ContactType, OtpPurpose
from crm_identity.services.auth_roles import active_role_names
from crm_identity.services.contact import is_phone
from crm_identity.services.credentials import (
    authenticate_credential,
    find_credential_by_login,
    is_active_credential_by_auth_id,
    update_auth_for_entity,
    validate_new_password,
)
from crm_identity.services.lifecycle import DEFAULT_ACTIVE_STATE_ID
from crm_identity.services.otp import OtpDeliverer, issue_otp, verify_otp

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"
INACTIVE_ACCOUNT_MESSAGE = "Account is inactive. Contact support."

# Login purpose -> entity_type allowed to use it (None: any).
LOGIN_CHANNELS: dict[OtpPurpose, str | None] = {
    OtpPurpose.LOGIN: None,
    OtpPurpose.LOGIN_BACKOFFICE: "ADMIN",
    OtpPurpose.LOGIN_USER: "USER",
}

ACCESS_DENIED_MESSAGES = {
    "ADMIN": "Access denied. Only admin users can access back office",
    "USER": "Access denied. Only regular users can access this endpoint",
}


def _login_purpose(purpose: OtpPurpose | str) -> OtpPurpose:
    try:
        value = OtpPurpose(purpose)
    except ValueError:
        raise InputValidationError(f"Unknown login purpose: {purpose}")
    if value not in LOGIN_CHANNELS:
        raise InputValidationError(f"{value.value} is not a login purpose")
    return value


def contact_to_send(credential: Credential, login: str) -> str:
    """Phone on file for phone logins, registered email for everything else."""
    if credential.contact and is_phone(login):
        return credential.contact
    return credential.email


def _ensure_channel_access(session: Session, credential: Credential, purpose: OtpPurpose) -> None:
    if credential.state_id != DEFAULT_ACTIVE_STATE_ID:
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    entity_type = LOGIN_CHANNELS[purpose]
    if entity_type is not None and not is_active_credential_by_auth_id(
        session, credential.id, entity_type
    ):
        logger.warning(
            "Login channel %s refused for credential id=%s (entity_type=%s)",
            purpose.value,
            credential.id,
            credential.entity_type,
        )
        raise AuthenticationError(ACCESS_DENIED_MESSAGES[entity_type])


def _send_login_code(
    session: Session,
    credential: Credential,
    login: str,
    purpose: OtpPurpose,
    deliverer: OtpDeliverer,
) -> ContactType:
    otp = issue_otp(session, contact_to_send(credential, login), purpose, deliverer=deliverer)
    logger.info("Login OTP sent: credential id=%s purpose=%s", credential.id, purpose.value)
    return ContactType(otp.contact_type)


def start_login(
    session: Session,
    login: str,
    raw_password: str,
    deliverer: OtpDeliverer,
    purpose: OtpPurpose | str = OtpPurpose.LOGIN,
) -> ContactType:
    """
    First login step: check the password and the channel, then send a code.

    Returns the channel the code went to. Raises AuthenticationError on bad
    credentials, an inactive credential, or an entity_type the channel refuses.
    """
    purpose = _login_purpose(purpose)
    credential = authenticate_credential(session, login, raw_password)
    if credential is None:
        logger.warning("Login failed for %s", login)
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    _ensure_channel_access(session, credential, purpose)
    return _send_login_code(session, credential, login, purpose, deliverer)


def resend_login_otp(
    session: Session,
    login: str,
    deliverer: OtpDeliverer,
    purpose: OtpPurpose | str = OtpPurpose.LOGIN,
) -> ContactType:
    """Send a fresh login code without asking for the password again."""
    purpose = _login_purpose(purpose)
    credential = find_credential_by_login(session, login)
    if credential is None:
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    _ensure_channel_access(session, credential, purpose)
    return _send_login_code(session, credential, login, purpose, deliverer)


def complete_login(
    session: Session,
    contact: str,
    otp_code: str,
    purpose: OtpPurpose | str = OtpPurpose.LOGIN,
) -> str:
    """
    Second login step: consume the code and return an access token.

    OTP rejections propagate unchanged; a credential that is unknown, inactive
    or refused by the channel behind a valid code is an AuthenticationError.
    """
    purpose = _login_purpose(purpose)
    verify_otp(session, contact, purpose, otp_code)
    credential = find_credential_by_login(session, contact)
    if credential is None:
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    _ensure_channel_access(session, credential, purpose)
    roles = active_role_names(session, credential.id)
    logger.info("Login completed: credential id=%s purpose=%s", credential.id, purpose.value)
    return create_access_token(sub=credential.id, roles=roles)


def request_password_reset(session: Session, login: str, deliverer: OtpDeliverer) -> None:
    """
    Send a RESET_PASSWORD code to the credential behind login (email, username
    or phone). Unknown logins are ignored; inactive credentials are refused.
    """
    credential = find_credential_by_login(session, login)
    if credential is None:
        logger.info("Password reset requested for unknown login")
        return
    if credential.state_id != DEFAULT_ACTIVE_STATE_ID:
        raise AuthenticationError(INACTIVE_ACCOUNT_MESSAGE)
    issue_otp(
        session,
        contact_to_send(credential, login),
        OtpPurpose.RESET_PASSWORD,
        deliverer=deliverer,
    )
    logger.info("Password reset OTP sent for credential id=%s", credential.id)


def reset_password(session: Session, contact: str, otp_code: str, new_password: str) -> None:
    """
    Consume a RESET_PASSWORD code and store the new password hash.

    The password and the credential are checked before the code is consumed,
    so a rejected request leaves the code usable.
    """
    new_password = validate_new_password(new_password)
    credential = find_credential_by_login(session, contact)
    if credential is None:
        raise NotFoundError("No credential is registered for this contact")
    if credential.state_id != DEFAULT_ACTIVE_STATE_ID:
        raise AuthenticationError(INACTIVE_ACCOUNT_MESSAGE)
    verify_otp(session, contact, OtpPurpose.RESET_PASSWORD, otp_code)
    update_auth_for_entity(
        session,
        credential,
        email=credential.email,
        raw_password=new_password,
        phone=credential.contact,
    )
    logger.info("Password reset for credential id=%s", credential.id)
