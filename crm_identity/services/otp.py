"""One-time passcodes: issue and verify single-use codes per contact and purpose.

A code is Issued (used=False, now < expires_at), then either Consumed
(used=True, terminal) or Expired (used=False, now >= expires_at). Expired is
never written; it is a comparison made at verification time.

Consumption is one conditional UPDATE guarded by used = false, so two
concurrent verifications of the same code cannot both succeed.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Protocol

from sqlalchemy import update
from sqlalchemy.orm import Session

from crm_identity.core.config import settings
from crm_identity.core.errors import (
    InputValidationError,
    OtpAlreadyUsedError,
    OtpExpiredError,
    OtpInvalidError,
)
from crm_identity.core.security import generate_otp_code
from crm_identity.models import OneTimePasscode
from crm_identity.schemas.otp import ContactType, OtpPurpose
from crm_identity.services.contact import detect_contact_type

logger = logging.getLogger(__name__)

MAX_OTP_CODE_LEN = 16


class OtpDeliverer(Protocol):
    """Sends an issued code to its contact (email, SMS, ...)."""

    def deliver(self, contact: str, code: str) -> None: ...


class LoggingOtpDeliverer:
    """Development deliverer: records that a code is ready, never the code itself."""

    def deliver(self, contact: str, code: str) -> None:
        logger.info("OTP ready for delivery to %s (%s digits)", contact, len(code))


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime (SQLite returns naive values)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _require_text(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        raise InputValidationError(f"{field} is required")
    return str(value).strip()


def _parse_purpose(purpose: OtpPurpose | str | None) -> OtpPurpose:
    if purpose is None:
        raise InputValidationError("OTP purpose is required")
    try:
        return OtpPurpose(purpose)
    except ValueError:
        raise InputValidationError(f"Unknown OTP purpose: {purpose}")


def _resolve_contact_type(contact: str, contact_type: ContactType | str | None) -> ContactType:
    detected = detect_contact_type(contact)
    if detected is None:
        raise InputValidationError("Invalid contact format. Must be email or phone number.")
    if contact_type is None:
        return detected
    try:
        requested = ContactType(contact_type)
    except ValueError:
        raise InputValidationError(f"Unknown contact type: {contact_type}")
    if requested != detected:
        raise InputValidationError(
            f"Contact is not a valid {requested.value.lower()} for contact type {requested.value}"
        )
    return requested


def issue_otp(
    session: Session,
    contact: str,
    purpose: OtpPurpose | str,
    ttl: timedelta | None = None,
    contact_type: ContactType | str | None = None,
    *,
    code: str | None = None,
    now: datetime | None = None,
    deliverer: OtpDeliverer | None = None,
    invalidate_previous: bool | None = None,
) -> OneTimePasscode:
    """
    Persist a new unused passcode expiring at now + ttl and hand it to the deliverer.

    Earlier codes for the same contact and purpose stay valid unless
    invalidate_previous (default: OTP_INVALIDATE_ON_REISSUE) is set.
    Raises InputValidationError for a blank or unrecognisable contact, an
    unknown purpose, or a non-positive ttl.
    """
    contact = _require_text(contact, "Contact")
    purpose_value = _parse_purpose(purpose)
    resolved_type = _resolve_contact_type(contact, contact_type)

    lifetime = ttl if ttl is not None else timedelta(minutes=settings.OTP_TTL_MINUTES)
    if lifetime <= timedelta(0):
        raise InputValidationError("OTP time-to-live must be positive")
    otp_code = _require_text(code, "OTP code") if code is not None else generate_otp_code()
    if len(otp_code) > MAX_OTP_CODE_LEN:
        raise InputValidationError(f"OTP code must be at most {MAX_OTP_CODE_LEN} characters")

    issued_at = _as_utc(now) if now is not None else _utcnow()
    if invalidate_previous is None:
        invalidate_previous = settings.OTP_INVALIDATE_ON_REISSUE

    expires_at = issued_at + lifetime
    otp = OneTimePasscode(
        contact=contact,
        contact_type=resolved_type.value,
        otp_code=otp_code,
        purpose=purpose_value.value,
        expires_at=expires_at,
        used=False,
    )
    try:
        if invalidate_previous:
            session.execute(
                update(OneTimePasscode)
                .where(
                    OneTimePasscode.contact == contact,
                    OneTimePasscode.purpose == purpose_value.value,
                    OneTimePasscode.used.is_(False),
                )
                .values(used=True)
                .execution_options(synchronize_session=False)
            )
        session.add(otp)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(
        "OTP issued: contact=%s contact_type=%s purpose=%s expires_at=%s",
        contact,
        resolved_type.value,
        purpose_value.value,
        expires_at.isoformat(),
    )
    if deliverer is not None:
        deliverer.deliver(contact, otp_code)
    return otp


def _consume(session: Session, otp_id: int, now: datetime) -> bool:
    """Flip used to True only if the row is still unused and unexpired. True if this call won."""
    result = session.execute(
        update(OneTimePasscode)
        .where(
            OneTimePasscode.id == otp_id,
            OneTimePasscode.used.is_(False),
            OneTimePasscode.expires_at > now,
        )
        .values(used=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _lost_consume_error(session: Session, otp_id: int) -> OtpAlreadyUsedError | OtpExpiredError:
    """Re-read a row another transaction changed under us and name why it can no longer be consumed."""
    otp = session.get(OneTimePasscode, otp_id, populate_existing=True)
    if otp is not None and otp.used:
        logger.warning("OTP verification lost a concurrent race: otp id=%s", otp_id)
        return OtpAlreadyUsedError("OTP code has already been used")
    logger.warning("OTP expired before it could be consumed: otp id=%s", otp_id)
    return OtpExpiredError("OTP code has expired")


def verify_otp(
    session: Session,
    contact: str,
    purpose: OtpPurpose | str,
    submitted_code: str,
    *,
    now: datetime | None = None,
) -> OneTimePasscode:
    """
    Consume the passcode matching contact, purpose and code.

    Raises OtpInvalidError when nothing matches, OtpAlreadyUsedError when every
    match is already consumed, and OtpExpiredError when the unused match is
    past expiry (the row is left unused). Returns the consumed row.
    """
    contact = _require_text(contact, "Contact")
    code = _require_text(submitted_code, "OTP code")
    purpose_value = _parse_purpose(purpose)
    current = _as_utc(now) if now is not None else _utcnow()

    matches = (
        session.query(OneTimePasscode)
        .filter(
            OneTimePasscode.contact == contact,
            OneTimePasscode.purpose == purpose_value.value,
            OneTimePasscode.otp_code == code,
        )
        .order_by(OneTimePasscode.id.desc())
        .all()
    )
    if not matches:
        logger.warning("OTP verification failed (invalid): contact=%s purpose=%s", contact, purpose_value.value)
        raise OtpInvalidError("Invalid OTP code")

    unused = [otp for otp in matches if not otp.used]
    if not unused:
        logger.warning("OTP verification failed (already used): contact=%s purpose=%s", contact, purpose_value.value)
        raise OtpAlreadyUsedError("OTP code has already been used")

    live = [otp for otp in unused if _as_utc(otp.expires_at) > current]
    if not live:
        logger.warning("OTP verification failed (expired): contact=%s purpose=%s", contact, purpose_value.value)
        raise OtpExpiredError("OTP code has expired")

    otp = live[0]
    otp_id = otp.id
    try:
        consumed = _consume(session, otp_id, current)
        if consumed:
            session.commit()
    except Exception:
        session.rollback()
        raise
    if not consumed:
        session.rollback()
        raise _lost_consume_error(session, otp_id)

    logger.info("OTP verified: contact=%s purpose=%s", contact, purpose_value.value)
    return otp
