"""Passcode cleanup: delete one-time passcodes well past their expiry."""

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from crm_identity.models import OneTimePasscode

if TYPE_CHECKING:
    from crm_identity.core.config import Settings

logger = logging.getLogger(__name__)


def run_otp_cleanup(session: Session, settings: "Settings", now: datetime | None = None) -> int:
    """
    Delete passcodes that expired more than OTP_CLEANUP_GRACE_MINUTES ago.

    Returns the number of rows deleted. Idempotent: safe to run repeatedly.
    """
    if not settings.OTP_CLEANUP_ENABLED:
        logger.info("OTP cleanup is disabled (OTP_CLEANUP_ENABLED=false); skipping.")
        return 0

    current = now or datetime.now(timezone.utc)
    cutoff = current - timedelta(minutes=settings.OTP_CLEANUP_GRACE_MINUTES)
    deleted_count = (
        session.query(OneTimePasscode)
        .filter(OneTimePasscode.expires_at < cutoff)
        .delete(synchronize_session=False)
    )
    session.commit()

    if deleted_count > 0:
        logger.info(
            "OTP cleanup run: cutoff=%s, passcodes_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
