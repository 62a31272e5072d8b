"""
CLI entrypoint for the expired-passcode cleanup job. Run from cron, e.g.:

  python -m crm_identity.otp_cleanup

Or every 15 minutes: */15 * * * * cd /path/to/crm-identity && .venv/bin/python -m crm_identity.otp_cleanup
"""

import logging
import sys

from crm_identity.core.config import get_settings
from crm_identity.core.database import SessionLocal
from crm_identity.services.otp_cleanup import run_otp_cleanup

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete passcodes expired for longer than OTP_CLEANUP_GRACE_MINUTES."""
    settings = get_settings()
    db = SessionLocal()
    try:
        deleted = run_otp_cleanup(db, settings)
        logger.info("OTP cleanup completed: passcodes_deleted=%s", deleted)
        return 0
    except Exception as e:
        logger.exception("OTP cleanup job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
