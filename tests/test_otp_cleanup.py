"""Unit tests for run_otp_cleanup: delete-only removal of long-expired passcodes."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from crm_identity.models import OneTimePasscode
from crm_identity.services.otp_cleanup import run_otp_cleanup

from db_helpers import make_engine, make_session_factory

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def _settings(enabled: bool = True, grace_minutes: int = 60) -> MagicMock:
    settings = MagicMock()
    settings.OTP_CLEANUP_ENABLED = enabled
    settings.OTP_CLEANUP_GRACE_MINUTES = grace_minutes
    return settings


class TestCleanupDisabled(unittest.TestCase):
    """When OTP_CLEANUP_ENABLED is False, nothing is queried."""

    def test_returns_zero_and_does_not_query(self) -> None:
        session = MagicMock()
        self.assertEqual(run_otp_cleanup(session, _settings(enabled=False)), 0)
        session.query.assert_not_called()
        session.commit.assert_not_called()


class TestCleanupWithMockSession(unittest.TestCase):
    def test_returns_deleted_count(self) -> None:
        session = MagicMock()
        session.query.return_value.filter.return_value.delete.return_value = 3
        self.assertEqual(run_otp_cleanup(session, _settings(), now=NOW), 3)
        session.commit.assert_called_once()

    def test_nothing_to_delete(self) -> None:
        session = MagicMock()
        session.query.return_value.filter.return_value.delete.return_value = 0
        self.assertEqual(run_otp_cleanup(session, _settings(), now=NOW), 0)
        session.commit.assert_called_once()


class TestCleanupAgainstSqlite(unittest.TestCase):
    """Only codes expired for longer than the grace period are removed."""

    def setUp(self) -> None:
        self.engine = make_engine()
        self.session = make_session_factory(self.engine)()
        for code, expires_at in (
            ("111111", NOW - timedelta(hours=3)),
            ("222222", NOW - timedelta(minutes=30)),
            ("333333", NOW + timedelta(minutes=5)),
        ):
            self.session.add(
                OneTimePasscode(
                    contact="a@x.com",
                    contact_type="EMAIL",
                    otp_code=code,
                    purpose="LOGIN",
                    expires_at=expires_at,
                    used=False,
                )
            )
        self.session.commit()

    def tearDown(self) -> None:
        self.session.close()
        self.engine.dispose()

    def test_deletes_only_past_grace(self) -> None:
        deleted = run_otp_cleanup(self.session, _settings(grace_minutes=60), now=NOW)
        self.assertEqual(deleted, 1)
        remaining = [o.otp_code for o in self.session.query(OneTimePasscode).order_by(OneTimePasscode.id)]
        self.assertEqual(remaining, ["222222", "333333"])

    def test_second_run_is_noop(self) -> None:
        run_otp_cleanup(self.session, _settings(), now=NOW)
        self.assertEqual(run_otp_cleanup(self.session, _settings(), now=NOW), 0)


if __name__ == "__main__":
    unittest.main()
