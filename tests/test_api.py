"""HTTP tests for the v1 API against an in-memory SQLite database."""

import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from crm_identity.api.v1.auth import get_otp_deliverer
from crm_identity.core.database import get_db
from crm_identity.main import app
from crm_identity.models import AuthRole

from db_helpers import (
    ACTIVE,
    DEFAULT_PASSWORD,
    ELIMINATED,
    INACTIVE,
    add_credential,
    make_engine,
    make_session_factory,
)


class RecordingDeliverer:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def deliver(self, contact: str, code: str) -> None:
        self.sent.append((contact, code))

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.session_factory = make_session_factory(self.engine)
        self.deliverer = RecordingDeliverer()

        def override_get_db():
            db = self.session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_otp_deliverer] = lambda: self.deliverer
        self.client = TestClient(app)

        with self.session_factory() as session:
            self.admin_id = add_credential(
                session, email="admin@example.com", username="admin", entity_type="ADMIN"
            ).id
            self.user_id = add_credential(session, email="user@example.com", username="user").id
            session.add(AuthRole(auth_id=self.admin_id, role_id=1, state_id=ACTIVE))
            session.add(AuthRole(auth_id=self.user_id, role_id=2, state_id=ACTIVE))
            session.commit()

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.engine.dispose()


class TestHealthAndStates(ApiTestCase):
    def test_health(self) -> None:
        response = self.client.get("/api/v1/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["database"], "connected")
        self.assertEqual(response.json()["reference_data"], "seeded")

    def test_list_states(self) -> None:
        response = self.client.get("/api/v1/states")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([s["name"] for s in response.json()], ["ACTIVE", "INACTIVE", "PENDING", "ELIMINATED"])

    def test_unknown_state_is_404(self) -> None:
        response = self.client.get("/api/v1/states/99")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "State with ID 99 not found")


class TestAuthRolesApi(ApiTestCase):
    def test_grant_conflict_delete_regrant(self) -> None:
        body = {"auth_id": self.user_id, "role_id": 1, "state_id": ACTIVE}
        created = self.client.post("/api/v1/auth-roles", json=body)
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["role_name"], "ADMIN")

        duplicate = self.client.post("/api/v1/auth-roles", json=body)
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(duplicate.json()["detail"], "Auth already has this role assigned")

        deleted = self.client.delete(f"/api/v1/auth-roles/{created.json()['id']}")
        self.assertEqual(deleted.status_code, 204)
        self.assertEqual(self.client.post("/api/v1/auth-roles", json=body).status_code, 201)

        eliminated = self.client.get(f"/api/v1/auth-roles/state/{ELIMINATED}")
        self.assertEqual([r["id"] for r in eliminated.json()], [created.json()["id"]])

    def test_reads(self) -> None:
        self.assertEqual(len(self.client.get("/api/v1/auth-roles").json()), 2)
        by_auth = self.client.get(f"/api/v1/auth-roles/auth/{self.admin_id}").json()
        self.assertEqual([r["role_name"] for r in by_auth], ["ADMIN"])
        by_role = self.client.get("/api/v1/auth-roles/role/2").json()
        self.assertEqual([r["auth_username"] for r in by_role], ["user"])
        self.assertEqual(self.client.get("/api/v1/auth-roles/999").status_code, 404)

    def test_update(self) -> None:
        assignment_id = self.client.get(f"/api/v1/auth-roles/auth/{self.user_id}").json()[0]["id"]
        response = self.client.put(
            f"/api/v1/auth-roles/{assignment_id}",
            json={"auth_id": self.user_id, "role_id": 2, "state_id": 2},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["state_name"], "INACTIVE")

    def test_invalid_body_is_422(self) -> None:
        response = self.client.post("/api/v1/auth-roles", json={"auth_id": 0, "role_id": 1, "state_id": 1})
        self.assertEqual(response.status_code, 422)


class TestOtpApi(ApiTestCase):
    def test_issue_and_verify_once(self) -> None:
        issued = self.client.post("/api/v1/otp/issue", json={"contact": "a@x.com", "purpose": "LOGIN"})
        self.assertEqual(issued.status_code, 201)
        self.assertEqual(issued.json()["contact_type"], "EMAIL")
        self.assertNotIn("otp_code", issued.json())

        body = {"contact": "a@x.com", "purpose": "LOGIN", "otp_code": self.deliverer.last_code}
        first = self.client.post("/api/v1/otp/verify", json=body)
        self.assertEqual(first.status_code, 200)
        self.assertTrue(first.json()["verified"])

        second = self.client.post("/api/v1/otp/verify", json=body)
        self.assertEqual(second.status_code, 400)
        self.assertEqual(second.json()["reason"], "already_used")

    def test_wrong_code(self) -> None:
        self.client.post("/api/v1/otp/issue", json={"contact": "a@x.com", "purpose": "LOGIN"})
        wrong = "0" * 6 if self.deliverer.last_code != "000000" else "1" * 6
        response = self.client.post(
            "/api/v1/otp/verify",
            json={"contact": "a@x.com", "purpose": "LOGIN", "otp_code": wrong},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["reason"], "invalid")

    def test_bad_contact_is_422(self) -> None:
        response = self.client.post("/api/v1/otp/issue", json={"contact": "nope", "purpose": "LOGIN"})
        self.assertEqual(response.status_code, 422)
        self.assertIn("Invalid contact format", response.json()["detail"])


class TestLoginAndAuthorization(ApiTestCase):
    def login(self, login: str) -> str:
        started = self.client.post("/api/v1/auth/login", json={"login": login, "password": DEFAULT_PASSWORD})
        self.assertEqual(started.status_code, 200)
        self.assertTrue(started.json()["otp_required"])
        self.assertEqual(started.json()["contact_type"], "EMAIL")
        contact, code = self.deliverer.sent[-1]
        verified = self.client.post("/api/v1/auth/login/verify", json={"contact": contact, "otp_code": code})
        self.assertEqual(verified.status_code, 200)
        return verified.json()["access_token"]

    def auth_enabled(self):
        settings = MagicMock()
        settings.AUTH_ENABLED = True
        return patch("crm_identity.api.v1.auth.get_settings", return_value=settings)

    def test_bad_password_is_401(self) -> None:
        response = self.client.post("/api/v1/auth/login", json={"login": "admin", "password": "wrong-password"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(self.deliverer.sent, [])

    def test_admin_token_opens_admin_routes(self) -> None:
        token = self.login("admin")
        with self.auth_enabled():
            response = self.client.get("/api/v1/auth-roles", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 200)

    def test_missing_or_bad_token_is_401(self) -> None:
        with self.auth_enabled():
            self.assertEqual(self.client.get("/api/v1/auth-roles").status_code, 401)
            response = self.client.get("/api/v1/auth-roles", headers={"Authorization": "Bearer not-a-jwt"})
        self.assertEqual(response.status_code, 401)

    def test_user_token_is_403(self) -> None:
        token = self.login("user@example.com")
        with self.auth_enabled():
            response = self.client.get("/api/v1/auth-roles", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 403)

    def test_password_reset(self) -> None:
        forgot = self.client.post("/api/v1/auth/password/forgot", json={"contact": "user@example.com"})
        self.assertEqual(forgot.status_code, 200)
        contact, code = self.deliverer.sent[-1]
        reset = self.client.post(
            "/api/v1/auth/password/reset",
            json={"contact": contact, "otp_code": code, "new_password": "brand-new-pass"},
        )
        self.assertEqual(reset.status_code, 200)
        relogin = self.client.post(
            "/api/v1/auth/login", json={"login": "user", "password": "brand-new-pass"}
        )
        self.assertEqual(relogin.status_code, 200)

    def test_forgot_for_unknown_contact_looks_the_same(self) -> None:
        response = self.client.post("/api/v1/auth/password/forgot", json={"contact": "ghost@example.com"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.deliverer.sent, [])

    def test_forgot_for_username_looks_the_same(self) -> None:
        unknown = self.client.post("/api/v1/auth/password/forgot", json={"contact": "ghost"})
        known = self.client.post("/api/v1/auth/password/forgot", json={"contact": "user"})
        self.assertEqual(known.status_code, 200)
        self.assertEqual(known.json(), unknown.json())
        self.assertEqual([contact for contact, _ in self.deliverer.sent], ["user@example.com"])

    def test_forgot_for_inactive_account_is_401(self) -> None:
        with self.session_factory() as session:
            add_credential(session, email="gone@example.com", username="gone", state_id=INACTIVE)
        response = self.client.post("/api/v1/auth/password/forgot", json={"contact": "gone"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(self.deliverer.sent, [])

    def test_reset_with_too_long_password_is_422_and_keeps_code(self) -> None:
        self.client.post("/api/v1/auth/password/forgot", json={"contact": "user@example.com"})
        contact, code = self.deliverer.sent[-1]
        rejected = self.client.post(
            "/api/v1/auth/password/reset",
            json={"contact": contact, "otp_code": code, "new_password": "x" * 129},
        )
        self.assertEqual(rejected.status_code, 422)
        accepted = self.client.post(
            "/api/v1/auth/password/reset",
            json={"contact": contact, "otp_code": code, "new_password": "brand-new-pass"},
        )
        self.assertEqual(accepted.status_code, 200)


class TestLoginChannelsApi(ApiTestCase):
    def start(self, path: str, login: str):
        return self.client.post(f"/api/v1/auth/{path}", json={"login": login, "password": DEFAULT_PASSWORD})

    def test_backoffice_login_for_admin(self) -> None:
        started = self.start("login/backoffice", "admin")
        self.assertEqual(started.status_code, 200)
        self.assertEqual(started.json()["contact_type"], "EMAIL")
        self.assertIn("registered email", started.json()["message"])
        contact, code = self.deliverer.sent[-1]
        verified = self.client.post(
            "/api/v1/auth/login/backoffice/verify", json={"contact": contact, "otp_code": code}
        )
        self.assertEqual(verified.status_code, 200)
        self.assertEqual(verified.json()["token_type"], "bearer")

    def test_backoffice_login_refuses_user(self) -> None:
        response = self.start("login/backoffice", "user")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Access denied. Only admin users can access back office")
        self.assertEqual(self.deliverer.sent, [])

    def test_user_login_for_user_only(self) -> None:
        self.assertEqual(self.start("login/user", "admin").status_code, 401)
        self.assertEqual(self.start("login/user", "user").status_code, 200)
        contact, code = self.deliverer.sent[-1]
        verified = self.client.post("/api/v1/auth/login/user/verify", json={"contact": contact, "otp_code": code})
        self.assertEqual(verified.status_code, 200)

    def test_resend_routes(self) -> None:
        for path, login in (
            ("login/resend", "user"),
            ("login/backoffice/resend", "admin"),
            ("login/user/resend", "user"),
        ):
            response = self.client.post(f"/api/v1/auth/{path}", json={"login": login})
            self.assertEqual(response.status_code, 200, path)
            self.assertTrue(response.json()["otp_required"])
        self.assertEqual(len(self.deliverer.sent), 3)
        self.assertEqual(
            self.client.post("/api/v1/auth/login/backoffice/resend", json={"login": "user"}).status_code,
            401,
        )

    def test_phone_login_sends_to_phone(self) -> None:
        with self.session_factory() as session:
            add_credential(session, email="cel@example.com", username="cel", contact="3001234567")
        started = self.start("login", "3001234567")
        self.assertEqual(started.status_code, 200)
        self.assertEqual(started.json()["contact_type"], "PHONE")
        self.assertIn("registered phone", started.json()["message"])
        self.assertEqual(self.deliverer.sent[-1][0], "3001234567")


if __name__ == "__main__":
    unittest.main()
