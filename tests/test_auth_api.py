"""Endpoint tests for /api/auth: setup, login, logout and me."""

import unittest

from fastapi.testclient import TestClient

from portfolio.core.config import Settings
from portfolio.core.database import Database
from portfolio.main import create_app
from portfolio.models import Account, Base

SECRET = "api-test-signing-secret-0123456789abcdefgh"
INIT_KEY = "operator-init-key"

OWNER = {"name": "Owner", "email": "owner@example.com", "password": "password123"}


def _settings(**overrides: object) -> Settings:
    values: dict = {"APP_ENV": "dev", "DATABASE_URL": "sqlite://", "JWT_SECRET": SECRET}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class ApiTestCase(unittest.TestCase):
    settings_overrides: dict = {}

    def setUp(self) -> None:
        self.settings = _settings(**self.settings_overrides)
        self.database = Database("sqlite://")
        Base.metadata.create_all(self.database.engine)
        self.client = TestClient(create_app(self.settings, self.database), follow_redirects=False)

    def tearDown(self) -> None:
        self.database.dispose()

    def setup_owner(self) -> dict:
        response = self.client.post("/api/auth/setup", json=OWNER)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["user"]

    def login(self, email: str = OWNER["email"], password: str = OWNER["password"]):
        return self.client.post("/api/auth/login", json={"email": email, "password": password})


class TestSetupEndpoints(ApiTestCase):
    def test_status_on_fresh_install(self) -> None:
        response = self.client.get("/api/auth/setup")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["available"])
        self.assertFalse(body["existing_admin"])
        self.assertEqual(self.client.head("/api/auth/setup").status_code, 200)

    def test_create_first_admin(self) -> None:
        user = self.setup_owner()
        self.assertEqual(user["role"], "ADMIN")
        self.assertTrue(user["is_active"])
        self.assertNotIn("password_hash", user)

        status_body = self.client.get("/api/auth/setup").json()
        self.assertFalse(status_body["available"])
        self.assertTrue(status_body["existing_admin"])
        self.assertEqual(self.client.head("/api/auth/setup").status_code, 403)

    def test_second_setup_conflicts(self) -> None:
        self.setup_owner()
        response = self.client.post(
            "/api/auth/setup",
            json={"name": "Other", "email": "other@example.com", "password": "password456"},
        )
        self.assertEqual(response.status_code, 409)
        session = self.database.session()
        try:
            self.assertEqual(session.query(Account).count(), 1)
        finally:
            session.close()

    def test_validation_errors_name_the_field(self) -> None:
        cases = [
            ({"email": "a@b.co", "password": "password123"}, "name"),
            ({"name": "Me", "email": "not-an-email", "password": "password123"}, "email"),
            ({"name": "Me", "email": "a@b.co", "password": "7chars!"}, "password"),
        ]
        for payload, field in cases:
            with self.subTest(field=field):
                response = self.client.post("/api/auth/setup", json=payload)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["detail"]["field"], field)
        self.assertTrue(self.client.get("/api/auth/setup").json()["available"])

    def test_force_overwrites_in_dev(self) -> None:
        original = self.setup_owner()
        response = self.client.post(
            "/api/auth/setup",
            params={"force": "true"},
            json={"name": "Owner", "email": "owner@example.com", "password": "rotated-pass"},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["user"]["id"], original["id"])
        self.assertIn("updated", response.json()["message"])
        self.assertEqual(self.login(password="rotated-pass").status_code, 200)
        self.assertEqual(self.login().status_code, 401)


class TestSetupInProd(ApiTestCase):
    settings_overrides = {"APP_ENV": "prod", "ADMIN_INIT_KEY": INIT_KEY}

    def test_force_requires_init_key(self) -> None:
        self.setup_owner()
        payload = {"name": "Evil", "email": "evil@example.com", "password": "password456"}
        response = self.client.post("/api/auth/setup", params={"force": "true"}, json=payload)
        self.assertEqual(response.status_code, 403)

        response = self.client.post(
            "/api/auth/setup",
            params={"force": "true"},
            headers={"X-Admin-Init-Key": INIT_KEY},
            json={"name": "Owner", "email": "owner@example.com", "password": "recovered1"},
        )
        self.assertEqual(response.status_code, 201)

    def test_force_on_fresh_install_without_key(self) -> None:
        status_response = self.client.get("/api/auth/setup", params={"force": "true"})
        self.assertTrue(status_response.json()["available"])
        self.assertFalse(status_response.json()["force_applied"])

        response = self.client.post("/api/auth/setup", params={"force": "true"}, json=OWNER)
        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(response.json()["user"]["email"], OWNER["email"])

    def test_status_ignores_force_without_key(self) -> None:
        self.setup_owner()
        response = self.client.get("/api/auth/setup", params={"force": "true"})
        self.assertFalse(response.json()["available"])
        response = self.client.get(
            "/api/auth/setup", params={"force": "true"}, headers={"X-Admin-Init-Key": INIT_KEY}
        )
        self.assertTrue(response.json()["available"])
        self.assertTrue(response.json()["force_applied"])


class TestLoginLogout(ApiTestCase):
    def test_login_sets_http_only_cookie(self) -> None:
        self.setup_owner()
        response = self.login(email="OWNER@example.com")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["email"], "owner@example.com")
        set_cookie = response.headers["set-cookie"].lower()
        self.assertIn("auth_token=", set_cookie)
        self.assertIn("httponly", set_cookie)
        self.assertIn("samesite=lax", set_cookie)
        self.assertNotIn("; secure", set_cookie)

        me = self.client.get("/api/auth/me")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["user"]["email"], "owner@example.com")
        self.assertIsNotNone(me.json()["user"]["last_login_at"])

    def test_wrong_password_and_unknown_email(self) -> None:
        self.setup_owner()
        self.assertEqual(self.login(password="wrong-password").status_code, 401)
        self.assertEqual(self.login(email="nobody@example.com").status_code, 401)
        self.assertNotIn("set-cookie", self.login(password="wrong-password").headers)

    def test_inactive_account_cannot_login(self) -> None:
        self.setup_owner()
        session = self.database.session()
        try:
            account = session.query(Account).one()
            account.is_active = False
            session.commit()
        finally:
            session.close()
        self.assertEqual(self.login().status_code, 401)

    def test_me_requires_session(self) -> None:
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)
        self.client.cookies.set("auth_token", "garbage")
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)

    def test_bearer_header_accepted(self) -> None:
        self.setup_owner()
        token = self.login().cookies["auth_token"]
        self.client.cookies.clear()
        response = self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 200)

    def test_logout_clears_cookie(self) -> None:
        self.setup_owner()
        self.login()
        response = self.client.post("/api/auth/logout")
        self.assertEqual(response.status_code, 200)
        self.assertIn("max-age=0", response.headers["set-cookie"].lower())
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)

    def test_login_then_admin_area(self) -> None:
        self.setup_owner()
        self.login()
        self.assertEqual(self.client.get("/admin").status_code, 200)
        response = self.client.get("/admin/login")
        self.assertEqual(response.status_code, 307)
        self.assertEqual(response.headers["location"], "/admin")


if __name__ == "__main__":
    unittest.main()
