"""Unit tests for portfolio.core.config.Settings validation."""

import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from portfolio.core.config import Settings

SECRET = "config-test-signing-secret-0123456789abcdef"


def _settings(**overrides: object) -> Settings:
    values: dict = {"APP_ENV": "dev", "DATABASE_URL": "sqlite://", "JWT_SECRET": SECRET}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestJwtSecret(unittest.TestCase):
    """JWT_SECRET has no default and must not be blank."""

    def test_missing_secret_fails(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValidationError):
                Settings(_env_file=None, DATABASE_URL="sqlite://")

    def test_blank_secret_fails(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_SECRET="   ")

    def test_prod_requires_long_secret(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(APP_ENV="prod", JWT_SECRET="short-secret")
        settings = _settings(APP_ENV="prod")
        self.assertEqual(settings.APP_ENV, "prod")

    def test_secret_read_from_environment(self) -> None:
        with patch.dict(os.environ, {"JWT_SECRET": SECRET, "DATABASE_URL": "sqlite://"}, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.JWT_SECRET.get_secret_value(), SECRET)


class TestJwtAlgorithm(unittest.TestCase):
    def test_hmac_algorithms_normalized(self) -> None:
        self.assertEqual(_settings(JWT_ALGORITHM="hs384").JWT_ALGORITHM, "HS384")

    def test_asymmetric_and_none_rejected(self) -> None:
        for alg in ("RS256", "none", ""):
            with self.subTest(alg=alg):
                with self.assertRaises(ValidationError):
                    _settings(JWT_ALGORITHM=alg)

    def test_expire_minutes_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_EXPIRE_MINUTES=0)
        with self.assertRaises(ValidationError):
            _settings(JWT_EXPIRE_MINUTES=43201)


class TestAdminPaths(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = _settings()
        self.assertEqual(settings.ADMIN_PATH_PREFIX, "/admin")
        self.assertEqual(settings.ADMIN_LOGIN_PATH, "/admin/login")
        self.assertEqual(settings.ADMIN_SETUP_PATH, "/admin/setup")

    def test_trailing_slash_stripped(self) -> None:
        settings = _settings(ADMIN_PATH_PREFIX="/manage/", ADMIN_LOGIN_PATH="/manage/login/", ADMIN_SETUP_PATH="/manage/setup")
        self.assertEqual(settings.ADMIN_PATH_PREFIX, "/manage")
        self.assertEqual(settings.ADMIN_LOGIN_PATH, "/manage/login")

    def test_login_outside_prefix_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(ADMIN_LOGIN_PATH="/login")

    def test_login_and_setup_must_differ(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(ADMIN_LOGIN_PATH="/admin/start", ADMIN_SETUP_PATH="/admin/start")


class TestMisc(unittest.TestCase):
    def test_database_url_scheme(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="mysql://root@localhost/portfolio")
        self.assertEqual(
            _settings(DATABASE_URL="postgresql://u:p@db:5432/portfolio").DATABASE_URL,
            "postgresql://u:p@db:5432/portfolio",
        )

    def test_cookie_secure_follows_env(self) -> None:
        self.assertFalse(_settings().cookie_secure)
        self.assertTrue(_settings(APP_ENV="prod").cookie_secure)
        self.assertTrue(_settings(AUTH_COOKIE_SECURE=True).cookie_secure)

    def test_blank_init_key_is_none(self) -> None:
        self.assertIsNone(_settings(ADMIN_INIT_KEY="  ").ADMIN_INIT_KEY)
        self.assertIsNone(_settings().ADMIN_INIT_KEY)


if __name__ == "__main__":
    unittest.main()
