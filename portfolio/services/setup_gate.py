"""
First-admin bootstrap: decides whether setup is permitted and performs it.

Setup is permitted while no ADMIN account exists. Force mode re-provisions the
oldest admin in place and is limited to dev or callers holding ADMIN_INIT_KEY.
The existence check and the write are not locked together; two concurrent
first-time submissions can both succeed.
"""

import hmac
import logging
import re
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from portfolio.core.config import Settings
from portfolio.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password
from portfolio.models import Account, UserRole
from portfolio.services.accounts import AccountStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DEFAULT_ADMIN_NAME = "Admin User"


class SetupError(Exception):
    """Base class for setup failures."""


class SetupValidationError(SetupError):
    """Input rejected before any write; field names the offending input."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class MissingFieldError(SetupValidationError):
    pass


class InvalidEmailError(SetupValidationError):
    pass


class WeakPasswordError(SetupValidationError):
    pass


class AdminAlreadyProvisionedError(SetupError):
    """An admin exists and no permitted override was supplied."""


class ForceNotPermittedError(SetupError):
    """Force mode was requested by a caller that may not use it."""


class EmailInUseError(SetupError):
    """The email belongs to a different account."""


class SetupPersistenceError(SetupError):
    """The credential store failed while checking or writing."""


@dataclass(frozen=True)
class SetupAvailability:
    available: bool
    existing_admin: bool
    force_applied: bool
    message: str


@dataclass(frozen=True)
class SetupResult:
    account: Account
    updated: bool


def validate_credentials(
    name: str | None,
    email: str | None,
    password: str | None,
    require_name: bool = True,
) -> tuple[str, str, str]:
    """Return stripped (name, email, password) or raise a SetupValidationError."""
    name = (name or "").strip()
    email = (email or "").strip()
    password = password or ""
    missing = [
        field
        for field, value in (("name", name), ("email", email), ("password", password))
        if not value and (require_name or field != "name")
    ]
    if missing:
        raise MissingFieldError(missing[0], f"{missing[0].capitalize()} is required")
    if not EMAIL_PATTERN.match(email) or len(email) > 255:
        raise InvalidEmailError("email", "Invalid email format")
    if len(password) < PASSWORD_MIN_LEN:
        raise WeakPasswordError(
            "password", f"Password must be at least {PASSWORD_MIN_LEN} characters long"
        )
    if len(password) > PASSWORD_MAX_LEN:
        raise WeakPasswordError(
            "password", f"Password must be at most {PASSWORD_MAX_LEN} characters long"
        )
    if len(name) > 255:
        raise SetupValidationError("name", "Name must be at most 255 characters long")
    return name, email, password


def init_key_matches(settings: Settings, init_key: str | None) -> bool:
    """Constant-time comparison against ADMIN_INIT_KEY; False when unset."""
    if settings.ADMIN_INIT_KEY is None or not init_key:
        return False
    expected = settings.ADMIN_INIT_KEY.get_secret_value().encode("utf-8")
    return hmac.compare_digest(expected, init_key.encode("utf-8"))


def operator_permitted(settings: Settings, init_key: str | None) -> bool:
    """Privileged provisioning is open in dev and otherwise needs the init key."""
    return settings.APP_ENV == "dev" or init_key_matches(settings, init_key)


class SetupGate:
    """Guards creation of the first ADMIN account."""

    def __init__(self, store: AccountStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def _rollback(self) -> None:
        try:
            self.store.rollback()
        except Exception:
            logger.warning("Session rollback failed", exc_info=True)

    def check(self, force: bool = False, init_key: str | None = None) -> SetupAvailability:
        """Read-only availability check; repeated calls agree until a write happens."""
        force_applied = force and operator_permitted(self.settings, init_key)
        try:
            existing = self.store.admin_exists()
        except Exception:
            logger.warning("Admin existence check failed", exc_info=True)
            self._rollback()
            if self.settings.SETUP_FAIL_OPEN:
                return SetupAvailability(
                    available=True,
                    existing_admin=False,
                    force_applied=False,
                    message="Setup is available",
                )
            return SetupAvailability(
                available=False,
                existing_admin=False,
                force_applied=False,
                message="Setup availability could not be determined",
            )

        if existing and not force_applied:
            return SetupAvailability(
                available=False,
                existing_admin=True,
                force_applied=False,
                message="Admin user already exists",
            )
        return SetupAvailability(
            available=True,
            existing_admin=existing,
            force_applied=existing and force_applied,
            message="Setup available (force mode)" if existing else "Setup is available",
        )

    def create_admin(
        self,
        name: str | None,
        email: str | None,
        password: str | None,
        force: bool = False,
        init_key: str | None = None,
    ) -> SetupResult:
        """
        Create the first admin, or overwrite the existing one in force mode.

        Admin existence is re-read here rather than trusted from an earlier check().
        """
        try:
            existing = self.store.first_admin()
        except SQLAlchemyError as exc:
            self._rollback()
            logger.exception("Admin existence check failed during setup")
            raise SetupPersistenceError("Failed to create admin user") from exc

        # With no admin yet, force has nothing to override and is ignored.
        if existing is not None and force and not operator_permitted(self.settings, init_key):
            logger.warning("Setup force mode rejected: not permitted in this environment")
            raise ForceNotPermittedError("Force mode is not permitted")

        if existing is not None and not force:
            logger.info("Setup rejected: admin already exists")
            raise AdminAlreadyProvisionedError(
                "Admin user already exists. Setup is not allowed."
            )

        name, email, password = validate_credentials(name, email, password)

        try:
            owner = self.store.get_by_email(email)
            if owner is not None and (existing is None or owner.id != existing.id):
                raise EmailInUseError("Email is already in use")

            password_hash = hash_password(password)
            if existing is not None:
                logger.info("Setup force mode: overwriting admin id=%s", existing.id)
                account = self.store.overwrite_credentials(
                    existing, name=name, email=email, password_hash=password_hash
                )
                return SetupResult(account=account, updated=True)

            account = self.store.create(
                name=name,
                email=email,
                password_hash=password_hash,
                role=UserRole.ADMIN,
                is_active=True,
                email_verified=True,
            )
            logger.info("Setup created admin id=%s email=%s", account.id, account.email)
            return SetupResult(account=account, updated=False)
        except SQLAlchemyError as exc:
            self._rollback()
            logger.exception("Failed to persist admin during setup")
            raise SetupPersistenceError("Failed to create admin user") from exc


def upsert_admin(
    store: AccountStore,
    email: str | None,
    password: str | None,
    name: str | None = None,
) -> tuple[Account, bool]:
    """
    Operator provisioning: grant ADMIN to the account with this email, creating it if needed.

    Returns (account, created). Callers decide who may invoke this.
    """
    name, email, password = validate_credentials(name, email, password, require_name=False)
    try:
        account = store.get_by_email(email)
        password_hash = hash_password(password)
        if account is not None:
            account = store.overwrite_credentials(
                account,
                name=name or account.name,
                email=email,
                password_hash=password_hash,
            )
            return account, False
        account = store.create(
            name=name or DEFAULT_ADMIN_NAME,
            email=email,
            password_hash=password_hash,
            role=UserRole.ADMIN,
            is_active=True,
            email_verified=True,
        )
        return account, True
    except SQLAlchemyError as exc:
        store.rollback()
        logger.exception("Failed to provision admin")
        raise SetupPersistenceError("Failed to provision admin user") from exc
