"""Account persistence: the only place auth code touches the users table."""

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from portfolio.models import Account, UserRole


def normalize_email(email: str) -> str:
    return email.strip().lower()


PROFILE_FIELDS = ("avatar", "bio", "location", "website", "github", "linkedin", "twitter")


class AccountStore:
    """Reads and writes Account rows through an injected session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, account_id: str) -> Account | None:
        return self.session.query(Account).filter(Account.id == account_id).first()

    def get_by_email(self, email: str) -> Account | None:
        return (
            self.session.query(Account)
            .filter(Account.email == normalize_email(email))
            .first()
        )

    def first_admin(self) -> Account | None:
        """Oldest ADMIN account, or None when setup has never run."""
        return (
            self.session.query(Account)
            .filter(Account.role == UserRole.ADMIN.value)
            .order_by(Account.created_at, Account.id)
            .first()
        )

    def admin_exists(self) -> bool:
        return self.first_admin() is not None

    def count_admins(self) -> int:
        return self.session.query(Account).filter(Account.role == UserRole.ADMIN.value).count()

    def list_admins(self) -> list[Account]:
        return (
            self.session.query(Account)
            .filter(Account.role == UserRole.ADMIN.value)
            .order_by(Account.created_at, Account.id)
            .all()
        )

    def create(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole = UserRole.USER,
        is_active: bool = True,
        email_verified: bool = False,
    ) -> Account:
        account = Account(
            name=name,
            email=normalize_email(email),
            password_hash=password_hash,
            role=role.value,
            is_active=is_active,
            email_verified=email_verified,
        )
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)
        return account

    def overwrite_credentials(
        self,
        account: Account,
        *,
        name: str,
        email: str,
        password_hash: str,
    ) -> Account:
        """Replace identity and password in place and (re)grant an active ADMIN role."""
        account.name = name
        account.email = normalize_email(email)
        account.password_hash = password_hash
        account.role = UserRole.ADMIN.value
        account.is_active = True
        account.email_verified = True
        self.session.commit()
        self.session.refresh(account)
        return account

    def update_profile(
        self,
        account: Account,
        *,
        name: str,
        email: str,
        password_hash: str | None = None,
        details: dict[str, str | None] | None = None,
    ) -> Account:
        account.name = name
        account.email = normalize_email(email)
        if password_hash is not None:
            account.password_hash = password_hash
        for field, value in (details or {}).items():
            if field in PROFILE_FIELDS:
                setattr(account, field, (value or "").strip() or None)
        self.session.commit()
        self.session.refresh(account)
        return account

    def record_login(self, account: Account) -> None:
        account.last_login_at = datetime.now(timezone.utc)
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
