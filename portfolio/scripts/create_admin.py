"""
Create or update an admin account (operator path, no HTTP). Run from project root:
  python -m portfolio.scripts.create_admin --email admin@example.com --password 'long-secret'
Email, password and name default to ADMIN_EMAIL, ADMIN_PASSWORD and ADMIN_NAME.
"""
import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from portfolio.core.config import get_settings
from portfolio.core.database import Database
from portfolio.services.accounts import AccountStore
from portfolio.services.setup_gate import SetupError, upsert_admin

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Create or update the portfolio admin account.")
    parser.add_argument("--email", default=os.environ.get("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.environ.get("ADMIN_PASSWORD"))
    parser.add_argument("--name", default=os.environ.get("ADMIN_NAME"))
    args = parser.parse_args(argv)

    if not args.email or not args.password:
        print("Set --email/--password or ADMIN_EMAIL and ADMIN_PASSWORD.", file=sys.stderr)
        return 1

    database = Database(get_settings().DATABASE_URL)
    db = database.session()
    try:
        account, created = upsert_admin(AccountStore(db), args.email, args.password, args.name)
    except SetupError as e:
        print(str(e), file=sys.stderr)
        return 1
    finally:
        db.close()
        database.dispose()

    logger.info("Admin %s: %s", "created" if created else "updated", account.email)
    print(f"{'Created' if created else 'Updated'} admin '{account.email}'. You can now log in.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
