"""
List admin accounts in creation order. Run from project root:
  python -m portfolio.scripts.check_admins
"""
import sys

from dotenv import load_dotenv

from portfolio.core.config import get_settings
from portfolio.core.database import Database
from portfolio.services.accounts import AccountStore


def main() -> int:
    load_dotenv()
    database = Database(get_settings().DATABASE_URL)
    db = database.session()
    try:
        admins = AccountStore(db).list_admins()
    finally:
        db.close()
        database.dispose()

    if not admins:
        print("No admin users found; setup is available.")
        return 0
    print("Admin users by creation order:")
    for i, admin in enumerate(admins, start=1):
        state = "" if admin.is_active else " [inactive]"
        print(f"{i}. {admin.email} - {admin.name} (created: {admin.created_at}){state}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
