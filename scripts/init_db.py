import sys
from pathlib import Path
import os

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy import select

from app.backoffice.config import load_settings
from app.backoffice.models import User
from app.backoffice.modules.settings.models import CancellationReason, Governorate, PaymentMethod, System
from app.backoffice.passwords import hash_password
from app.backoffice.permissions import Role
from scripts._db_utils import create_tables, script_session

DEFAULT_LOOKUPS = {
    System: ("Magento", "NetSuite"),
    CancellationReason: ("Customer request", "Out of stock", "Duplicate order", "Payment failed"),
    Governorate: ("Baghdad", "Basra", "Erbil", "Najaf"),
    PaymentMethod: ("Cash on Delivery", "Pay in Installment", "Pay using Visa/Master card", "Zain Cash"),
}


def seed_only(*, database_url: str | None = None) -> None:
    """
    Create missing tables and seed the admin user + lookup lists in an idempotent way.
    Does NOT overwrite an existing admin user's password.
    """
    settings = load_settings()
    admin_email = settings.admin_email
    admin_password = settings.admin_password
    admin_name = (os.environ.get("ADMIN_FULL_NAME") or "Administrator").strip()

    db_url = (database_url or settings.database_url).strip()
    create_tables(db_url)

    with script_session(db_url) as s:
        admin = s.execute(select(User).where(User.email == admin_email)).scalar_one_or_none()
        if not admin:
            admin = User(
                email=admin_email,
                full_name=admin_name,
                role=Role.ADMIN,
                has_finance_access=True,
                password_hash=hash_password(admin_password),
            )
            s.add(admin)
            s.flush()

        for model, names in DEFAULT_LOOKUPS.items():
            existing = set(s.execute(select(model.name)).scalars())
            for name in names:
                if name not in existing:
                    s.add(model(name=name, created_by_user_id=admin.id))

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
