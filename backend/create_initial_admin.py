# backend/create_initial_admin.py
"""Seed the first superadmin, the only role allowed to run audits."""

import os

from assetflow.database import Base, SessionLocal, write_engine
from assetflow.apps.accounts import services as account_services
from assetflow.apps.accounts.models import AccountRole


def main() -> None:
    Base.metadata.create_all(bind=write_engine)
    db = SessionLocal()
    try:
        email = os.getenv("INITIAL_ADMIN_EMAIL", "admin@assetflow.io")
        password = os.getenv("INITIAL_ADMIN_PASSWORD", "ChangeMe123!")

        existing = account_services.get_user_by_email(db, email=email)
        if existing:
            print(f"[INFO] User already exists: id={existing.id}, email={existing.email}")
            return

        user = account_services.create_user(
            db,
            email=email,
            full_name="AssetFlow Admin",
            password=password,
            role=AccountRole.SUPERADMIN,
        )
        db.commit()
        db.refresh(user)

        print("[OK] Created superadmin:")
        print(f"  id:      {user.id}")
        print(f"  email:   {user.email}")
        print(f"  role:    {user.role.value}")
        print(f"  login password: {password}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
