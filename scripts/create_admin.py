"""
Create an administrator account that can review documents and grant verified status.
Administrators do not self-register; run this once per reviewer.

Run from project root:
  python scripts/create_admin.py admin@example.com 'Password123'
"""
import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.database import Base, SessionLocal, engine  # noqa: E402
from app import models  # noqa: F401,E402
from app.models.user import User, UserRole, UserStatus  # noqa: E402
from app.services.auth import get_password_hash, password_policy_violation  # noqa: E402


def main(argv: list[str]) -> int:
    if len(argv) != 3:
        print(__doc__)
        return 2
    email = argv[1].strip().lower()
    password = argv[2]
    violation = password_policy_violation(password)
    if violation:
        print(f"Refusing weak password: {violation}")
        return 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"User already exists: {email} (role={existing.role.value})")
            return 1
        now = datetime.now(timezone.utc)
        db.add(User(
            email=email,
            hashed_password=get_password_hash(password),
            role=UserRole.ADMIN,
            status=UserStatus.VERIFIED,
            email_verified_at=now,
            verified_at=now,
        ))
        db.commit()
        print(f"Created admin: {email}")
        print("  → Log in via POST /auth/login and use the bearer token for /documents/{id}/approve|reject")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main(sys.argv))
