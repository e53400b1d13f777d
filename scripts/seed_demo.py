#!/usr/bin/env python3
"""Seed the two demo organizations and their users.

Passwords are stored as bcrypt hashes; re-running updates names, roles and
passwords in place.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from ordersync.core.config import DATABASE_URL, DEV_BOOTSTRAP_ALLOW  # noqa: E402
from ordersync.core.database import Base, SessionLocal, engine  # noqa: E402
from ordersync.core.roles import Role  # noqa: E402
import ordersync.models  # noqa: E402,F401
from ordersync.models.tenant import Tenant  # noqa: E402
from ordersync.models.user import User  # noqa: E402
from ordersync.services.passwords import hash_password  # noqa: E402
from ordersync.services.repositories import TenantRepository  # noqa: E402

DEMO_TENANTS = [
    {"slug": "resevalley", "name": "Resevalley", "description": "Fresh flowers and gifts", "color": "indigo"},
    {"slug": "roseworld", "name": "Roseworld", "description": "Roses for every occasion", "color": "rose"},
]

DEMO_USERS = [
    {"tenant": "resevalley", "name": "Admin Root", "phone": "admin", "role": Role.admin, "password": "admin"},
    {"tenant": "resevalley", "name": "Sarah Miller", "phone": "sarah_m", "role": Role.employee, "password": "password"},
    {"tenant": "roseworld", "name": "Mike Johnson", "phone": "mike_j", "role": Role.employee, "password": "password"},
    {"tenant": "roseworld", "name": "Rose Admin", "phone": "admin", "role": Role.admin, "password": "admin"},
]


def seed(db) -> dict[str, int]:
    counts = {"tenants": 0, "users": 0}
    tenants: dict[str, Tenant] = {}
    repo = TenantRepository(db)

    for entry in DEMO_TENANTS:
        tenant = repo.get_by_slug(entry["slug"])
        if tenant is None:
            tenant = repo.create(entry)
            counts["tenants"] += 1
        tenants[entry["slug"]] = tenant

    for entry in DEMO_USERS:
        tenant = tenants[entry["tenant"]]
        user = db.query(User).filter(User.tenant_id == tenant.id, User.phone == entry["phone"]).first()
        if user is None:
            user = User(tenant_id=tenant.id, phone=entry["phone"])
            db.add(user)
            counts["users"] += 1
        user.name = entry["name"]
        user.role = entry["role"].value
        user.password_hash = hash_password(entry["password"])

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    return counts


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed demo organizations.")
    parser.add_argument("--force", action="store_true", help="Run without DEV_BOOTSTRAP_ALLOW=1")
    args = parser.parse_args()

    if not DEV_BOOTSTRAP_ALLOW and not args.force:
        print("Demo seed disabled. Set DEV_BOOTSTRAP_ALLOW=1 or pass --force.")
        return 1

    if DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        counts = seed(db)
    finally:
        db.close()

    print(f"Seeded tenants={counts['tenants']} users={counts['users']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
