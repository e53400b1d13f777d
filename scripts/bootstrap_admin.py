#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from ordersync.core.config import DEV_BOOTSTRAP_ALLOW, IS_DEV  # noqa: E402
from ordersync.core.database import SessionLocal  # noqa: E402
from ordersync.core.roles import Role  # noqa: E402
from ordersync.models.tenant import Tenant  # noqa: E402
from ordersync.models.user import User  # noqa: E402
from ordersync.services.passwords import hash_password  # noqa: E402
from utils.slug import normalize_slug  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or update a tenant admin.")
    parser.add_argument("--tenant", required=True, help="Tenant slug")
    parser.add_argument("--phone", required=True, help="Login handle (phone or username)")
    parser.add_argument("--password", help="Admin password")
    parser.add_argument("--name", required=True, help="Admin display name")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Run without DEV_BOOTSTRAP_ALLOW=1",
    )
    return parser.parse_args()


def upsert_admin(db, *, tenant_slug: str, phone: str, name: str, password: str | None) -> tuple[User, bool]:
    slug = normalize_slug(tenant_slug)
    tenant = db.query(Tenant).filter(Tenant.slug == slug).first()
    if tenant is None:
        raise ValueError(f"Tenant not found: {tenant_slug}")

    user = db.query(User).filter(User.tenant_id == tenant.id, User.phone == phone).first()
    created = user is None
    if created:
        if not password:
            raise ValueError("--password is required when creating an admin")
        user = User(tenant_id=tenant.id, phone=phone)
        db.add(user)

    user.name = name
    user.role = Role.admin.value
    if password:
        user.password_hash = hash_password(password)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user, created


def main() -> int:
    args = parse_args()

    if not DEV_BOOTSTRAP_ALLOW and not args.force:
        print("Admin bootstrap disabled. Set DEV_BOOTSTRAP_ALLOW=1 or pass --force.")
        return 1

    db = SessionLocal()
    try:
        admin, created = upsert_admin(
            db,
            tenant_slug=args.tenant,
            phone=args.phone.strip(),
            name=args.name.strip(),
            password=args.password,
        )
    except ValueError as exc:
        print(str(exc))
        return 1
    finally:
        db.close()

    action = "created" if created else "updated"
    print(f"Admin {action}: tenant_id={admin.tenant_id} phone={admin.phone}")
    if IS_DEV:
        password_info = args.password if args.password else "<unchanged>"
        print(f"DEV summary -> tenant: {args.tenant} | phone: {admin.phone} | password: {password_info}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
