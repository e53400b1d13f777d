from __future__ import annotations

import logging
import secrets
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ordersync.core.config import DEV_BOOTSTRAP_ALLOW, IS_PROD, SUPER_ADMIN_TOKEN
from ordersync.core.database import get_db
from ordersync.models.tenant import Tenant
from ordersync.services.passwords import hash_password
from ordersync.services.repositories import TenantRepository
from utils.slug import normalize_slug

router = APIRouter(prefix="/api/tenants", tags=["tenants"])

logger = logging.getLogger(__name__)


class TenantRead(BaseModel):
    id: int
    slug: str
    name: str
    logo: Optional[str] = None
    description: str = ""
    color: str = "indigo"


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    slug: Optional[str] = Field(default=None, max_length=80)
    logo: Optional[str] = None
    description: str = Field(default="", max_length=255)
    color: str = Field(default="indigo", max_length=20)
    admin_name: str = Field(..., min_length=1, max_length=120)
    admin_phone: str = Field(..., min_length=1, max_length=60)
    admin_password: str = Field(..., min_length=4, max_length=200)


class TenantCreated(BaseModel):
    tenant: TenantRead
    admin_user_id: int


def _serialize(tenant: Tenant) -> dict:
    return {
        "id": tenant.id,
        "slug": tenant.slug,
        "name": tenant.name,
        "logo": tenant.logo,
        "description": tenant.description or "",
        "color": tenant.color or "indigo",
    }


def _ensure_super_admin(x_super_admin_token: str | None) -> None:
    configured = SUPER_ADMIN_TOKEN
    if not configured:
        # Open registration needs an explicit opt-in and never runs in production.
        if DEV_BOOTSTRAP_ALLOW and not IS_PROD:
            logger.warning("tenant registration without SUPER_ADMIN_TOKEN (DEV_BOOTSTRAP_ALLOW=1)")
            return
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Tenant registration requires SUPER_ADMIN_TOKEN",
        )
    incoming = (x_super_admin_token or "").strip()
    if not secrets.compare_digest(incoming, configured):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid super admin token")


@router.get("", response_model=List[TenantRead])
def list_tenants(db: Session = Depends(get_db)):
    return [_serialize(tenant) for tenant in TenantRepository(db).list()]


@router.post("", response_model=TenantCreated, status_code=status.HTTP_201_CREATED)
def register_tenant(
    payload: TenantCreate,
    db: Session = Depends(get_db),
    x_super_admin_token: str | None = Header(default=None),
):
    _ensure_super_admin(x_super_admin_token)

    repo = TenantRepository(db)
    slug = normalize_slug(payload.slug or payload.name)
    if not slug:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid slug")
    if repo.get_by_slug(slug) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slug already in use")

    tenant, admin = repo.create_with_admin(
        {
            "slug": slug,
            "name": payload.name.strip(),
            "logo": payload.logo,
            "description": payload.description.strip(),
            "color": payload.color.strip() or "indigo",
        },
        {
            "name": payload.admin_name.strip(),
            "phone": payload.admin_phone.strip(),
            "password_hash": hash_password(payload.admin_password),
        },
    )

    logger.info("tenant registered tenant_id=%s slug=%s admin_user_id=%s", tenant.id, tenant.slug, admin.id)
    return {"tenant": _serialize(tenant), "admin_user_id": admin.id}
