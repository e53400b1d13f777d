from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session as DbSession

from ordersync.core.database import get_db
from ordersync.core.roles import View
from ordersync.deps import require_view
from ordersync.routers.employees import EmployeeRead, serialize_user
from ordersync.services.authorization_service import Action, AuthorizationService
from ordersync.services.repositories import UserRepository
from ordersync.services.session import Session

router = APIRouter(prefix="/api/profile", tags=["profile"])


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    # Image data URL; empty string removes the picture.
    avatar: Optional[str] = None


@router.get("", response_model=EmployeeRead)
def get_profile(
    session: Session = Depends(require_view(View.profile)),
    db: DbSession = Depends(get_db),
):
    user = UserRepository(db).get(session.tenant_id, session.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return serialize_user(user)


@router.put("", response_model=EmployeeRead)
def update_profile(
    payload: ProfileUpdate,
    request: Request,
    session: Session = Depends(require_view(View.profile)),
    db: DbSession = Depends(get_db),
):
    repo = UserRepository(db)
    user = repo.get(session.tenant_id, session.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    AuthorizationService.ensure(actor=session, action=Action.update_profile, target=user, request=request)

    # Only name and avatar are self-editable.
    fields = {}
    if payload.name is not None:
        fields["name"] = payload.name.strip()
    if payload.avatar is not None:
        fields["avatar"] = payload.avatar or None
    if fields:
        user = repo.update(session.tenant_id, session.user_id, fields)
    return serialize_user(user)
