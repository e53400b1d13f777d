from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DbSession

from ordersync.core.database import get_db
from ordersync.core.roles import Role, View
from ordersync.deps import get_current_session, require_view
from ordersync.models.user import User
from ordersync.services.authorization_service import (
    Action,
    AuthorizationService,
    check_employee_deletion,
)
from ordersync.services.passwords import hash_password
from ordersync.services.repositories import UserRepository
from ordersync.services.session import Session

router = APIRouter(prefix="/api/employees", tags=["employees"])

logger = logging.getLogger(__name__)


class EmployeeRead(BaseModel):
    id: int
    tenant_id: int
    name: str
    phone: str
    role: Role
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    phone: str = Field(..., min_length=1, max_length=60)
    password: str = Field(..., min_length=4, max_length=200)
    role: Role = Role.employee
    avatar: Optional[str] = None


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "tenant_id": user.tenant_id,
        "name": user.name,
        "phone": user.phone,
        "role": user.role,
        "avatar": user.avatar,
        "created_at": user.created_at,
    }


@router.get("", response_model=List[EmployeeRead])
def list_employees(
    session: Session = Depends(require_view(View.employees)),
    db: DbSession = Depends(get_db),
):
    return [serialize_user(user) for user in UserRepository(db).list(session.tenant_id)]


@router.post("", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
def create_employee(
    payload: EmployeeCreate,
    request: Request,
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    AuthorizationService.ensure(actor=session, action=Action.create_employee, request=request)

    repo = UserRepository(db)
    phone = payload.phone.strip()
    if repo.find_by_handle(session.tenant_id, phone) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Phone already registered")

    try:
        user = repo.create(
            session.tenant_id,
            {
                "name": payload.name.strip(),
                "phone": phone,
                "role": payload.role.value,
                "password_hash": hash_password(payload.password),
                "avatar": payload.avatar,
            },
        )
    except IntegrityError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Phone already registered") from exc

    logger.info("employee created user_id=%s role=%s", user.id, user.role, extra={"action": "create_employee"})
    return serialize_user(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(
    user_id: int,
    request: Request,
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    repo = UserRepository(db)
    target = repo.get(session.tenant_id, user_id)
    AuthorizationService.ensure_outcome(
        check_employee_deletion(session, user_id, target),
        actor=session,
        action=Action.delete_employee.value,
        request=request,
    )
    # Orders keep created_by / creator_name of the deleted user.
    repo.delete(session.tenant_id, user_id)
    logger.info("employee deleted user_id=%s", user_id, extra={"action": "delete_employee"})
