from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session as DbSession

from ordersync.core.database import get_db
from ordersync.core.roles import View
from ordersync.deps import require_view
from ordersync.services.analytics import summarize_orders
from ordersync.services.repositories import OrderRepository, UserRepository
from ordersync.services.session import Session
from ordersync.services.time_filter import TimeRange, filter_by_range

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


class EmployeeOrderCount(BaseModel):
    user_id: int
    name: str
    full_name: str
    count: int


class DashboardOverview(BaseModel):
    range: TimeRange
    total_orders: int
    draft_orders: int
    processing_orders: int
    completed_orders: int
    cancelled_orders: int
    employee_count: int
    orders_by_employee: List[EmployeeOrderCount]


@router.get("/overview", response_model=DashboardOverview)
def overview(
    range_name: TimeRange = Query(TimeRange.all, alias="range"),
    start: Optional[date] = None,
    end: Optional[date] = None,
    session: Session = Depends(require_view(View.dashboard)),
    db: DbSession = Depends(get_db),
):
    orders = filter_by_range(OrderRepository(db).list(session.tenant_id), range_name, start, end)
    users = UserRepository(db).list(session.tenant_id)
    return {"range": range_name, **summarize_orders(orders, users)}
