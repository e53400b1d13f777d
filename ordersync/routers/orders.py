from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session as DbSession

from ordersync.ai.base import OrderTextExtractor
from ordersync.ai.service import build_order_content, get_extractor
from ordersync.core.database import get_db
from ordersync.core.roles import View
from ordersync.deps import get_current_session, require_view
from ordersync.fsm import order_lifecycle
from ordersync.fsm.states import OrderStatus, parse_status
from ordersync.models.order import Order
from ordersync.services.authorization_service import Action, AuthorizationService, can_perform
from ordersync.services.outcomes import ErrorKind, Outcome
from ordersync.services.repositories import OrderRepository
from ordersync.services.session import Session
from ordersync.services.time_filter import TimeRange, filter_by_range

router = APIRouter(prefix="/api/orders", tags=["orders"])

logger = logging.getLogger(__name__)


class OrderRead(BaseModel):
    id: int
    tenant_id: int
    content: str
    status: OrderStatus
    created_by: Optional[int] = None
    creator_name: str
    created_at: int
    next_status: Optional[OrderStatus] = None
    can_delete: bool = False


class OrderCreate(BaseModel):
    text: str = Field(..., min_length=1)
    # False stores the text as typed, skipping extraction.
    parse: bool = True


class OrderCreated(OrderRead):
    extracted: bool


class StatusUpdate(BaseModel):
    status: OrderStatus


def get_order_extractor() -> OrderTextExtractor:
    return get_extractor()


def _serialize(order: Order, session: Session) -> dict:
    return {
        "id": order.id,
        "tenant_id": order.tenant_id,
        "content": order.content,
        "status": order.status,
        "created_by": order.created_by,
        "creator_name": order.creator_name or "",
        "created_at": int(order.created_at),
        "next_status": order_lifecycle.next_status(order.status),
        "can_delete": can_perform(session, Action.delete_order, order),
    }


def _matches(order: Order, term: str) -> bool:
    return term in (order.content or "").lower() or term in (order.creator_name or "").lower()


def _get_or_404(repo: OrderRepository, session: Session, order_id: int) -> Order:
    order = repo.get(session.tenant_id, order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.get("", response_model=List[OrderRead])
def list_orders(
    range_name: TimeRange = Query(TimeRange.all, alias="range"),
    start: Optional[date] = None,
    end: Optional[date] = None,
    q: Optional[str] = None,
    mine: bool = False,
    session: Session = Depends(require_view(View.orders)),
    db: DbSession = Depends(get_db),
):
    orders = OrderRepository(db).list(session.tenant_id)
    orders = filter_by_range(orders, range_name, start, end)

    term = (q or "").strip().lower()
    if term:
        orders = [order for order in orders if _matches(order, term)]
    if mine:
        orders = [order for order in orders if order.created_by == session.user_id]

    return [_serialize(order, session) for order in orders]


@router.post("", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    request: Request,
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
    extractor: OrderTextExtractor = Depends(get_order_extractor),
):
    AuthorizationService.ensure(actor=session, action=Action.create_order, request=request)

    if payload.parse:
        content, outcome = build_order_content(payload.text, extractor)
    else:
        content, outcome = payload.text, Outcome.failure(ErrorKind.extraction_failed, "Extraction skipped")

    # New orders always start in DRAFT whatever the caller's role.
    order = OrderRepository(db).create(
        session.tenant_id,
        {
            "content": content,
            "status": OrderStatus.draft.value,
            "created_by": session.user_id,
            "creator_name": session.name,
        },
    )
    logger.info(
        "order created order_id=%s extracted=%s",
        order.id,
        outcome.ok,
        extra={"action": "create_order"},
    )
    return {**_serialize(order, session), "extracted": outcome.ok}


def _apply_transition(
    request: Request,
    db: DbSession,
    session: Session,
    order_id: int,
    requested: OrderStatus | None,
) -> dict:
    repo = OrderRepository(db)
    order = _get_or_404(repo, session, order_id)
    current = parse_status(order.status)

    if requested is None:
        outcome = order_lifecycle.advance(current, session)
    else:
        outcome = order_lifecycle.transition(current, requested, session)
    new_status = AuthorizationService.ensure_outcome(
        outcome,
        actor=session,
        action=Action.transition_order.value,
        request=request,
    )

    if not repo.update_status(session.tenant_id, order_id, current, new_status):
        # Status changed (or order vanished) since it was read.
        AuthorizationService.ensure_outcome(
            Outcome.failure(ErrorKind.invalid_transition, "Order status changed concurrently"),
            actor=session,
            action=Action.transition_order.value,
            request=request,
        )

    order = _get_or_404(repo, session, order_id)
    logger.info(
        "order status changed order_id=%s from=%s to=%s",
        order_id,
        current.value if current else None,
        new_status.value,
        extra={"action": "transition_order"},
    )
    return _serialize(order, session)


@router.patch("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: int,
    payload: StatusUpdate,
    request: Request,
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    return _apply_transition(request, db, session, order_id, payload.status)


@router.post("/{order_id}/advance", response_model=OrderRead)
def advance_order(
    order_id: int,
    request: Request,
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    return _apply_transition(request, db, session, order_id, None)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(
    order_id: int,
    request: Request,
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    repo = OrderRepository(db)
    order = _get_or_404(repo, session, order_id)
    AuthorizationService.ensure(actor=session, action=Action.delete_order, target=order, request=request)
    repo.delete(session.tenant_id, order_id)
    logger.info("order deleted order_id=%s", order_id, extra={"action": "delete_order"})
