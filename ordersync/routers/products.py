from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session as DbSession

from ordersync.core.database import get_db
from ordersync.core.roles import View
from ordersync.deps import get_current_session, require_view
from ordersync.models.product import Product
from ordersync.services.authorization_service import Action, AuthorizationService
from ordersync.services.repositories import ProductRepository
from ordersync.services.session import Session

router = APIRouter(prefix="/api/products", tags=["products"])


class ProductRead(BaseModel):
    id: int
    tenant_id: int
    name: str
    category: str
    sale_price: Decimal
    purchase_price: Decimal
    image: Optional[str] = None
    description: Optional[str] = None


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=160)
    category: str = Field(default="", max_length=80)
    sale_price: Decimal = Field(default=Decimal("0"), ge=0)
    purchase_price: Decimal = Field(default=Decimal("0"), ge=0)
    image: Optional[str] = None
    description: Optional[str] = None


def _serialize(product: Product) -> dict:
    return {
        "id": product.id,
        "tenant_id": product.tenant_id,
        "name": product.name,
        "category": product.category or "",
        "sale_price": product.sale_price,
        "purchase_price": product.purchase_price,
        "image": product.image,
        "description": product.description,
    }


@router.get("", response_model=List[ProductRead])
def list_products(
    q: Optional[str] = None,
    session: Session = Depends(require_view(View.products)),
    db: DbSession = Depends(get_db),
):
    products = ProductRepository(db).list(session.tenant_id)
    term = (q or "").strip().lower()
    if term:
        products = [
            product
            for product in products
            if term in (product.name or "").lower() or term in (product.category or "").lower()
        ]
    return [_serialize(product) for product in products]


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    request: Request,
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    AuthorizationService.ensure(actor=session, action=Action.create_product, request=request)
    fields = payload.model_dump()
    fields["name"] = fields["name"].strip()
    fields["category"] = fields["category"].strip()
    product = ProductRepository(db).create(session.tenant_id, fields)
    return _serialize(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    request: Request,
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
):
    AuthorizationService.ensure(actor=session, action=Action.delete_product, request=request)
    repo = ProductRepository(db)
    if not repo.delete(session.tenant_id, product_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
