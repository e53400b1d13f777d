"""Tenant-scoped persistence for tenants, users, orders and products.

Every query filters by ``tenant_id``; a record belonging to another tenant is
indistinguishable from a missing one. Each write is one commit; on failure the
session is rolled back and the error propagates unchanged.
"""
from __future__ import annotations

from typing import Any, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import update
from sqlalchemy.orm import Session

from ordersync.core.roles import Role
from ordersync.fsm.states import INITIAL_STATUS, OrderStatus
from ordersync.models.order import Order
from ordersync.models.product import Product
from ordersync.models.tenant import Tenant
from ordersync.models.user import User
from ordersync.services.time_filter import now_ms
from utils.slug import normalize_slug

ModelT = TypeVar("ModelT")


class _TenantScopedRepository(Generic[ModelT]):
    model: Type[ModelT]
    # Fields callers may never set through create/update.
    protected_fields: frozenset[str] = frozenset({"id", "tenant_id", "created_at"})

    def __init__(self, db: Session) -> None:
        self.db = db

    def _query(self, tenant_id: int):
        return self.db.query(self.model).filter(self.model.tenant_id == tenant_id)

    def _ordering(self) -> Iterable[Any]:
        return (self.model.id.asc(),)

    def _clean(self, fields: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in fields.items() if key not in self.protected_fields}

    def _commit(self, entity: Optional[ModelT] = None) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        if entity is not None:
            self.db.refresh(entity)

    def list(self, tenant_id: int) -> List[ModelT]:
        return self._query(tenant_id).order_by(*self._ordering()).all()

    def get(self, tenant_id: int, entity_id: int) -> Optional[ModelT]:
        return self._query(tenant_id).filter(self.model.id == entity_id).first()

    def create(self, tenant_id: int, fields: dict[str, Any]) -> ModelT:
        entity = self.model(tenant_id=tenant_id, **self._clean(fields))
        self.db.add(entity)
        self._commit(entity)
        return entity

    def update(self, tenant_id: int, entity_id: int, fields: dict[str, Any]) -> Optional[ModelT]:
        entity = self.get(tenant_id, entity_id)
        if entity is None:
            return None
        for key, value in self._clean(fields).items():
            setattr(entity, key, value)
        self._commit(entity)
        return entity

    def delete(self, tenant_id: int, entity_id: int) -> bool:
        entity = self.get(tenant_id, entity_id)
        if entity is None:
            return False
        self.db.delete(entity)
        self._commit()
        return True


class UserRepository(_TenantScopedRepository[User]):
    model = User
    # password_hash is set at create only; updates never touch it.
    update_protected_fields = frozenset({"password_hash"})

    def update(self, tenant_id: int, entity_id: int, fields: dict[str, Any]) -> Optional[User]:
        allowed = {key: value for key, value in fields.items() if key not in self.update_protected_fields}
        return super().update(tenant_id, entity_id, allowed)

    def find_by_handle(self, tenant_id: int, phone: str) -> Optional[User]:
        handle = (phone or "").strip()
        if not handle:
            return None
        return self._query(tenant_id).filter(User.phone == handle).first()


class OrderRepository(_TenantScopedRepository[Order]):
    model = Order
    protected_fields = frozenset({"id", "tenant_id"})

    def _ordering(self) -> Iterable[Any]:
        # Newest first; id breaks ties between orders created in the same millisecond.
        return (Order.created_at.desc(), Order.id.desc())

    def create(self, tenant_id: int, fields: dict[str, Any]) -> Order:
        values = dict(fields)
        values.setdefault("status", INITIAL_STATUS.value)
        values.setdefault("created_at", now_ms())
        return super().create(tenant_id, values)

    def update_status(
        self,
        tenant_id: int,
        order_id: int,
        expected: OrderStatus,
        new_status: OrderStatus,
    ) -> bool:
        """Conditional status write.

        Returns False when the order is missing, belongs to another tenant or no
        longer holds ``expected``; nothing is written in that case.
        """
        statement = (
            update(Order)
            .where(
                Order.id == order_id,
                Order.tenant_id == tenant_id,
                Order.status == expected.value,
            )
            .values(status=new_status.value)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(statement)
            if result.rowcount != 1:
                self.db.rollback()
                return False
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True


class ProductRepository(_TenantScopedRepository[Product]):
    model = Product

    def _ordering(self) -> Iterable[Any]:
        return (Product.created_at.desc(), Product.id.desc())


class TenantRepository:
    """Tenants are the scope itself, so this one is not tenant-filtered."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def list(self) -> List[Tenant]:
        return self.db.query(Tenant).order_by(Tenant.name.asc(), Tenant.id.asc()).all()

    def get(self, tenant_id: int) -> Optional[Tenant]:
        return self.db.query(Tenant).filter(Tenant.id == tenant_id).first()

    def get_by_slug(self, slug: str) -> Optional[Tenant]:
        normalized = normalize_slug(slug)
        if not normalized:
            return None
        return self.db.query(Tenant).filter(Tenant.slug == normalized).first()

    def _build(self, fields: dict[str, Any]) -> Tenant:
        values = {key: value for key, value in fields.items() if key not in {"id", "created_at"}}
        values["slug"] = normalize_slug(values.get("slug") or values.get("name") or "")
        return Tenant(**values)

    def create(self, fields: dict[str, Any]) -> Tenant:
        tenant = self._build(fields)
        self.db.add(tenant)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(tenant)
        return tenant

    def create_with_admin(self, fields: dict[str, Any], admin_fields: dict[str, Any]) -> tuple[Tenant, User]:
        """Tenant and its first ADMIN user in one commit; neither exists on failure."""
        tenant = self._build(fields)
        try:
            self.db.add(tenant)
            self.db.flush()
            values = {key: value for key, value in admin_fields.items() if key not in {"id", "tenant_id", "role"}}
            admin = User(tenant_id=tenant.id, role=Role.admin.value, **values)
            self.db.add(admin)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(tenant)
        self.db.refresh(admin)
        return tenant, admin
