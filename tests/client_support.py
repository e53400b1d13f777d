"""In-memory SQLite app builder shared by the API tests."""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ordersync.core.database import Base, get_db
import ordersync.models  # noqa: F401
from ordersync.models.order import Order
from ordersync.models.tenant import Tenant
from ordersync.models.user import User
from ordersync.routers.auth import router as auth_router
from ordersync.routers.dashboard import router as dashboard_router
from ordersync.routers.employees import router as employees_router
from ordersync.routers.orders import router as orders_router
from ordersync.routers.products import router as products_router
from ordersync.routers.profile import router as profile_router
from ordersync.routers.tenants import router as tenants_router
from ordersync.services.passwords import hash_password


class Harness:
    def __init__(self) -> None:
        self.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        Base.metadata.create_all(bind=self.engine)

        self.app = FastAPI()
        for router in (
            tenants_router,
            auth_router,
            orders_router,
            products_router,
            employees_router,
            profile_router,
            dashboard_router,
        ):
            self.app.include_router(router)

        def override_get_db():
            db = self.session_factory()
            try:
                yield db
            finally:
                db.close()

        self.app.dependency_overrides[get_db] = override_get_db

    def client(self) -> TestClient:
        return TestClient(self.app)

    def add_tenant(self, data: dict) -> int:
        db = self.session_factory()
        try:
            tenant = Tenant(**data)
            db.add(tenant)
            db.commit()
            return tenant.id
        finally:
            db.close()

    def add_user(self, tenant_id: int, data: dict) -> int:
        db = self.session_factory()
        try:
            user = User(
                tenant_id=tenant_id,
                name=data["name"],
                phone=data["phone"],
                role=data["role"],
                password_hash=hash_password(data["password"]),
            )
            db.add(user)
            db.commit()
            return user.id
        finally:
            db.close()

    def add_order(self, tenant_id: int, *, content: str, status: str, created_by: int | None,
                  creator_name: str, created_at: int) -> int:
        db = self.session_factory()
        try:
            order = Order(
                tenant_id=tenant_id,
                content=content,
                status=status,
                created_by=created_by,
                creator_name=creator_name,
                created_at=created_at,
            )
            db.add(order)
            db.commit()
            return order.id
        finally:
            db.close()

    def order_status(self, order_id: int) -> str | None:
        db = self.session_factory()
        try:
            order = db.query(Order).filter(Order.id == order_id).first()
            return order.status if order else None
        finally:
            db.close()


def login(client: TestClient, tenant: str, phone: str, password: str):
    return client.post("/api/auth/login", json={"tenant": tenant, "phone": phone, "password": password})


def bearer(client: TestClient, tenant: str, phone: str, password: str) -> dict:
    response = login(client, tenant, phone, password)
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
