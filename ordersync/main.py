import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ordersync.core.config import CORS_ORIGINS, DATABASE_URL, DEV_BOOTSTRAP_ALLOW, IS_DEV
from ordersync.core.database import Base, SessionLocal, engine
from ordersync.core.logging_setup import configure_logging
from ordersync.core.roles import Role
from ordersync.core.startup_checks import (
    ensure_migrations_applied,
    validate_database_environment,
    validate_secrets,
)
from ordersync.middleware.observability import ObservabilityMiddleware
import ordersync.models  # models must be registered before create_all

from ordersync.models.tenant import Tenant
from ordersync.models.user import User
from ordersync.services.passwords import hash_password, password_looks_hashed
from ordersync.routers.auth import router as auth_router
from ordersync.routers.dashboard import router as dashboard_router
from ordersync.routers.employees import router as employees_router
from ordersync.routers.orders import router as orders_router
from ordersync.routers.products import router as products_router
from ordersync.routers.profile import router as profile_router
from ordersync.routers.tenants import router as tenants_router
from utils.slug import normalize_slug

configure_logging()

logger = logging.getLogger(__name__)
BOOTSTRAP_PREFIX = "[ADMIN_BOOTSTRAP]"
DEFAULT_ADMIN_PHONE = "admin"
DEFAULT_ADMIN_NAME = "Admin Root"
DEFAULT_ADMIN_TENANT_SLUG = "resevalley"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="OrderSync API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)


def _resolve_admin_password_hash(password: str) -> str:
    if password_looks_hashed(password):
        logger.info("%s password already hashed; storing as-is", BOOTSTRAP_PREFIX)
        return password
    return hash_password(password)


def _bootstrap_initial_admin() -> None:
    dev_admin_password = os.getenv("DEV_ADMIN_PASSWORD", "").strip()
    if not dev_admin_password:
        logger.info("%s skipped: configure DEV_ADMIN_PASSWORD.", BOOTSTRAP_PREFIX)
        return
    if not (IS_DEV or DEV_BOOTSTRAP_ALLOW):
        logger.warning("%s skipped: set DEV_BOOTSTRAP_ALLOW=1 outside dev.", BOOTSTRAP_PREFIX)
        return

    tenant_slug = normalize_slug(os.getenv("DEV_ADMIN_TENANT_SLUG", DEFAULT_ADMIN_TENANT_SLUG))
    tenant_slug = tenant_slug or DEFAULT_ADMIN_TENANT_SLUG
    phone = os.getenv("DEV_ADMIN_PHONE", DEFAULT_ADMIN_PHONE).strip() or DEFAULT_ADMIN_PHONE
    name = os.getenv("DEV_ADMIN_NAME", DEFAULT_ADMIN_NAME).strip() or DEFAULT_ADMIN_NAME

    logger.info("%s start tenant=%s phone=%s", BOOTSTRAP_PREFIX, tenant_slug, phone)

    db = SessionLocal()
    try:
        tenant = db.query(Tenant).filter(Tenant.slug == tenant_slug).first()
        if tenant is None:
            tenant = Tenant(slug=tenant_slug, name=tenant_slug.replace("-", " ").title())
            db.add(tenant)
            db.flush()
            logger.info("%s created tenant id=%s slug=%s", BOOTSTRAP_PREFIX, tenant.id, tenant.slug)

        existing_admin = (
            db.query(User)
            .filter(User.tenant_id == tenant.id, User.phone == phone)
            .first()
        )
        if existing_admin:
            logger.info(
                "%s exists id=%s tenant_id=%s phone=%s",
                BOOTSTRAP_PREFIX,
                existing_admin.id,
                existing_admin.tenant_id,
                existing_admin.phone,
            )
            db.commit()
            return

        admin = User(
            tenant_id=tenant.id,
            phone=phone,
            name=name,
            password_hash=_resolve_admin_password_hash(dev_admin_password),
            role=Role.admin.value,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info(
            "%s created success id=%s tenant_id=%s phone=%s",
            BOOTSTRAP_PREFIX,
            admin.id,
            admin.tenant_id,
            admin.phone,
        )
    except Exception:
        db.rollback()
        logger.exception("%s ERROR bootstrap failed", BOOTSTRAP_PREFIX)
        raise
    finally:
        db.close()


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        validate_secrets()
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
        _bootstrap_initial_admin()
    except Exception:
        logger.exception("[STARTUP] ERROR startup failed")
        raise


# Routers
app.include_router(tenants_router)
app.include_router(auth_router)
app.include_router(orders_router)
app.include_router(products_router)
app.include_router(employees_router)
app.include_router(profile_router)
app.include_router(dashboard_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
