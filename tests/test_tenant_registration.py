from unittest.mock import patch

from tests.client_support import Harness, login
from tests.fixtures_data import TENANT_RESEVALLEY
from utils.slug import normalize_slug

REGISTRATION = {
    "name": "Rosé World!",
    "description": "Roses for every occasion",
    "color": "rose",
    "admin_name": "Rose Admin",
    "admin_phone": "admin",
    "admin_password": "s3cret",
}


def test_normalize_slug_strips_accents_and_symbols():
    assert normalize_slug("Rosé World!") == "rose-world"
    assert normalize_slug("  --Resevalley-- ") == "resevalley"
    assert normalize_slug("") == ""


def test_tenant_list_is_public_and_sorted_by_name():
    h = Harness()
    h.add_tenant({"slug": "roseworld", "name": "Roseworld"})
    h.add_tenant(TENANT_RESEVALLEY)

    response = h.client().get("/api/tenants")

    assert response.status_code == 200
    assert [tenant["slug"] for tenant in response.json()] == ["resevalley", "roseworld"]


def test_registration_requires_super_admin_token_when_configured():
    client = Harness().client()

    with patch("ordersync.routers.tenants.SUPER_ADMIN_TOKEN", "root-token"):
        missing = client.post("/api/tenants", json=REGISTRATION)
        wrong = client.post("/api/tenants", json=REGISTRATION, headers={"X-Super-Admin-Token": "nope"})
        ok = client.post("/api/tenants", json=REGISTRATION, headers={"X-Super-Admin-Token": "root-token"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert ok.status_code == 201
    assert ok.json()["tenant"]["slug"] == "rose-world"


def test_registered_admin_can_log_in_and_duplicate_slug_conflicts():
    client = Harness().client()

    with patch("ordersync.routers.tenants.SUPER_ADMIN_TOKEN", "root-token"):
        headers = {"X-Super-Admin-Token": "root-token"}
        first = client.post("/api/tenants", json=REGISTRATION, headers=headers)
        second = client.post("/api/tenants", json=REGISTRATION, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 409

    session = login(client, "rose-world", "admin", "s3cret").json()["session"]
    assert session["role"] == "ADMIN"
    assert session["tenant_id"] == first.json()["tenant"]["id"]


def test_registration_without_configured_token_is_refused_by_default():
    client = Harness().client()

    with (
        patch("ordersync.routers.tenants.SUPER_ADMIN_TOKEN", ""),
        patch("ordersync.routers.tenants.IS_PROD", False),
        patch("ordersync.routers.tenants.DEV_BOOTSTRAP_ALLOW", False),
    ):
        response = client.post("/api/tenants", json=REGISTRATION)

    assert response.status_code == 503
    assert client.get("/api/tenants").json() == []


def test_open_registration_needs_explicit_opt_in_outside_production():
    client = Harness().client()

    with (
        patch("ordersync.routers.tenants.SUPER_ADMIN_TOKEN", ""),
        patch("ordersync.routers.tenants.DEV_BOOTSTRAP_ALLOW", True),
    ):
        with patch("ordersync.routers.tenants.IS_PROD", True):
            production = client.post("/api/tenants", json=REGISTRATION)
        with patch("ordersync.routers.tenants.IS_PROD", False):
            development = client.post("/api/tenants", json=REGISTRATION)

    assert production.status_code == 503
    assert development.status_code == 201


def test_all_digit_tenant_name_is_listed_and_usable_for_login():
    client = Harness().client()
    headers = {"X-Super-Admin-Token": "root-token"}

    with patch("ordersync.routers.tenants.SUPER_ADMIN_TOKEN", "root-token"):
        created = client.post("/api/tenants", json={**REGISTRATION, "name": "24"}, headers=headers)

    assert created.status_code == 201
    assert [tenant["slug"] for tenant in client.get("/api/tenants").json()] == ["24"]
    session = login(client, "24", "admin", "s3cret").json()["session"]
    assert session["tenant_id"] == created.json()["tenant"]["id"]
