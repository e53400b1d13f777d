from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from ordersync.ai.mock_provider import NullExtractor, RuleBasedExtractor
from ordersync.routers.orders import get_order_extractor
from ordersync.services.time_filter import now_ms, to_epoch_ms
from tests.client_support import Harness, bearer
from tests.fixtures_data import (
    ADMIN_USER,
    EMPLOYEE_USER,
    EXPECTED_LABELLED_CONTENT,
    LABELLED_ORDER_TEXT,
    OTHER_TENANT_ADMIN,
    TENANT_RESEVALLEY,
    TENANT_ROSEWORLD,
    UNPARSEABLE_ORDER_TEXT,
)


@pytest.fixture()
def harness():
    h = Harness()
    h.tenant_id = h.add_tenant(TENANT_RESEVALLEY)
    h.other_tenant_id = h.add_tenant(TENANT_ROSEWORLD)
    h.admin_id = h.add_user(h.tenant_id, ADMIN_USER)
    h.employee_id = h.add_user(h.tenant_id, EMPLOYEE_USER)
    h.other_admin_id = h.add_user(h.other_tenant_id, OTHER_TENANT_ADMIN)
    h.app.dependency_overrides[get_order_extractor] = RuleBasedExtractor
    return h


def _admin(client):
    return bearer(client, "resevalley", ADMIN_USER["phone"], ADMIN_USER["password"])


def _employee(client):
    return bearer(client, "resevalley", EMPLOYEE_USER["phone"], EMPLOYEE_USER["password"])


def test_employee_creates_order_starting_in_draft_with_creator_snapshot(harness):
    client = harness.client()
    headers = _employee(client)

    response = client.post("/api/orders", json={"text": LABELLED_ORDER_TEXT}, headers=headers)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "DRAFT"
    assert body["content"] == EXPECTED_LABELLED_CONTENT
    assert body["extracted"] is True
    assert body["created_by"] == harness.employee_id
    assert body["creator_name"] == EMPLOYEE_USER["name"]
    assert body["can_delete"] is True


def test_failed_extraction_stores_raw_text(harness):
    harness.app.dependency_overrides[get_order_extractor] = NullExtractor
    client = harness.client()

    response = client.post("/api/orders", json={"text": UNPARSEABLE_ORDER_TEXT}, headers=_admin(client))

    assert response.status_code == 201
    assert response.json()["content"] == UNPARSEABLE_ORDER_TEXT
    assert response.json()["extracted"] is False


def test_orders_are_listed_newest_first_and_scoped_to_tenant(harness):
    base = now_ms()
    harness.add_order(harness.tenant_id, content="older", status="DRAFT", created_by=harness.admin_id,
                      creator_name="Admin Root", created_at=base - 10_000)
    harness.add_order(harness.tenant_id, content="newer", status="DRAFT", created_by=harness.admin_id,
                      creator_name="Admin Root", created_at=base - 1_000)
    harness.add_order(harness.other_tenant_id, content="foreign", status="DRAFT", created_by=harness.other_admin_id,
                      creator_name="Rose Admin", created_at=base)
    client = harness.client()

    response = client.get("/api/orders", headers=_employee(client))

    assert response.status_code == 200
    assert [order["content"] for order in response.json()] == ["newer", "older"]


def test_range_search_and_mine_filters(harness):
    now = datetime.now(timezone.utc)
    harness.add_order(harness.tenant_id, content="roses for Jane", status="DRAFT", created_by=harness.employee_id,
                      creator_name="Sarah Miller", created_at=to_epoch_ms(now - timedelta(days=2)))
    harness.add_order(harness.tenant_id, content="tulips", status="DRAFT", created_by=harness.admin_id,
                      creator_name="Admin Root", created_at=to_epoch_ms(now - timedelta(days=40)))
    client = harness.client()
    headers = _admin(client)

    month = client.get("/api/orders", params={"range": "month"}, headers=headers).json()
    everything = client.get("/api/orders", params={"range": "all"}, headers=headers).json()
    by_creator = client.get("/api/orders", params={"q": "sarah"}, headers=headers).json()
    mine = client.get("/api/orders", params={"mine": "true"}, headers=headers).json()

    assert [order["content"] for order in month] == ["roses for Jane"]
    assert len(everything) == 2
    assert [order["content"] for order in by_creator] == ["roses for Jane"]
    assert [order["content"] for order in mine] == ["tulips"]


def test_unknown_range_name_is_rejected(harness):
    client = harness.client()
    response = client.get("/api/orders", params={"range": "fortnight"}, headers=_admin(client))
    assert response.status_code == 422


def test_admin_walks_order_through_lifecycle(harness):
    order_id = harness.add_order(harness.tenant_id, content="x", status="DRAFT", created_by=harness.employee_id,
                                 creator_name="Sarah Miller", created_at=now_ms())
    client = harness.client()
    headers = _admin(client)

    to_processing = client.patch(f"/api/orders/{order_id}/status", json={"status": "PROCESSING"}, headers=headers)
    to_completed = client.post(f"/api/orders/{order_id}/advance", headers=headers)
    past_terminal = client.post(f"/api/orders/{order_id}/advance", headers=headers)

    assert to_processing.status_code == 200
    assert to_processing.json()["status"] == "PROCESSING"
    assert to_processing.json()["next_status"] == "COMPLETED"
    assert to_completed.json()["status"] == "COMPLETED"
    assert past_terminal.status_code == 409
    assert harness.order_status(order_id) == "COMPLETED"


def test_skipping_to_completed_is_a_conflict(harness):
    order_id = harness.add_order(harness.tenant_id, content="x", status="DRAFT", created_by=None,
                                 creator_name="", created_at=now_ms())
    client = harness.client()

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "COMPLETED"}, headers=_admin(client))

    assert response.status_code == 409
    assert harness.order_status(order_id) == "DRAFT"


def test_employee_cannot_change_status(harness):
    order_id = harness.add_order(harness.tenant_id, content="x", status="DRAFT", created_by=harness.employee_id,
                                 creator_name="Sarah Miller", created_at=now_ms())
    client = harness.client()

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "PROCESSING"},
                            headers=_employee(client))

    assert response.status_code == 403
    assert harness.order_status(order_id) == "DRAFT"


def test_employee_deletes_draft_but_not_processing(harness):
    draft_id = harness.add_order(harness.tenant_id, content="d", status="DRAFT", created_by=harness.employee_id,
                                 creator_name="Sarah Miller", created_at=now_ms())
    processing_id = harness.add_order(harness.tenant_id, content="p", status="PROCESSING",
                                      created_by=harness.employee_id, creator_name="Sarah Miller",
                                      created_at=now_ms())
    client = harness.client()
    headers = _employee(client)

    assert client.delete(f"/api/orders/{processing_id}", headers=headers).status_code == 403
    assert client.delete(f"/api/orders/{draft_id}", headers=headers).status_code == 204
    assert harness.order_status(draft_id) is None
    assert harness.order_status(processing_id) == "PROCESSING"


def test_admin_deletes_completed_order(harness):
    order_id = harness.add_order(harness.tenant_id, content="c", status="COMPLETED", created_by=None,
                                 creator_name="", created_at=now_ms())
    client = harness.client()
    assert client.delete(f"/api/orders/{order_id}", headers=_admin(client)).status_code == 204


def test_other_tenants_order_is_not_found(harness):
    foreign_id = harness.add_order(harness.other_tenant_id, content="f", status="DRAFT",
                                   created_by=harness.other_admin_id, creator_name="Rose Admin",
                                   created_at=now_ms())
    client = harness.client()
    headers = _admin(client)

    assert client.delete(f"/api/orders/{foreign_id}", headers=headers).status_code == 404
    assert client.post(f"/api/orders/{foreign_id}/advance", headers=headers).status_code == 404
    assert harness.order_status(foreign_id) == "DRAFT"


def test_lost_status_race_is_reported_as_conflict(harness):
    order_id = harness.add_order(harness.tenant_id, content="x", status="DRAFT", created_by=None,
                                 creator_name="", created_at=now_ms())
    client = harness.client()
    headers = _admin(client)

    with patch("ordersync.routers.orders.OrderRepository.update_status", return_value=False):
        response = client.post(f"/api/orders/{order_id}/advance", headers=headers)

    assert response.status_code == 409
    assert harness.order_status(order_id) == "DRAFT"


def test_unauthenticated_request_is_401(harness):
    client = harness.client()
    assert client.get("/api/orders").status_code == 401
