from sqlalchemy.exc import OperationalError

from carwash_inventory.services import stock_service


def _adjust(client, headers, **body):
    return client.post("/api/inventory-logs", json={"reason": "count correction", **body}, headers=headers)


def test_manual_adjustment_writes_ledger_entry_and_audit(client, make_product, stock_of, employee_headers, admin_headers):
    product_id = make_product(stock=10, cost=2.5)

    resp = _adjust(client, employee_headers, product_id=product_id, change=-4, reason="sold")

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "success"
    log = body["log"]
    assert (log["change"], log["previous_stock"], log["new_stock"]) == (-4, 10, 6)
    assert log["created_by"] == 2
    assert log["metadata"] == {"previous_stock": 10, "new_stock": 6, "unit_cost": 2.5, "total_cost_impact": -10.0}
    assert stock_of(product_id) == 6

    audit = client.get("/api/audit-logs", params={"action": "INVENTORY_UPDATE"}, headers=admin_headers).json()
    assert len(audit) == 1
    assert audit[0]["user_id"] == 2
    assert audit[0]["row_id"] == str(product_id)
    assert audit[0]["payload"]["total_cost_impact"] == -10.0


def test_oversell_is_rejected_without_side_effects(client, make_product, stock_of, employee_headers):
    product_id = make_product(stock=3)

    resp = _adjust(client, employee_headers, product_id=product_id, change=-5)

    assert resp.status_code == 400
    assert resp.json()["status"] == "error"
    assert resp.json()["message"].startswith("Insufficient stock")
    assert stock_of(product_id) == 3
    assert client.get("/api/inventory-logs", headers=employee_headers).json() == []


def test_adjustment_for_unknown_product(client, employee_headers):
    resp = _adjust(client, employee_headers, product_id=555, change=1)
    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "message": "Product 555 not found"}


def test_zero_change_and_missing_reason_are_rejected(client, make_product, employee_headers):
    product_id = make_product()

    resp = _adjust(client, employee_headers, product_id=product_id, change=0)
    assert resp.status_code == 400

    resp = client.post("/api/inventory-logs", json={"product_id": product_id, "change": 1}, headers=employee_headers)
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"
    assert "reason" in resp.json()["message"]


def test_only_admins_book_for_someone_else(client, make_product, employee_headers, admin_headers):
    product_id = make_product()

    as_employee = _adjust(client, employee_headers, product_id=product_id, change=1, created_by=99).json()
    as_admin = _adjust(client, admin_headers, product_id=product_id, change=1, created_by=99).json()

    assert as_employee["log"]["created_by"] == 2
    assert as_admin["log"]["created_by"] == 99


def test_listing_joins_product_and_creator_names(client, make_product, make_user, user_headers, admin_headers):
    make_user(1, "Dana Reyes", role="admin")
    product_id = make_product(name="Tyre shine", stock=5)
    _adjust(client, admin_headers, product_id=product_id, change=2)
    _adjust(client, admin_headers, product_id=product_id, change=-1, created_by=404)

    rows = client.get("/api/inventory-logs", params={"product_id": product_id}, headers=user_headers).json()

    assert [r["change"] for r in rows] == [-1, 2]
    assert {r["product"] for r in rows} == {"Tyre shine"}
    assert [r["created_by_name"] for r in rows] == ["System", "Dana Reyes"]
    assert rows[0]["metadata"]["previous_stock"] == 7
    assert rows[0]["metadata"]["new_stock"] == 6


def test_log_action_records_client_reported_event(client, employee_headers, admin_headers):
    resp = client.post(
        "/api/log-action",
        json={"action": "BAY_CLEANED", "table_name": "bays", "row_id": 3, "payload": {"bay": "B"}, "user_id": 1},
        headers=employee_headers,
    )

    assert resp.status_code == 201
    log = resp.json()["log"]
    assert (log["action"], log["table_name"], log["row_id"]) == ("BAY_CLEANED", "bays", "3")
    assert log["user_id"] == 2
    assert log["payload"] == {"bay": "B"}

    assert client.get("/api/audit-logs", headers=employee_headers).status_code == 403
    assert [e["action"] for e in client.get("/api/audit-logs", headers=admin_headers).json()] == ["BAY_CLEANED"]


def test_ledger_requires_a_token(client):
    resp = client.get("/api/inventory-logs")
    assert resp.status_code == 401
    assert resp.json() == {"status": "error", "message": "No token provided"}


def test_store_failure_answers_500_and_changes_nothing(client, make_product, stock_of, employee_headers, monkeypatch):
    product_id = make_product(stock=10)
    apply_for_real = stock_service.apply_delta

    def apply_then_lose_the_store(*args, **kwargs):
        apply_for_real(*args, **kwargs)
        raise OperationalError("UPDATE products", {}, Exception("database disk image is malformed"))

    monkeypatch.setattr(stock_service, "apply_delta", apply_then_lose_the_store)
    resp = _adjust(client, employee_headers, product_id=product_id, change=-4)

    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "message": "Inventory store unavailable; no changes were applied"}
    assert stock_of(product_id) == 10


def test_out_of_range_change_is_a_validation_error(client, make_product, stock_of, employee_headers):
    product_id = make_product(stock=10)

    resp = _adjust(client, employee_headers, product_id=product_id, change=10**20)

    assert resp.status_code == 400
    assert resp.json()["status"] == "error"
    assert "change" in resp.json()["message"]
    assert stock_of(product_id) == 10
