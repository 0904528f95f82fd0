import pytest

from carwash_inventory.exceptions import EmptyItems, InvalidAction, InvalidState, NotFound, PermissionDenied
from carwash_inventory.models.audit_log import AuditLog
from carwash_inventory.models.requisition import Requisition, RequisitionStatus
from carwash_inventory.schemas.requisition import RequisitionCreate, RequisitionItemCreate
from carwash_inventory.services import requisition_service
from carwash_inventory.services.auth_service import Identity

ADMIN = Identity(user_id=1, role="admin")
EMPLOYEE = Identity(user_id=2, role="employee")


def _request(db, add_product, quantity=4):
    product = add_product()
    data = RequisitionCreate(
        reason="Weekend rush", items=[RequisitionItemCreate(product_id=product.product_id, quantity=quantity)]
    )
    return requisition_service.create_requisition(db, EMPLOYEE, data)


def test_any_role_can_raise_a_pending_requisition(db, add_product):
    requisition = _request(db, add_product)

    assert requisition.status == RequisitionStatus.PENDING
    assert requisition.requested_by == EMPLOYEE.user_id
    assert [(i.product_name, i.quantity) for i in requisition.items] == [("Foam shampoo", 4)]
    audit = db.query(AuditLog).filter(AuditLog.action == "REQUISITION_CREATED").one()
    assert audit.user_id == EMPLOYEE.user_id
    assert audit.row_id == str(requisition.id)


def test_requisition_without_items_is_rejected(db):
    with pytest.raises(EmptyItems):
        requisition_service.create_requisition(db, EMPLOYEE, RequisitionCreate(reason="nothing"))
    assert db.query(Requisition).count() == 0


def test_requisition_for_unknown_product_is_rejected(db):
    data = RequisitionCreate(items=[RequisitionItemCreate(product_id=404, quantity=1)])
    with pytest.raises(NotFound):
        requisition_service.create_requisition(db, EMPLOYEE, data)


@pytest.mark.parametrize("action,status", [("approve", RequisitionStatus.APPROVED), ("reject", RequisitionStatus.REJECTED)])
def test_admin_decides_a_pending_requisition(db, add_product, action, status):
    requisition_id = _request(db, add_product).id

    decided = requisition_service.decide_requisition(db, ADMIN, requisition_id, action)

    assert decided.status == status
    assert db.query(AuditLog).filter(AuditLog.action == f"REQUISITION_{status.value.upper()}").count() == 1


def test_second_decision_fails_and_keeps_the_first(db, add_product):
    requisition_id = _request(db, add_product).id
    requisition_service.decide_requisition(db, ADMIN, requisition_id, "approve")

    with pytest.raises(InvalidState, match="already processed"):
        requisition_service.decide_requisition(db, ADMIN, requisition_id, "reject")

    assert requisition_service.get_requisition(db, ADMIN, requisition_id).status == RequisitionStatus.APPROVED
    assert db.query(AuditLog).filter(AuditLog.action == "REQUISITION_REJECTED").count() == 0


def test_unknown_action_is_rejected(db, add_product):
    requisition_id = _request(db, add_product).id
    with pytest.raises(InvalidAction):
        requisition_service.decide_requisition(db, ADMIN, requisition_id, "maybe")


def test_deciding_a_missing_requisition(db):
    with pytest.raises(NotFound):
        requisition_service.decide_requisition(db, ADMIN, 77, "approve")


def test_only_admins_decide_or_list(db, add_product):
    requisition_id = _request(db, add_product).id
    with pytest.raises(PermissionDenied):
        requisition_service.decide_requisition(db, EMPLOYEE, requisition_id, "approve")
    with pytest.raises(PermissionDenied):
        requisition_service.list_requisitions(db, EMPLOYEE)
    assert requisition_service.get_requisition(db, ADMIN, requisition_id).status == RequisitionStatus.PENDING


def test_list_filters_by_status(db, add_product):
    first = _request(db, add_product).id
    second = _request(db, add_product).id
    requisition_service.decide_requisition(db, ADMIN, first, "reject")

    pending = requisition_service.list_requisitions(db, ADMIN, status=RequisitionStatus.PENDING)
    assert [r.id for r in pending] == [second]


# --- HTTP ---

def test_requisition_http_flow(client, make_product, user_headers, admin_headers):
    product_id = make_product()

    resp = client.post(
        "/api/requisitions",
        json={"reason": "Low on foam", "items": [{"product_id": product_id, "quantity": 6}]},
        headers=user_headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Requisition created"
    assert body["requisition"]["status"] == "pending"
    assert body["items"][0]["quantity"] == 6
    requisition_id = body["requisition"]["id"]

    assert client.get("/api/requisitions", headers=user_headers).status_code == 403

    resp = client.patch(f"/api/requisitions/{requisition_id}", json={"action": "approve"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Requisition approved"
    assert resp.json()["requisition"]["status"] == "approved"

    resp = client.patch(f"/api/requisitions/{requisition_id}", json={"action": "reject"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json() == {"status": "error", "message": "Requisition already processed (approved)"}


def test_requisition_http_rejects_empty_items(client, user_headers):
    resp = client.post("/api/requisitions", json={"reason": "x", "items": []}, headers=user_headers)
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"


def test_requisition_http_invalid_action(client, make_product, user_headers, admin_headers):
    product_id = make_product()
    created = client.post(
        "/api/requisitions", json={"items": [{"product_id": product_id, "quantity": 1}]}, headers=user_headers
    ).json()

    resp = client.patch(f"/api/requisitions/{created['requisition']['id']}", json={"action": "hold"}, headers=admin_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid action. Use 'approve' or 'reject'."


def test_non_admin_cannot_decide(client, make_product, user_headers, employee_headers):
    product_id = make_product()
    created = client.post(
        "/api/requisitions", json={"items": [{"product_id": product_id, "quantity": 1}]}, headers=user_headers
    ).json()

    resp = client.patch(
        f"/api/requisitions/{created['requisition']['id']}", json={"action": "approve"}, headers=employee_headers
    )

    assert resp.status_code == 403
    assert resp.json() == {"status": "error", "message": "Access denied. Admins only."}


def test_admin_may_raise_a_requisition_too(db, add_product):
    product_id = add_product().product_id
    requisition = requisition_service.create_requisition(
        db, ADMIN, RequisitionCreate(items=[RequisitionItemCreate(product_id=product_id, quantity=2)])
    )
    assert requisition.requested_by == ADMIN.user_id
    assert requisition.status == RequisitionStatus.PENDING


def test_requisition_http_rejects_out_of_range_quantity(client, make_product, user_headers):
    product_id = make_product()

    resp = client.post(
        "/api/requisitions", json={"items": [{"product_id": product_id, "quantity": 10**20}]}, headers=user_headers
    )

    assert resp.status_code == 400
    assert "quantity" in resp.json()["message"]
