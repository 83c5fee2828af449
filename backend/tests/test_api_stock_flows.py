from datetime import timedelta

from sqlalchemy import select

from backend.app.db.base import utcnow
from backend.app.db.models.models_v1 import InventoryMovement, Product, SystemActivity
from backend.app.db.models.core_types import MovementType


def _stock(client, product_id):
    return client.get(f"/v1/products/{product_id}").json()["current_stock"]


def _reception(client, supplier, code="REC-2023-001", **extra):
    r = client.post("/v1/receptions", json={"code": code, "supplier_id": supplier.id, **extra})
    assert r.status_code == 201
    return r.json()


def _output(client, code="SAL-2023-001", **extra):
    r = client.post(
        "/v1/outputs",
        json={"code": code, "destination": "Planta de Producción", "destination_type": "department", **extra},
    )
    assert r.status_code == 201
    return r.json()


# ---------- Réceptions ----------
def test_reception_detail_completed_increments_stock(client, supplier, product):
    rec = _reception(client, supplier, status="completed")

    r = client.post(
        f"/v1/receptions/{rec['id']}/details",
        json={
            "product_id": product.id,
            "quantity_expected": 20,
            "quantity_received": 20,
            "unit": "unidad",
            "status": "completed",
        },
    )
    assert r.status_code == 201
    assert _stock(client, product.id) == 28

    mv = client.get(f"/v1/inventory/movements?product_id={product.id}").json()[0]
    assert mv["movement_type"] == "reception"
    assert mv["quantity"] == 20
    assert mv["reference_type"] == "reception"
    assert mv["reference_id"] == rec["id"]
    assert mv["notes"] == "Reception REC-2023-001"


def test_reception_detail_partial_and_pending(client, supplier, product):
    rec = _reception(client, supplier, status="partial")
    base = {"product_id": product.id, "quantity_expected": 100, "unit": "unidad"}

    client.post(f"/v1/receptions/{rec['id']}/details", json={**base, "quantity_received": 75, "status": "partial"})
    assert _stock(client, product.id) == 83

    client.post(f"/v1/receptions/{rec['id']}/details", json={**base, "quantity_received": 25})  # pending
    assert _stock(client, product.id) == 83
    assert len(client.get(f"/v1/receptions/{rec['id']}/details").json()) == 2


def test_reception_errors(client, supplier, product):
    assert client.post("/v1/receptions", json={"code": "R", "supplier_id": 999}).status_code == 400
    assert client.post(
        "/v1/receptions", json={"code": "R", "supplier_id": supplier.id, "purchase_order_id": 999}
    ).status_code == 400
    rec = _reception(client, supplier, code="R")
    assert client.post("/v1/receptions", json={"code": "R", "supplier_id": supplier.id}).status_code == 409

    detail = {"product_id": product.id, "quantity_expected": 1, "quantity_received": 1, "unit": "u"}
    assert client.post("/v1/receptions/999/details", json=detail).status_code == 400
    assert client.post(
        f"/v1/receptions/{rec['id']}/details", json={**detail, "product_id": 999}
    ).status_code == 400
    assert client.get("/v1/receptions/999/details").status_code == 404


def test_scheduled_receptions_endpoint(client, supplier):
    now = utcnow()
    _reception(client, supplier, code="REC-SOON", status="scheduled",
               received_at=(now + timedelta(days=1)).isoformat())
    _reception(client, supplier, code="REC-LATER", status="scheduled",
               received_at=(now + timedelta(days=20)).isoformat())
    _reception(client, supplier, code="REC-DONE", status="completed")

    assert [r["code"] for r in client.get("/v1/receptions/scheduled").json()] == ["REC-SOON"]


def test_reception_pdf(client, supplier, product):
    po = client.post("/v1/purchase-orders", json={
        "code": "OC-2023-003",
        "title": "Compra de tuberías",
        "supplier_id": supplier.id,
        "details": [{"product_id": product.id, "quantity": 20, "unit": "unidad", "unit_price": 0.5}],
    }).json()
    rec = _reception(client, supplier, purchase_order_id=po["id"], status="completed",
                     notes="Recepción completa y en buenas condiciones")
    client.post(
        f"/v1/receptions/{rec['id']}/details",
        json={"product_id": product.id, "quantity_expected": 20, "quantity_received": 20,
              "unit": "unidad", "status": "completed"},
    )

    r = client.get(f"/v1/receptions/{rec['id']}/pdf")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert 'filename="REC-2023-001.pdf"' in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")

    # Réception sans commande ni lignes
    bare = _reception(client, supplier, code="REC-2023-002")
    assert client.get(f"/v1/receptions/{bare['id']}/pdf").status_code == 200
    assert client.get("/v1/receptions/999/pdf").status_code == 404


# ---------- Sorties ----------
def test_output_detail_on_completed_output_decrements_stock(client, product):
    out = _output(client, status="completed")

    r = client.post(
        f"/v1/outputs/{out['id']}/details",
        json={"product_id": product.id, "quantity": 5, "unit": "unidad"},
    )
    assert r.status_code == 201
    assert r.json()["status"] == "completed"
    assert _stock(client, product.id) == 3

    mv = client.get("/v1/inventory/movements", params={"product_id": product.id}).json()[0]
    assert mv["movement_type"] == "output"
    assert mv["quantity"] == -5
    assert mv["reference_id"] == out["id"]


def test_completed_detail_on_pending_output_decrements_stock(client, product):
    out = _output(client)
    r = client.post(
        f"/v1/outputs/{out['id']}/details",
        json={"product_id": product.id, "quantity": 2, "unit": "unidad", "status": "completed"},
    )
    assert r.json()["status"] == "completed"
    assert _stock(client, product.id) == 6


def test_completing_output_issues_pending_details(client, db_session, make_product):
    screws = make_product("TH-5-16", stock=8)
    oil = make_product("LI-TIPO-A", stock=2, unit="litro")
    out = _output(client, code="SAL-2023-003")

    client.post(f"/v1/outputs/{out['id']}/details", json={"product_id": screws.id, "quantity": 2, "unit": "unidad"})
    client.post(f"/v1/outputs/{out['id']}/details", json={"product_id": oil.id, "quantity": 1, "unit": "litro"})
    assert _stock(client, screws.id) == 8
    assert [o["code"] for o in client.get("/v1/outputs/pending").json()] == ["SAL-2023-003"]

    r = client.put(f"/v1/outputs/{out['id']}", json={"status": "completed"})
    assert r.status_code == 200
    assert _stock(client, screws.id) == 6
    assert _stock(client, oil.id) == 1
    assert all(d["status"] == "completed" for d in client.get(f"/v1/outputs/{out['id']}/details").json())
    assert client.get("/v1/outputs/pending").json() == []

    # Re-passer à completed ne ressort rien
    client.put(f"/v1/outputs/{out['id']}", json={"status": "approved"})
    client.put(f"/v1/outputs/{out['id']}", json={"status": "completed"})
    assert _stock(client, screws.id) == 6

    activity = db_session.execute(
        select(SystemActivity)
        .where(SystemActivity.entity_type == "output")
        .where(SystemActivity.description.like("%pending -> completed%"))
    ).scalar_one()
    assert "2 line(s) issued" in activity.description


def test_output_may_drive_stock_negative(client, product):
    out = _output(client, status="completed")
    client.post(f"/v1/outputs/{out['id']}/details", json={"product_id": product.id, "quantity": 10, "unit": "unidad"})
    assert _stock(client, product.id) == -2


def test_output_errors(client, product):
    assert client.post(
        "/v1/outputs", json={"code": "S", "destination": "x", "destination_type": "nowhere"}
    ).status_code == 422
    assert client.post(
        "/v1/outputs", json={"code": "S", "destination": "x", "destination_type": "client", "approved_by": 5}
    ).status_code == 400
    out = _output(client, code="S")
    assert client.post(
        f"/v1/outputs/{out['id']}/details", json={"product_id": product.id, "quantity": -1, "unit": "u"}
    ).status_code == 422
    assert client.post(
        "/v1/outputs/999/details", json={"product_id": product.id, "quantity": 1, "unit": "u"}
    ).status_code == 400
    assert client.put("/v1/outputs/999", json={"status": "completed"}).status_code == 404


# ---------- Inventaire ----------
def test_manual_movement_and_adjustment(client, db_session, admin_user, product):
    r = client.post("/v1/inventory/movements", json={"product_id": product.id, "quantity": 4, "notes": "conteo"})
    assert r.status_code == 201
    assert r.json()["created_by"] == admin_user.id
    assert _stock(client, product.id) == 12

    r = client.post(
        "/v1/inventory/adjustments",
        json={"product_id": product.id, "direction": "decrease", "quantity": 3, "reason": "expiration"},
    )
    assert r.status_code == 201
    assert r.json()["quantity"] == -3
    assert r.json()["notes"] == "Adjustment (expiration)"
    assert _stock(client, product.id) == 9

    types = {
        a.entity_type
        for a in db_session.execute(select(SystemActivity)).scalars().all()
    }
    assert {"inventory_movement", "inventory_adjustment"} <= types


def test_inventory_validation(client, product):
    assert client.post("/v1/inventory/movements", json={"product_id": product.id, "quantity": 0}).status_code == 400
    assert client.post("/v1/inventory/movements", json={"product_id": 999, "quantity": 1}).status_code == 400
    assert client.post(
        "/v1/inventory/adjustments",
        json={"product_id": product.id, "direction": "decrease", "quantity": 0, "reason": "loss"},
    ).status_code == 422
    assert client.post(
        "/v1/inventory/adjustments",
        json={"product_id": product.id, "direction": "sideways", "quantity": 1, "reason": "loss"},
    ).status_code == 422
    assert _stock(client, product.id) == 8


def test_recent_movements(client, db_session, product):
    old = InventoryMovement(
        product_id=product.id,
        quantity=1,
        unit="unidad",
        movement_type=MovementType.adjustment,
        created_at=utcnow() - timedelta(days=30),
    )
    db_session.add(old)
    db_session.commit()

    assert len(client.get("/v1/inventory/recent-movements").json()) == 1
    assert len(client.get("/v1/inventory/recent-movements?days=60").json()) == 2
    assert client.get("/v1/inventory/recent-movements?days=0").status_code == 422


def test_rebuild_endpoint(client, db_session, product):
    db_session.get(Product, product.id).current_stock = 100
    db_session.commit()

    r = client.post("/v1/inventory/rebuild", params={"product_id": product.id})
    assert r.status_code == 200
    assert r.json() == {"corrected": 1, "drift": {str(product.id): -92.0}}
    assert _stock(client, product.id) == 8

    assert client.post("/v1/inventory/rebuild").json() == {"corrected": 0, "drift": {}}
    assert client.post("/v1/inventory/rebuild", params={"product_id": 999}).status_code == 404


# ---------- Journal ----------
def test_activities_endpoint(client, admin_user):
    r = client.post(
        "/v1/activities",
        json={"activity_type": "update", "description": "Cierre de inventario", "entity_type": "inventory"},
    )
    assert r.status_code == 201
    assert r.json()["user_id"] == admin_user.id

    for i in range(3):
        client.post("/v1/suppliers", json={"name": f"S{i}"})

    rows = client.get("/v1/activities", params={"limit": 2}).json()
    assert len(rows) == 2
    assert rows[0]["description"] == "Created supplier S2"
    assert len(client.get("/v1/activities").json()) == 4
