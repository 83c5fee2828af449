from sqlalchemy import select

from backend.app.db.models.models_v1 import SystemActivity, InventoryMovement


def test_health(client):
    r = client.get("/v1/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_users_never_expose_password(client):
    r = client.post(
        "/v1/users",
        json={"username": "maria", "password": "s3cret", "full_name": "María López", "role": "buyer"},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["username"] == "maria"
    assert "password" not in body

    assert client.get(f"/v1/users/{body['id']}").json()["role"] == "buyer"
    assert client.get("/v1/users/by-username/maria").status_code == 200
    assert client.get("/v1/users/by-username/nobody").status_code == 404
    assert all("password" not in u for u in client.get("/v1/users").json())


def test_duplicate_username_409(client, admin_user):
    r = client.post(
        "/v1/users",
        json={"username": "admin", "password": "x", "full_name": "Other", "role": "manager"},
    )
    assert r.status_code == 409


def test_supplier_crud_logs_activity(client, db_session, admin_user):
    r = client.post("/v1/suppliers", json={"name": "Químicos Unidos", "tax_id": "QU34567"})
    assert r.status_code == 201
    sid = r.json()["id"]
    assert r.json()["status"] == "active"

    r = client.put(f"/v1/suppliers/{sid}", json={"status": "blocked"})
    assert r.status_code == 200
    assert r.json()["status"] == "blocked"
    assert r.json()["name"] == "Químicos Unidos"

    assert client.delete(f"/v1/suppliers/{sid}").status_code == 204
    assert client.get(f"/v1/suppliers/{sid}").status_code == 404

    rows = db_session.execute(
        select(SystemActivity).where(SystemActivity.entity_type == "supplier").order_by(SystemActivity.id)
    ).scalars().all()
    assert [a.activity_type.value for a in rows] == ["create", "update", "delete"]
    assert all(a.user_id == admin_user.id for a in rows)
    assert all(a.entity_id == sid for a in rows)


def test_null_on_required_field_is_rejected(client, supplier):
    r = client.put(f"/v1/suppliers/{supplier.id}", json={"name": None})
    assert r.status_code == 400


def test_activity_actor_from_header(client, db_session, admin_user):
    r = client.post("/v1/users", json={"username": "ana", "password": "x", "full_name": "Ana", "role": "warehouse"})
    ana_id = r.json()["id"]

    client.post("/v1/suppliers", json={"name": "S1"}, headers={"X-User-Id": str(ana_id)})
    client.post("/v1/suppliers", json={"name": "S2"}, headers={"X-User-Id": "999"})

    rows = db_session.execute(
        select(SystemActivity).where(SystemActivity.entity_type == "supplier").order_by(SystemActivity.id)
    ).scalars().all()
    assert rows[0].user_id == ana_id
    assert rows[1].user_id is None  # utilisateur inconnu

    assert client.post("/v1/suppliers", json={"name": "S3"}, headers={"X-User-Id": "abc"}).status_code == 400


def test_missing_supplier_404(client):
    assert client.get("/v1/suppliers/12345").status_code == 404
    assert client.put("/v1/suppliers/12345", json={"name": "x"}).status_code == 404
    assert client.delete("/v1/suppliers/12345").status_code == 404


def test_supplier_with_orders_cannot_be_deleted(client, supplier):
    r = client.post("/v1/purchase-orders", json={"code": "OC-1", "title": "t", "supplier_id": supplier.id})
    assert r.status_code == 201
    assert client.delete(f"/v1/suppliers/{supplier.id}").status_code == 409
    assert client.get(f"/v1/suppliers/{supplier.id}").status_code == 200


def test_create_product_with_opening_stock(client, db_session, supplier):
    r = client.post(
        "/v1/products",
        json={
            "code": "CE-12AWG",
            "name": "Cables eléctricos 12AWG",
            "category": "Eléctricos",
            "unit": "metro",
            "min_stock": 50,
            "current_stock": 15,
            "cost": 1.2,
            "supplier_id": supplier.id,
        },
    )
    assert r.status_code == 201
    body = r.json()
    assert body["current_stock"] == 15

    mv = db_session.execute(
        select(InventoryMovement).where(InventoryMovement.product_id == body["id"])
    ).scalar_one()
    assert mv.quantity == 15
    assert mv.movement_type.value == "adjustment"

    assert client.get("/v1/products/by-code/CE-12AWG").json()["id"] == body["id"]
    assert [p["code"] for p in client.get("/v1/products/low-stock").json()] == ["CE-12AWG"]


def test_product_validation_errors(client, product):
    base = {"code": product.code, "name": "x", "category": "y", "unit": "u"}
    assert client.post("/v1/products", json=base).status_code == 409
    assert client.post("/v1/products", json={**base, "code": "NEW", "supplier_id": 999}).status_code == 400
    assert client.post("/v1/products", json={**base, "code": "NEW", "min_stock": -1}).status_code == 422
    assert client.get("/v1/products/999").status_code == 404


def test_product_update_does_not_touch_stock(client, product):
    r = client.put(f"/v1/products/{product.id}", json={"name": "Tornillos 5/16", "current_stock": 1000})
    assert r.status_code == 200
    assert r.json()["name"] == "Tornillos 5/16"
    assert r.json()["current_stock"] == 8


def test_product_code_change_conflict(client, make_product):
    a = make_product("A")
    make_product("B")
    assert client.put(f"/v1/products/{a.id}", json={"code": "B"}).status_code == 409
    assert client.put(f"/v1/products/{a.id}", json={"code": "A"}).status_code == 200


def test_product_with_movements_cannot_be_deleted(client, make_product):
    moved = make_product("MOVED", stock=3)
    fresh = make_product("FRESH", stock=0)

    assert client.delete(f"/v1/products/{moved.id}").status_code == 409
    assert client.delete(f"/v1/products/{fresh.id}").status_code == 204
