import pytest

from backend.app.db.seed import seed_demo_data
from backend.services.inventory import rebuild_current_stock


@pytest.fixture
def demo(db_session):
    assert seed_demo_data(db_session) is True
    db_session.commit()


def test_seed_is_consistent_and_runs_once(db_session, demo):
    # Le stock semé passe par les mouvements : aucun écart
    assert rebuild_current_stock(db_session) == {}
    assert seed_demo_data(db_session) is False


def test_dashboard(client, demo):
    r = client.get("/v1/dashboard")
    assert r.status_code == 200
    d = r.json()

    assert d["pending_requirements_count"] == 1
    assert d["active_orders_count"] == 2
    assert d["scheduled_receptions_count"] == 1
    assert d["pending_outputs_count"] == 1
    assert [p["code"] for p in d["low_stock_products"]] == ["LI-TIPO-A", "TH-5-16"]
    assert d["delayed_orders"] == []
    assert [i["code"] for i in d["due_invoices"]] == ["INV-2023-002", "INV-2023-003"]
    assert len(d["recent_activities"]) == 6
    assert len(d["inventory_movements"]) == 10


def test_dashboard_empty_database(client):
    d = client.get("/v1/dashboard").json()
    assert d["pending_requirements_count"] == 0
    assert d["low_stock_products"] == []
    assert d["recent_activities"] == []


def test_seeded_purchase_order_totals(client, demo):
    orders = {po["code"]: po for po in client.get("/v1/purchase-orders").json()}
    assert orders["OC-2023-001"]["total_amount"] == 150.0
    assert orders["OC-2023-002"]["total_amount"] == 375.0
    assert orders["OC-2023-003"]["total_amount"] == 75.0


def test_report_endpoints(client, demo):
    inventory = client.get("/v1/reports/inventory").json()
    assert inventory["product_count"] == 5
    assert inventory["low_stock_count"] == 2
    # 8*0.5 + 90*1.2 + 2*25 + 60*3.75 + 48*8.5
    assert inventory["total_value"] == pytest.approx(795.0)

    purchases = client.get("/v1/reports/purchases").json()
    assert purchases["orders_by_status"]["completed"] == 1
    assert purchases["purchases_by_supplier"][0]["amount"] == 375.0

    movements = client.get("/v1/reports/movements", params={"days": 7}).json()
    assert len(movements) == 7
    assert sum(m["incoming"] for m in movements) == pytest.approx(98 + 125)
    assert sum(m["outgoing"] for m in movements) == pytest.approx(15)

    accounting = client.get("/v1/reports/accounting").json()
    assert accounting["total_paid"] == 75.0
    assert accounting["total_pending"] == 525.0
    assert accounting["total_overdue"] == 0.0
    assert accounting["invoice_count"] == 3


XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.mark.parametrize(
    "report",
    ["inventory-value", "low-stock", "purchases", "movements"],
)
@pytest.mark.parametrize(
    "fmt, media_type",
    [("csv", "text/csv"), ("xlsx", XLSX)],
)
def test_export_csv(client, demo, report, fmt, media_type):
    r = client.get(f"/v1/reports/export/{report}", params={"format": fmt})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith(media_type)
    assert f'filename="{report}_' in r.headers["content-disposition"]
    assert r.headers["content-disposition"].endswith(f'.{fmt}"')
    if fmt == "csv":
        assert len(r.text.splitlines()) > 1
    else:
        # xlsx = archive zip
        assert r.content.startswith(b"PK")


def test_export_pdf_with_date_range(client, demo):
    r = client.get(
        "/v1/reports/export/movements",
        params={"format": "pdf", "date_from": "2026-01-01", "date_to": "2026-01-10"},
    )
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")


def test_export_errors(client):
    assert client.get("/v1/reports/export/unknown").status_code == 404
    assert client.get("/v1/reports/export/low-stock", params={"format": "xls"}).status_code == 400
    assert client.get(
        "/v1/reports/export/movements",
        params={"date_from": "2026-02-01", "date_to": "2026-01-01"},
    ).status_code == 400
