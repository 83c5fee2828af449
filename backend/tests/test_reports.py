from datetime import datetime, timedelta, timezone
from io import BytesIO

import pandas as pd
import pytest

from backend.app.db.base import utcnow
from backend.app.db.models.models_v1 import Supplier, PurchaseOrder, Invoice
from backend.app.db.models.core_types import (
    POStatus,
    InvoiceStatus,
    AdjustmentDirection,
    AdjustmentReason,
)
from backend.services import reports
from backend.services.inventory import adjust_stock


def test_inventory_report(db_session, make_product):
    make_product("A", stock=10, min_stock=2, cost=2.5, category="Eléctricos")
    make_product("B", stock=4, min_stock=5, cost=10, category="Eléctricos")
    make_product("C", stock=3, min_stock=0, cost=None, category="Plomería")

    r = reports.inventory_report(db_session)

    assert r["product_count"] == 3
    assert r["total_value"] == pytest.approx(65.0)
    assert r["low_stock_count"] == 1
    assert r["by_category"] == [
        {"category": "Eléctricos", "products": 2, "stock": 14.0, "value": 65.0},
        {"category": "Plomería", "products": 1, "stock": 3.0, "value": 0.0},
    ]


def test_inventory_report_empty(db_session):
    r = reports.inventory_report(db_session)
    assert r == {"product_count": 0, "total_value": 0.0, "low_stock_count": 0, "by_category": []}


def test_purchases_report(db_session, supplier):
    other = Supplier(name="Electrónicos SA")
    db_session.add(other)
    db_session.flush()
    db_session.add_all([
        PurchaseOrder(code="OC-1", title="a", supplier_id=supplier.id, status=POStatus.pending, total_amount=150),
        PurchaseOrder(code="OC-2", title="b", supplier_id=other.id, status=POStatus.confirmed, total_amount=375),
        PurchaseOrder(code="OC-3", title="c", supplier_id=supplier.id, status=POStatus.completed, total_amount=75),
        PurchaseOrder(code="OC-4", title="d", supplier_id=other.id, status=POStatus.cancelled, total_amount=999),
    ])
    db_session.commit()

    r = reports.purchases_report(db_session)

    assert r["orders_by_status"] == {"pending": 1, "confirmed": 1, "partial": 0, "completed": 1, "cancelled": 1}
    assert r["purchases_by_supplier"] == [
        {"supplier_id": other.id, "supplier": "Electrónicos SA", "orders": 1, "amount": 375.0},
        {"supplier_id": supplier.id, "supplier": "Aceros Industriales", "orders": 2, "amount": 225.0},
    ]


def test_movements_series_is_zero_filled(db_session, make_product):
    p = make_product("A", stock=10)
    adjust_stock(db_session, p, direction=AdjustmentDirection.decrease, quantity=4, reason=AdjustmentReason.loss)
    db_session.commit()

    df = reports.movements_series(db_session, days=3)

    assert list(df.columns) == ["date", "incoming", "outgoing", "net"]
    assert len(df) == 3
    today = df.iloc[-1]
    assert today["date"] == utcnow().date()
    assert (today["incoming"], today["outgoing"], today["net"]) == (10.0, 4.0, 6.0)
    assert df.iloc[:2][["incoming", "outgoing", "net"]].to_numpy().sum() == 0


def test_movements_series_bounds(db_session):
    df = reports.movements_series(
        db_session,
        date_from=datetime(2026, 1, 1).date(),
        date_to=datetime(2026, 1, 31).date(),
    )
    assert len(df) == 31
    assert df["net"].sum() == 0

    with pytest.raises(ValueError):
        reports.movements_series(
            db_session,
            date_from=datetime(2026, 2, 1).date(),
            date_to=datetime(2026, 1, 1).date(),
        )


def test_accounting_report(db_session, supplier):
    now = datetime(2026, 3, 10, tzinfo=timezone.utc)
    day = timedelta(days=1)

    def inv(code, amount, status, due):
        return Invoice(code=code, supplier_id=supplier.id, amount=amount, status=status,
                       issue_date=now - 20 * day, due_date=due)

    db_session.add_all([
        inv("INV-1", 100, InvoiceStatus.pending, now - day),
        inv("INV-2", 50, InvoiceStatus.pending, now + 3 * day),
        inv("INV-3", 30, InvoiceStatus.paid, now - 5 * day),
        inv("INV-4", 20, InvoiceStatus.partial, now + day),
    ])
    db_session.commit()

    r = reports.accounting_report(db_session, now=now)

    assert r == {
        "total_pending": 150.0,
        "total_partial": 20.0,
        "total_paid": 30.0,
        "total_overdue": 100.0,
        "invoice_count": 4,
    }


def test_export_low_stock_csv(db_session, make_product):
    make_product("LOW", stock=2, min_stock=5)
    make_product("OK", stock=9, min_stock=5)

    content, media_type, filename = reports.export_report(db_session, "low-stock", "csv")

    assert media_type == "text/csv"
    assert filename.startswith("low-stock_") and filename.endswith(".csv")
    lines = content.decode("utf-8").splitlines()
    assert lines[0] == "code,name,unit,current_stock,min_stock,shortfall"
    assert lines[1].startswith("LOW,")
    assert len(lines) == 2


def test_export_low_stock_xlsx(db_session, make_product):
    make_product("LOW", stock=2, min_stock=5)
    make_product("OK", stock=9, min_stock=5)

    content, media_type, filename = reports.export_report(db_session, "low-stock", "xlsx")

    assert media_type == reports.XLSX_MEDIA_TYPE
    assert filename.endswith(".xlsx")
    df = pd.read_excel(BytesIO(content))
    assert list(df.columns) == ["code", "name", "unit", "current_stock", "min_stock", "shortfall"]
    assert df["code"].tolist() == ["LOW"]
    assert df["shortfall"].tolist() == [3]


def test_export_pdf_and_unknown_inputs(db_session, make_product):
    make_product("A", stock=3, cost=2)

    content, media_type, _ = reports.export_report(db_session, "inventory-value", "pdf")
    assert media_type == "application/pdf"
    assert content.startswith(b"%PDF")

    with pytest.raises(ValueError):
        reports.export_report(db_session, "inventory-value", "xls")
    with pytest.raises(ValueError):
        reports.export_report(db_session, "unknown", "csv")


def test_report_frame_movements_dates_are_iso(db_session):
    title, df = reports.report_frame(
        db_session,
        "movements",
        date_from=datetime(2026, 1, 1).date(),
        date_to=datetime(2026, 1, 2).date(),
    )
    assert title == "Inventory movements"
    assert isinstance(df, pd.DataFrame)
    assert df["date"].tolist() == ["2026-01-01", "2026-01-02"]
