"""
Rapports et exports (pandas).

Les agrégats sont calculés côté Python sur des DataFrames construits à partir
des requêtes SQLAlchemy ; les volumes d'une organisation unique restent petits.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from io import BytesIO

import pandas as pd
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db.base import utcnow
from backend.app.db.models.models_v1 import (
    Product,
    PurchaseOrder,
    Supplier,
    InventoryMovement,
    Invoice,
)
from backend.app.db.models.core_types import POStatus, InvoiceStatus
from backend.services.documents import render_table_pdf

EXPORTABLE_REPORTS = ("inventory-value", "low-stock", "purchases", "movements")
EXPORT_FORMATS = ("csv", "xlsx", "pdf")
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _frame(db: Session, stmt, columns: list[str]) -> pd.DataFrame:
    rows = db.execute(stmt).mappings().all()
    return pd.DataFrame([dict(r) for r in rows], columns=columns)


def _products_frame(db: Session) -> pd.DataFrame:
    df = _frame(
        db,
        select(
            Product.id,
            Product.code,
            Product.name,
            Product.category,
            Product.unit,
            Product.min_stock,
            Product.current_stock,
            Product.cost,
        ).order_by(Product.code),
        ["id", "code", "name", "category", "unit", "min_stock", "current_stock", "cost"],
    )
    df["cost"] = df["cost"].fillna(0.0).astype(float)
    df["current_stock"] = df["current_stock"].astype(float)
    df["value"] = (df["current_stock"] * df["cost"]).round(2)
    return df


def _as_utc(value: datetime) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


# ---------- INVENTAIRE ----------
def inventory_report(db: Session) -> dict:
    df = _products_frame(db)
    low = df[df["current_stock"] <= df["min_stock"]]

    by_category = (
        df.groupby("category", sort=True)
        .agg(products=("id", "count"), stock=("current_stock", "sum"), value=("value", "sum"))
        .reset_index()
    )
    by_category["value"] = by_category["value"].round(2)

    return {
        "product_count": int(len(df)),
        "total_value": round(float(df["value"].sum()), 2),
        "low_stock_count": int(len(low)),
        "by_category": [
            {
                "category": r.category,
                "products": int(r.products),
                "stock": float(r.stock),
                "value": float(r.value),
            }
            for r in by_category.itertuples(index=False)
        ],
    }


# ---------- ACHATS ----------
def _purchases_frame(db: Session) -> pd.DataFrame:
    return _frame(
        db,
        select(
            PurchaseOrder.id,
            PurchaseOrder.status,
            PurchaseOrder.total_amount,
            PurchaseOrder.supplier_id,
            Supplier.name.label("supplier"),
        )
        .join(Supplier, Supplier.id == PurchaseOrder.supplier_id)
        .order_by(PurchaseOrder.id),
        ["id", "status", "total_amount", "supplier_id", "supplier"],
    )


def purchases_report(db: Session) -> dict:
    df = _purchases_frame(db)

    # Tous les statuts, même à zéro (camembert stable côté client)
    counts = {s.value: 0 for s in POStatus}
    for status, n in df["status"].map(lambda s: POStatus(s).value).value_counts().items():
        counts[status] = int(n)

    # Les commandes annulées ne comptent pas dans les montants
    not_cancelled = df["status"].map(lambda s: POStatus(s) != POStatus.cancelled).astype(bool)
    spent = df[not_cancelled].copy()
    spent["total_amount"] = spent["total_amount"].fillna(0.0).astype(float)
    by_supplier = (
        spent.groupby(["supplier_id", "supplier"], sort=False)
        .agg(orders=("id", "count"), amount=("total_amount", "sum"))
        .reset_index()
        .sort_values(["amount", "supplier"], ascending=[False, True])
    )

    return {
        "orders_by_status": counts,
        "purchases_by_supplier": [
            {
                "supplier_id": int(r.supplier_id),
                "supplier": r.supplier,
                "orders": int(r.orders),
                "amount": round(float(r.amount), 2),
            }
            for r in by_supplier.itertuples(index=False)
        ],
    }


# ---------- MOUVEMENTS ----------
def movements_series(
    db: Session,
    *,
    days: int = 30,
    date_from: date | None = None,
    date_to: date | None = None,
    now: datetime | None = None,
) -> pd.DataFrame:
    """
    Série journalière entrées / sorties.
    Colonnes : date, incoming, outgoing, net. Un jour sans mouvement vaut 0.
    """
    now = now or utcnow()
    end = date_to or _as_utc(now).date()
    start = date_from or (end - timedelta(days=days - 1))
    if start > end:
        raise ValueError("date_from must be before date_to")

    lower = datetime.combine(start, time.min, tzinfo=timezone.utc)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    df = _frame(
        db,
        select(InventoryMovement.quantity, InventoryMovement.created_at)
        .where(InventoryMovement.created_at >= lower)
        .where(InventoryMovement.created_at < upper),
        ["quantity", "created_at"],
    )

    index = pd.date_range(start, end, freq="D").date
    if df.empty:
        series = pd.DataFrame({"incoming": 0.0, "outgoing": 0.0}, index=index)
    else:
        df["date"] = pd.to_datetime(df["created_at"], utc=True).dt.date
        df["quantity"] = df["quantity"].astype(float)
        df["incoming"] = df["quantity"].clip(lower=0)
        df["outgoing"] = (-df["quantity"]).clip(lower=0)
        series = df.groupby("date")[["incoming", "outgoing"]].sum().reindex(index, fill_value=0.0)

    series["net"] = series["incoming"] - series["outgoing"]
    series.index.name = "date"
    return series.reset_index()


def movements_report(db: Session, **kwargs) -> list[dict]:
    series = movements_series(db, **kwargs)
    return [
        {
            "date": r.date.isoformat(),
            "incoming": float(r.incoming),
            "outgoing": float(r.outgoing),
            "net": float(r.net),
        }
        for r in series.itertuples(index=False)
    ]


# ---------- COMPTABILITÉ ----------
def accounting_report(db: Session, *, now: datetime | None = None) -> dict:
    now = _as_utc(now or utcnow())
    df = _frame(
        db,
        select(Invoice.amount, Invoice.status, Invoice.due_date),
        ["amount", "status", "due_date"],
    )
    if df.empty:
        return {"total_pending": 0.0, "total_partial": 0.0, "total_paid": 0.0, "total_overdue": 0.0, "invoice_count": 0}

    # Comparaison sur les valeurs texte : pandas 3 convertit la colonne en dtype str
    df["status"] = df["status"].map(lambda s: InvoiceStatus(s).value)
    df["amount"] = df["amount"].astype(float)
    df["due_date"] = pd.to_datetime(df["due_date"], utc=True)

    pending = df["status"] == InvoiceStatus.pending.value
    return {
        "total_pending": round(float(df.loc[pending, "amount"].sum()), 2),
        "total_partial": round(float(df.loc[df["status"] == InvoiceStatus.partial.value, "amount"].sum()), 2),
        "total_paid": round(float(df.loc[df["status"] == InvoiceStatus.paid.value, "amount"].sum()), 2),
        "total_overdue": round(float(df.loc[pending & (df["due_date"] < now), "amount"].sum()), 2),
        "invoice_count": int(len(df)),
    }


# ---------- EXPORT ----------
def report_frame(
    db: Session,
    report: str,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
) -> tuple[str, pd.DataFrame]:
    if report == "inventory-value":
        df = _products_frame(db)
        return "Inventory valuation", df[["code", "name", "category", "current_stock", "cost", "value"]]

    if report == "low-stock":
        df = _products_frame(db)
        df = df[df["current_stock"] <= df["min_stock"]].copy()
        df["shortfall"] = df["min_stock"] - df["current_stock"]
        return "Low stock products", df[["code", "name", "unit", "current_stock", "min_stock", "shortfall"]]

    if report == "purchases":
        rows = purchases_report(db)["purchases_by_supplier"]
        return "Purchases by supplier", pd.DataFrame(rows, columns=["supplier", "orders", "amount"])

    if report == "movements":
        df = movements_series(db, date_from=date_from, date_to=date_to)
        df["date"] = df["date"].map(lambda d: d.isoformat())
        return "Inventory movements", df

    raise ValueError(f"Unknown report: {report}")


def export_report(
    db: Session,
    report: str,
    fmt: str,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
) -> tuple[bytes, str, str]:
    """Retourne (contenu, media_type, nom de fichier)."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported format: {fmt}")

    title, df = report_frame(db, report, date_from=date_from, date_to=date_to)
    stamp = _as_utc(utcnow()).strftime("%Y%m%d")
    filename = f"{report}_{stamp}.{fmt}"

    if fmt == "csv":
        return df.to_csv(index=False).encode("utf-8"), "text/csv", filename

    if fmt == "xlsx":
        buf = BytesIO()
        df.to_excel(buf, index=False, sheet_name=title[:31], engine="openpyxl")
        return buf.getvalue(), XLSX_MEDIA_TYPE, filename

    subtitle = None
    if date_from or date_to:
        subtitle = f"{date_from or ''} - {date_to or ''}"
    return render_table_pdf(title, df, subtitle=subtitle), "application/pdf", filename
