from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db, get_current_user_id
from backend.app.api.helpers import (
    get_or_404,
    get_by_code_or_404,
    require_ref,
    ensure_unique_code,
    actor_id,
    update_data,
)
from backend.app.db.base import as_utc
from backend.app.db.models.models_v1 import Invoice, Supplier, PurchaseOrder
from backend.app.db.models.core_types import InvoiceStatus, ActivityType
from backend.app.schemas.procurement import InvoiceRead
from backend.services.activity import log_activity
from backend.services.procurement import due_invoices

router = APIRouter(prefix="/invoices")


class InvoiceCreate(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    supplier_invoice_number: str | None = Field(default=None, max_length=64)
    supplier_id: int
    purchase_order_id: int | None = None
    amount: float = Field(ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    status: InvoiceStatus = InvoiceStatus.pending
    issue_date: datetime
    due_date: datetime
    notes: str | None = None


class InvoiceUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=64)
    supplier_invoice_number: str | None = Field(default=None, max_length=64)
    supplier_id: int | None = None
    purchase_order_id: int | None = None
    amount: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    status: InvoiceStatus | None = None
    issue_date: datetime | None = None
    due_date: datetime | None = None
    notes: str | None = None


def _check_dates(issue_date: datetime, due_date: datetime) -> None:
    if as_utc(due_date) < as_utc(issue_date):
        raise HTTPException(status_code=400, detail="due_date must be after issue_date")


@router.get("", response_model=list[InvoiceRead])
def list_invoices(db: Session = Depends(get_db)):
    return db.execute(select(Invoice).order_by(Invoice.due_date.desc(), Invoice.id.desc())).scalars().all()


@router.get("/due", response_model=list[InvoiceRead])
def list_due_invoices(db: Session = Depends(get_db)):
    return due_invoices(db)


@router.get("/by-code/{code}", response_model=InvoiceRead)
def get_invoice_by_code(code: str, db: Session = Depends(get_db)):
    return get_by_code_or_404(db, Invoice, code, "Invoice")


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(invoice_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Invoice, invoice_id, "Invoice")


@router.post("", response_model=InvoiceRead, status_code=201)
def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    ensure_unique_code(db, Invoice, payload.code, "Invoice")
    require_ref(db, Supplier, payload.supplier_id, "supplier_id")
    require_ref(db, PurchaseOrder, payload.purchase_order_id, "purchase_order_id")
    _check_dates(payload.issue_date, payload.due_date)

    inv = Invoice(**payload.model_dump())
    db.add(inv)
    db.flush()

    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.create,
        description=f"Created invoice {inv.code} ({inv.amount:.2f} {inv.currency})",
        entity_type="invoice",
        entity_id=inv.id,
    )
    db.commit()
    db.refresh(inv)
    return inv


@router.put("/{invoice_id}", response_model=InvoiceRead)
def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    inv = get_or_404(db, Invoice, invoice_id, "Invoice")
    data = update_data(
        payload,
        required=("code", "supplier_id", "amount", "currency", "status", "issue_date", "due_date"),
    )
    if data.get("code") is not None:
        ensure_unique_code(db, Invoice, data["code"], "Invoice", exclude_id=inv.id)
    if "supplier_id" in data:
        require_ref(db, Supplier, data["supplier_id"], "supplier_id")
    if "purchase_order_id" in data:
        require_ref(db, PurchaseOrder, data["purchase_order_id"], "purchase_order_id")
    if "issue_date" in data or "due_date" in data:
        _check_dates(data.get("issue_date", inv.issue_date), data.get("due_date", inv.due_date))

    previous = inv.status
    for field, value in data.items():
        setattr(inv, field, value)

    description = f"Updated invoice {inv.code}"
    if inv.status != previous:
        description += f" ({previous.value} -> {inv.status.value})"
    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.update,
        description=description,
        entity_type="invoice",
        entity_id=inv.id,
    )
    db.commit()
    db.refresh(inv)
    return inv


@router.delete("/{invoice_id}", status_code=204)
def delete_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    inv = get_or_404(db, Invoice, invoice_id, "Invoice")
    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.delete,
        description=f"Deleted invoice {inv.code}",
        entity_type="invoice",
        entity_id=invoice_id,
    )
    db.delete(inv)
    db.commit()
    return Response(status_code=204)
