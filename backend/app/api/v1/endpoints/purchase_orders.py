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
    commit_or_409,
    update_data,
)
from backend.app.db.models.models_v1 import (
    PurchaseOrder,
    PurchaseOrderDetail,
    Supplier,
    Requirement,
    Product,
)
from backend.app.db.models.core_types import POStatus, ActivityType
from backend.app.schemas.procurement import PurchaseOrderRead, PurchaseOrderDetailRead
from backend.services.activity import log_activity
from backend.services.documents import render_purchase_order_pdf
from backend.services.procurement import (
    line_total,
    recompute_po_total,
    active_purchase_orders,
    delayed_purchase_orders,
    purchase_order_from_requirement,
)

router = APIRouter(prefix="/purchase-orders")


class PODetailCreate(BaseModel):
    product_id: int
    quantity: float = Field(gt=0)
    unit: str = Field(min_length=1, max_length=32)
    unit_price: float = Field(ge=0)
    total_price: float | None = Field(default=None, ge=0)  # défaut: quantity * unit_price
    notes: str | None = None


class PODetailUpdate(BaseModel):
    product_id: int | None = None
    quantity: float | None = Field(default=None, gt=0)
    unit: str | None = Field(default=None, min_length=1, max_length=32)
    unit_price: float | None = Field(default=None, ge=0)
    total_price: float | None = Field(default=None, ge=0)
    notes: str | None = None


class POCreate(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=255)
    supplier_id: int
    requirement_id: int | None = None
    status: POStatus = POStatus.pending
    currency: str = Field(default="USD", min_length=3, max_length=3)
    notes: str | None = None
    expected_delivery_date: datetime | None = None
    details: list[PODetailCreate] = Field(default_factory=list)


class POFromRequirement(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    supplier_id: int
    currency: str = Field(default="USD", min_length=3, max_length=3)
    expected_delivery_date: datetime | None = None


class POUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=64)
    title: str | None = Field(default=None, min_length=1, max_length=255)
    supplier_id: int | None = None
    requirement_id: int | None = None
    status: POStatus | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    notes: str | None = None
    expected_delivery_date: datetime | None = None


def _get_detail(db: Session, po_id: int, detail_id: int) -> PurchaseOrderDetail:
    get_or_404(db, PurchaseOrder, po_id, "PO")
    d = db.get(PurchaseOrderDetail, detail_id)
    if not d or d.purchase_order_id != po_id:
        raise HTTPException(status_code=404, detail="PO detail not found")
    return d


def _build_detail(po_id: int, ln: PODetailCreate) -> PurchaseOrderDetail:
    data = ln.model_dump()
    if data["total_price"] is None:
        data["total_price"] = line_total(ln.quantity, ln.unit_price)
    return PurchaseOrderDetail(purchase_order_id=po_id, **data)


@router.get("", response_model=list[PurchaseOrderRead])
def list_pos(db: Session = Depends(get_db)):
    return db.execute(select(PurchaseOrder).order_by(PurchaseOrder.id.desc())).scalars().all()


@router.get("/active", response_model=list[PurchaseOrderRead])
def list_active_pos(db: Session = Depends(get_db)):
    return active_purchase_orders(db)


@router.get("/delayed", response_model=list[PurchaseOrderRead])
def list_delayed_pos(db: Session = Depends(get_db)):
    return delayed_purchase_orders(db)


@router.get("/by-code/{code}", response_model=PurchaseOrderRead)
def get_po_by_code(code: str, db: Session = Depends(get_db)):
    return get_by_code_or_404(db, PurchaseOrder, code, "PO")


@router.get("/{po_id}", response_model=PurchaseOrderRead)
def get_po(po_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, PurchaseOrder, po_id, "PO")


@router.post("", response_model=PurchaseOrderRead, status_code=201)
def create_po(
    payload: POCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    ensure_unique_code(db, PurchaseOrder, payload.code, "PO")

    # FK checks (fail fast, message clair)
    require_ref(db, Supplier, payload.supplier_id, "supplier_id")
    require_ref(db, Requirement, payload.requirement_id, "requirement_id")
    for ln in payload.details:
        if not db.get(Product, ln.product_id):
            raise HTTPException(status_code=400, detail=f"Invalid product_id {ln.product_id}")

    actor = actor_id(db, user_id)
    po = PurchaseOrder(
        **payload.model_dump(exclude={"details"}),
        total_amount=0,
        created_by=actor,
    )
    db.add(po)
    db.flush()  # get po.id

    for ln in payload.details:
        db.add(_build_detail(po.id, ln))
    recompute_po_total(db, po)

    log_activity(
        db,
        user_id=actor,
        activity_type=ActivityType.create,
        description=f"Created purchase order {po.code}",
        entity_type="purchase_order",
        entity_id=po.id,
    )
    db.commit()
    db.refresh(po)
    return po


@router.post("/from-requirement/{requirement_id}", response_model=PurchaseOrderRead, status_code=201)
def create_po_from_requirement(
    requirement_id: int,
    payload: POFromRequirement,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    req = get_or_404(db, Requirement, requirement_id, "Requirement")
    ensure_unique_code(db, PurchaseOrder, payload.code, "PO")
    require_ref(db, Supplier, payload.supplier_id, "supplier_id")

    actor = actor_id(db, user_id)
    try:
        po = purchase_order_from_requirement(
            db,
            req,
            code=payload.code,
            supplier_id=payload.supplier_id,
            created_by=actor,
            expected_delivery_date=payload.expected_delivery_date,
            currency=payload.currency,
        )
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    log_activity(
        db,
        user_id=actor,
        activity_type=ActivityType.create,
        description=f"Created purchase order {po.code} from requirement {req.code}",
        entity_type="purchase_order",
        entity_id=po.id,
    )
    db.commit()
    db.refresh(po)
    return po


@router.put("/{po_id}", response_model=PurchaseOrderRead)
def update_po(
    po_id: int,
    payload: POUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    po = get_or_404(db, PurchaseOrder, po_id, "PO")
    data = update_data(payload, required=("code", "title", "supplier_id", "status", "currency"))
    if data.get("code") is not None:
        ensure_unique_code(db, PurchaseOrder, data["code"], "PO", exclude_id=po.id)
    if "supplier_id" in data:
        require_ref(db, Supplier, data["supplier_id"], "supplier_id")
    if "requirement_id" in data:
        require_ref(db, Requirement, data["requirement_id"], "requirement_id")

    previous = po.status
    for field, value in data.items():
        setattr(po, field, value)

    description = f"Updated purchase order {po.code}"
    if po.status != previous:
        description += f" ({previous.value} -> {po.status.value})"
    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.update,
        description=description,
        entity_type="purchase_order",
        entity_id=po.id,
    )
    db.commit()
    db.refresh(po)
    return po


@router.delete("/{po_id}", status_code=204)
def delete_po(
    po_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    po = get_or_404(db, PurchaseOrder, po_id, "PO")
    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.delete,
        description=f"Deleted purchase order {po.code}",
        entity_type="purchase_order",
        entity_id=po_id,
    )
    db.delete(po)
    commit_or_409(db, "PO cannot be deleted")
    return Response(status_code=204)


@router.get("/{po_id}/pdf")
def get_po_pdf(po_id: int, db: Session = Depends(get_db)):
    po = get_or_404(db, PurchaseOrder, po_id, "PO")
    supplier = db.get(Supplier, po.supplier_id)

    rows = db.execute(
        select(PurchaseOrderDetail, Product.code, Product.name)
        .join(Product, Product.id == PurchaseOrderDetail.product_id)
        .where(PurchaseOrderDetail.purchase_order_id == po_id)
        .order_by(PurchaseOrderDetail.id)
    ).all()
    lines = [(d, f"{code} - {name}") for d, code, name in rows]

    content = render_purchase_order_pdf(po, supplier, lines)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{po.code}.pdf"'},
    )


# ---------- LIGNES ----------
@router.get("/{po_id}/details", response_model=list[PurchaseOrderDetailRead])
def list_po_details(po_id: int, db: Session = Depends(get_db)):
    get_or_404(db, PurchaseOrder, po_id, "PO")
    return (
        db.execute(
            select(PurchaseOrderDetail)
            .where(PurchaseOrderDetail.purchase_order_id == po_id)
            .order_by(PurchaseOrderDetail.id)
        )
        .scalars()
        .all()
    )


@router.post("/{po_id}/details", response_model=PurchaseOrderDetailRead, status_code=201)
def create_po_detail(po_id: int, payload: PODetailCreate, db: Session = Depends(get_db)):
    po = db.get(PurchaseOrder, po_id)
    if not po:
        raise HTTPException(status_code=400, detail="Invalid purchase_order_id")
    require_ref(db, Product, payload.product_id, "product_id")

    d = _build_detail(po.id, payload)
    db.add(d)
    recompute_po_total(db, po)
    db.commit()
    db.refresh(d)
    return d


@router.put("/{po_id}/details/{detail_id}", response_model=PurchaseOrderDetailRead)
def update_po_detail(
    po_id: int,
    detail_id: int,
    payload: PODetailUpdate,
    db: Session = Depends(get_db),
):
    d = _get_detail(db, po_id, detail_id)
    data = update_data(payload, required=("product_id", "quantity", "unit", "unit_price", "total_price"))
    if "product_id" in data:
        require_ref(db, Product, data["product_id"], "product_id")

    for field, value in data.items():
        setattr(d, field, value)
    # Quantité ou prix modifiés sans total explicite : total recalculé
    if "total_price" not in data and ("quantity" in data or "unit_price" in data):
        d.total_price = line_total(d.quantity, d.unit_price)

    recompute_po_total(db, db.get(PurchaseOrder, po_id))
    db.commit()
    db.refresh(d)
    return d


@router.delete("/{po_id}/details/{detail_id}", status_code=204)
def delete_po_detail(po_id: int, detail_id: int, db: Session = Depends(get_db)):
    d = _get_detail(db, po_id, detail_id)
    db.delete(d)
    recompute_po_total(db, db.get(PurchaseOrder, po_id))
    db.commit()
    return Response(status_code=204)
