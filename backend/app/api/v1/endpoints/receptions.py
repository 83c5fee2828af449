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
from backend.app.db.models.models_v1 import (
    Reception,
    ReceptionDetail,
    PurchaseOrder,
    PurchaseOrderDetail,
    Supplier,
    Product,
    User,
)
from backend.app.db.models.core_types import ReceptionStatus, ReceptionDetailStatus, ActivityType
from backend.app.schemas.operations import ReceptionRead, ReceptionDetailRead
from backend.services.activity import log_activity
from backend.services.documents import render_reception_pdf
from backend.services.inventory import receive_detail
from backend.services.procurement import scheduled_receptions

router = APIRouter(prefix="/receptions")


class ReceptionCreate(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    purchase_order_id: int | None = None
    supplier_id: int
    status: ReceptionStatus = ReceptionStatus.pending
    notes: str | None = None
    received_by: int | None = None
    received_at: datetime | None = None  # date prévue si status=scheduled


class ReceptionUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=64)
    purchase_order_id: int | None = None
    supplier_id: int | None = None
    status: ReceptionStatus | None = None
    notes: str | None = None
    received_by: int | None = None
    received_at: datetime | None = None


class ReceptionDetailCreate(BaseModel):
    purchase_order_detail_id: int | None = None
    product_id: int
    quantity_expected: float = Field(ge=0)
    quantity_received: float = Field(ge=0)
    unit: str = Field(min_length=1, max_length=32)
    notes: str | None = None
    status: ReceptionDetailStatus = ReceptionDetailStatus.pending


@router.get("", response_model=list[ReceptionRead])
def list_receptions(db: Session = Depends(get_db)):
    return db.execute(select(Reception).order_by(Reception.received_at.desc(), Reception.id.desc())).scalars().all()


@router.get("/scheduled", response_model=list[ReceptionRead])
def list_scheduled_receptions(db: Session = Depends(get_db)):
    return scheduled_receptions(db)


@router.get("/by-code/{code}", response_model=ReceptionRead)
def get_reception_by_code(code: str, db: Session = Depends(get_db)):
    return get_by_code_or_404(db, Reception, code, "Reception")


@router.get("/{reception_id}", response_model=ReceptionRead)
def get_reception(reception_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Reception, reception_id, "Reception")


@router.post("", response_model=ReceptionRead, status_code=201)
def create_reception(
    payload: ReceptionCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    ensure_unique_code(db, Reception, payload.code, "Reception")
    require_ref(db, Supplier, payload.supplier_id, "supplier_id")
    require_ref(db, PurchaseOrder, payload.purchase_order_id, "purchase_order_id")
    require_ref(db, User, payload.received_by, "received_by")

    data = payload.model_dump()
    if data["received_at"] is None:
        data.pop("received_at")  # défaut: maintenant
    rec = Reception(**data)
    db.add(rec)
    db.flush()

    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.create,
        description=f"Created reception {rec.code}",
        entity_type="reception",
        entity_id=rec.id,
    )
    db.commit()
    db.refresh(rec)
    return rec


@router.put("/{reception_id}", response_model=ReceptionRead)
def update_reception(
    reception_id: int,
    payload: ReceptionUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    rec = get_or_404(db, Reception, reception_id, "Reception")
    data = update_data(payload, required=("code", "supplier_id", "status", "received_at"))
    if data.get("code") is not None:
        ensure_unique_code(db, Reception, data["code"], "Reception", exclude_id=rec.id)
    if "supplier_id" in data:
        require_ref(db, Supplier, data["supplier_id"], "supplier_id")
    if "purchase_order_id" in data:
        require_ref(db, PurchaseOrder, data["purchase_order_id"], "purchase_order_id")
    if "received_by" in data:
        require_ref(db, User, data["received_by"], "received_by")

    previous = rec.status
    for field, value in data.items():
        setattr(rec, field, value)

    description = f"Updated reception {rec.code}"
    if rec.status != previous:
        description += f" ({previous.value} -> {rec.status.value})"
    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.update,
        description=description,
        entity_type="reception",
        entity_id=rec.id,
    )
    db.commit()
    db.refresh(rec)
    return rec


@router.delete("/{reception_id}", status_code=204)
def delete_reception(
    reception_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    # Les mouvements déjà écrits restent : l'historique de stock n'est pas réécrit
    rec = get_or_404(db, Reception, reception_id, "Reception")
    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.delete,
        description=f"Deleted reception {rec.code}",
        entity_type="reception",
        entity_id=reception_id,
    )
    db.delete(rec)
    db.commit()
    return Response(status_code=204)


@router.get("/{reception_id}/pdf")
def get_reception_pdf(reception_id: int, db: Session = Depends(get_db)):
    rec = get_or_404(db, Reception, reception_id, "Reception")
    supplier = db.get(Supplier, rec.supplier_id)
    po = db.get(PurchaseOrder, rec.purchase_order_id) if rec.purchase_order_id else None

    rows = db.execute(
        select(ReceptionDetail, Product.code, Product.name)
        .join(Product, Product.id == ReceptionDetail.product_id)
        .where(ReceptionDetail.reception_id == reception_id)
        .order_by(ReceptionDetail.id)
    ).all()
    lines = [(d, f"{code} - {name}") for d, code, name in rows]

    content = render_reception_pdf(rec, supplier, po.code if po else None, lines)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{rec.code}.pdf"'},
    )


# ---------- LIGNES ----------
@router.get("/{reception_id}/details", response_model=list[ReceptionDetailRead])
def list_reception_details(reception_id: int, db: Session = Depends(get_db)):
    get_or_404(db, Reception, reception_id, "Reception")
    return (
        db.execute(
            select(ReceptionDetail)
            .where(ReceptionDetail.reception_id == reception_id)
            .order_by(ReceptionDetail.id)
        )
        .scalars()
        .all()
    )


@router.post("/{reception_id}/details", response_model=ReceptionDetailRead, status_code=201)
def create_reception_detail(
    reception_id: int,
    payload: ReceptionDetailCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    rec = db.get(Reception, reception_id)
    if not rec:
        raise HTTPException(status_code=400, detail="Invalid reception_id")
    require_ref(db, Product, payload.product_id, "product_id")
    require_ref(db, PurchaseOrderDetail, payload.purchase_order_detail_id, "purchase_order_detail_id")

    d = ReceptionDetail(reception_id=rec.id, **payload.model_dump())
    db.add(d)
    db.flush()

    # Ligne completed / partial : entrée en stock + mouvement
    receive_detail(db, rec, d, created_by=actor_id(db, user_id))
    db.commit()
    db.refresh(d)
    return d
