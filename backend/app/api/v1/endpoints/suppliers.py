from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db, get_current_user_id
from backend.app.api.helpers import get_or_404, actor_id, commit_or_409, update_data
from backend.app.db.models.models_v1 import Supplier
from backend.app.db.models.core_types import SupplierStatus, ActivityType
from backend.app.schemas.master_data import SupplierRead
from backend.services.activity import log_activity

router = APIRouter(prefix="/suppliers")


class SupplierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    contact: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    address: str | None = Field(default=None, max_length=500)
    tax_id: str | None = Field(default=None, max_length=64)
    notes: str | None = None
    status: SupplierStatus = SupplierStatus.active


class SupplierUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    contact: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    address: str | None = Field(default=None, max_length=500)
    tax_id: str | None = Field(default=None, max_length=64)
    notes: str | None = None
    status: SupplierStatus | None = None


@router.get("", response_model=list[SupplierRead])
def list_suppliers(db: Session = Depends(get_db)):
    return db.execute(select(Supplier).order_by(Supplier.name)).scalars().all()


@router.get("/{supplier_id}", response_model=SupplierRead)
def get_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Supplier, supplier_id, "Supplier")


@router.post("", response_model=SupplierRead, status_code=201)
def create_supplier(
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    s = Supplier(**payload.model_dump())
    db.add(s)
    db.flush()

    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.create,
        description=f"Created supplier {s.name}",
        entity_type="supplier",
        entity_id=s.id,
    )
    db.commit()
    db.refresh(s)
    return s


@router.put("/{supplier_id}", response_model=SupplierRead)
def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    s = get_or_404(db, Supplier, supplier_id, "Supplier")
    for field, value in update_data(payload, required=("name", "status")).items():
        setattr(s, field, value)

    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.update,
        description=f"Updated supplier {s.name}",
        entity_type="supplier",
        entity_id=s.id,
    )
    db.commit()
    db.refresh(s)
    return s


@router.delete("/{supplier_id}", status_code=204)
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    s = get_or_404(db, Supplier, supplier_id, "Supplier")
    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.delete,
        description=f"Deleted supplier {s.name}",
        entity_type="supplier",
        entity_id=supplier_id,
    )
    db.delete(s)
    commit_or_409(db, "Supplier is referenced by orders, receptions or invoices")
    return Response(status_code=204)
