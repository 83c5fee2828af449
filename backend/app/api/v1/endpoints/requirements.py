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
from backend.app.db.models.models_v1 import Requirement, RequirementDetail, Product, User
from backend.app.db.models.core_types import RequirementStatus, Priority, ActivityType
from backend.app.schemas.procurement import RequirementRead, RequirementDetailRead
from backend.services.activity import log_activity
from backend.services.procurement import pending_requirements

router = APIRouter(prefix="/requirements")


class RequirementCreate(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=255)
    requestor_id: int | None = None
    department_id: str | None = Field(default=None, max_length=128)
    status: RequirementStatus = RequirementStatus.pending
    priority: Priority = Priority.medium
    notes: str | None = None
    due_date: datetime | None = None


class RequirementUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=64)
    title: str | None = Field(default=None, min_length=1, max_length=255)
    requestor_id: int | None = None
    department_id: str | None = Field(default=None, max_length=128)
    status: RequirementStatus | None = None
    priority: Priority | None = None
    notes: str | None = None
    due_date: datetime | None = None


class RequirementDetailCreate(BaseModel):
    product_id: int
    quantity: float = Field(gt=0)
    unit: str = Field(min_length=1, max_length=32)
    notes: str | None = None
    status: RequirementStatus = RequirementStatus.pending


class RequirementDetailUpdate(BaseModel):
    product_id: int | None = None
    quantity: float | None = Field(default=None, gt=0)
    unit: str | None = Field(default=None, min_length=1, max_length=32)
    notes: str | None = None
    status: RequirementStatus | None = None


def _get_detail(db: Session, requirement_id: int, detail_id: int) -> RequirementDetail:
    get_or_404(db, Requirement, requirement_id, "Requirement")
    d = db.get(RequirementDetail, detail_id)
    if not d or d.requirement_id != requirement_id:
        raise HTTPException(status_code=404, detail="Requirement detail not found")
    return d


@router.get("", response_model=list[RequirementRead])
def list_requirements(db: Session = Depends(get_db)):
    return db.execute(select(Requirement).order_by(Requirement.id.desc())).scalars().all()


@router.get("/pending", response_model=list[RequirementRead])
def list_pending_requirements(db: Session = Depends(get_db)):
    return pending_requirements(db)


@router.get("/by-code/{code}", response_model=RequirementRead)
def get_requirement_by_code(code: str, db: Session = Depends(get_db)):
    return get_by_code_or_404(db, Requirement, code, "Requirement")


@router.get("/{requirement_id}", response_model=RequirementRead)
def get_requirement(requirement_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Requirement, requirement_id, "Requirement")


@router.post("", response_model=RequirementRead, status_code=201)
def create_requirement(
    payload: RequirementCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    ensure_unique_code(db, Requirement, payload.code, "Requirement")
    require_ref(db, User, payload.requestor_id, "requestor_id")

    r = Requirement(**payload.model_dump())
    db.add(r)
    db.flush()

    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.create,
        description=f"Created requirement {r.code}",
        entity_type="requirement",
        entity_id=r.id,
    )
    db.commit()
    db.refresh(r)
    return r


@router.put("/{requirement_id}", response_model=RequirementRead)
def update_requirement(
    requirement_id: int,
    payload: RequirementUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    r = get_or_404(db, Requirement, requirement_id, "Requirement")
    data = update_data(payload, required=("code", "title", "status", "priority"))
    if data.get("code") is not None:
        ensure_unique_code(db, Requirement, data["code"], "Requirement", exclude_id=r.id)
    if "requestor_id" in data:
        require_ref(db, User, data["requestor_id"], "requestor_id")

    previous = r.status
    for field, value in data.items():
        setattr(r, field, value)

    description = f"Updated requirement {r.code}"
    if r.status != previous:
        description += f" ({previous.value} -> {r.status.value})"
    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.update,
        description=description,
        entity_type="requirement",
        entity_id=r.id,
    )
    db.commit()
    db.refresh(r)
    return r


@router.delete("/{requirement_id}", status_code=204)
def delete_requirement(
    requirement_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    r = get_or_404(db, Requirement, requirement_id, "Requirement")
    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.delete,
        description=f"Deleted requirement {r.code}",
        entity_type="requirement",
        entity_id=requirement_id,
    )
    db.delete(r)
    commit_or_409(db, "Requirement cannot be deleted")
    return Response(status_code=204)


# ---------- LIGNES ----------
@router.get("/{requirement_id}/details", response_model=list[RequirementDetailRead])
def list_requirement_details(requirement_id: int, db: Session = Depends(get_db)):
    get_or_404(db, Requirement, requirement_id, "Requirement")
    return (
        db.execute(
            select(RequirementDetail)
            .where(RequirementDetail.requirement_id == requirement_id)
            .order_by(RequirementDetail.id)
        )
        .scalars()
        .all()
    )


@router.post("/{requirement_id}/details", response_model=RequirementDetailRead, status_code=201)
def create_requirement_detail(
    requirement_id: int,
    payload: RequirementDetailCreate,
    db: Session = Depends(get_db),
):
    if not db.get(Requirement, requirement_id):
        raise HTTPException(status_code=400, detail="Invalid requirement_id")
    require_ref(db, Product, payload.product_id, "product_id")

    d = RequirementDetail(requirement_id=requirement_id, **payload.model_dump())
    db.add(d)
    db.commit()
    db.refresh(d)
    return d


@router.put("/{requirement_id}/details/{detail_id}", response_model=RequirementDetailRead)
def update_requirement_detail(
    requirement_id: int,
    detail_id: int,
    payload: RequirementDetailUpdate,
    db: Session = Depends(get_db),
):
    d = _get_detail(db, requirement_id, detail_id)
    data = update_data(payload, required=("product_id", "quantity", "unit", "status"))
    if "product_id" in data:
        require_ref(db, Product, data["product_id"], "product_id")

    for field, value in data.items():
        setattr(d, field, value)
    db.commit()
    db.refresh(d)
    return d


@router.delete("/{requirement_id}/details/{detail_id}", status_code=204)
def delete_requirement_detail(requirement_id: int, detail_id: int, db: Session = Depends(get_db)):
    d = _get_detail(db, requirement_id, detail_id)
    db.delete(d)
    db.commit()
    return Response(status_code=204)
