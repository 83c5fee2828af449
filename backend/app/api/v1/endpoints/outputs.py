from __future__ import annotations

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
from backend.app.db.models.models_v1 import Output, OutputDetail, Product, User
from backend.app.db.models.core_types import (
    OutputStatus,
    OutputDetailStatus,
    DestinationType,
    ActivityType,
)
from backend.app.schemas.operations import OutputRead, OutputDetailRead
from backend.services.activity import log_activity
from backend.services.inventory import complete_output, issue_output_detail, should_issue_on_create
from backend.services.procurement import pending_outputs

router = APIRouter(prefix="/outputs")


class OutputCreate(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    destination: str = Field(min_length=1, max_length=255)
    destination_type: DestinationType
    status: OutputStatus = OutputStatus.pending
    notes: str | None = None
    requested_by: int | None = None
    approved_by: int | None = None


class OutputUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=64)
    destination: str | None = Field(default=None, min_length=1, max_length=255)
    destination_type: DestinationType | None = None
    status: OutputStatus | None = None
    notes: str | None = None
    requested_by: int | None = None
    approved_by: int | None = None


class OutputDetailCreate(BaseModel):
    product_id: int
    quantity: float = Field(gt=0)
    unit: str = Field(min_length=1, max_length=32)
    notes: str | None = None
    status: OutputDetailStatus = OutputDetailStatus.pending


@router.get("", response_model=list[OutputRead])
def list_outputs(db: Session = Depends(get_db)):
    return db.execute(select(Output).order_by(Output.id.desc())).scalars().all()


@router.get("/pending", response_model=list[OutputRead])
def list_pending_outputs(db: Session = Depends(get_db)):
    return pending_outputs(db)


@router.get("/by-code/{code}", response_model=OutputRead)
def get_output_by_code(code: str, db: Session = Depends(get_db)):
    return get_by_code_or_404(db, Output, code, "Output")


@router.get("/{output_id}", response_model=OutputRead)
def get_output(output_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Output, output_id, "Output")


@router.post("", response_model=OutputRead, status_code=201)
def create_output(
    payload: OutputCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    ensure_unique_code(db, Output, payload.code, "Output")
    require_ref(db, User, payload.requested_by, "requested_by")
    require_ref(db, User, payload.approved_by, "approved_by")

    out = Output(**payload.model_dump())
    db.add(out)
    db.flush()

    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.create,
        description=f"Created output {out.code} to {out.destination}",
        entity_type="output",
        entity_id=out.id,
    )
    db.commit()
    db.refresh(out)
    return out


@router.put("/{output_id}", response_model=OutputRead)
def update_output(
    output_id: int,
    payload: OutputUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    out = get_or_404(db, Output, output_id, "Output")
    data = update_data(payload, required=("code", "destination", "destination_type", "status"))
    if data.get("code") is not None:
        ensure_unique_code(db, Output, data["code"], "Output", exclude_id=out.id)
    if "requested_by" in data:
        require_ref(db, User, data["requested_by"], "requested_by")
    if "approved_by" in data:
        require_ref(db, User, data["approved_by"], "approved_by")

    actor = actor_id(db, user_id)
    previous = out.status
    for field, value in data.items():
        setattr(out, field, value)

    description = f"Updated output {out.code}"
    if out.status != previous:
        description += f" ({previous.value} -> {out.status.value})"
        if out.status == OutputStatus.completed:
            # Sortie de stock de toutes les lignes pas encore sorties
            movements = complete_output(db, out, created_by=actor)
            description += f", {len(movements)} line(s) issued"

    log_activity(
        db,
        user_id=actor,
        activity_type=ActivityType.update,
        description=description,
        entity_type="output",
        entity_id=out.id,
    )
    db.commit()
    db.refresh(out)
    return out


@router.delete("/{output_id}", status_code=204)
def delete_output(
    output_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    # Les mouvements déjà écrits restent : l'historique de stock n'est pas réécrit
    out = get_or_404(db, Output, output_id, "Output")
    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.delete,
        description=f"Deleted output {out.code}",
        entity_type="output",
        entity_id=output_id,
    )
    db.delete(out)
    db.commit()
    return Response(status_code=204)


# ---------- LIGNES ----------
@router.get("/{output_id}/details", response_model=list[OutputDetailRead])
def list_output_details(output_id: int, db: Session = Depends(get_db)):
    get_or_404(db, Output, output_id, "Output")
    return (
        db.execute(
            select(OutputDetail)
            .where(OutputDetail.output_id == output_id)
            .order_by(OutputDetail.id)
        )
        .scalars()
        .all()
    )


@router.post("/{output_id}/details", response_model=OutputDetailRead, status_code=201)
def create_output_detail(
    output_id: int,
    payload: OutputDetailCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    out = db.get(Output, output_id)
    if not out:
        raise HTTPException(status_code=400, detail="Invalid output_id")
    require_ref(db, Product, payload.product_id, "product_id")

    d = OutputDetail(output_id=out.id, **payload.model_dump())
    db.add(d)
    db.flush()

    if should_issue_on_create(out, d):
        issue_output_detail(db, out, d, created_by=actor_id(db, user_id))
    db.commit()
    db.refresh(d)
    return d
