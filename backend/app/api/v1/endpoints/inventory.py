from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db, get_current_user_id
from backend.app.api.helpers import get_or_404, actor_id
from backend.app.db.models.models_v1 import Product
from backend.app.db.models.core_types import (
    MovementType,
    AdjustmentDirection,
    AdjustmentReason,
    ActivityType,
)
from backend.app.schemas.operations import InventoryMovementRead
from backend.services.activity import log_activity
from backend.services.inventory import (
    apply_stock_movement,
    adjust_stock,
    list_movements,
    recent_movements,
    rebuild_current_stock,
)

router = APIRouter(prefix="/inventory")


# ---------- Schemas ----------
class MovementCreate(BaseModel):
    product_id: int
    quantity: float  # signé, != 0
    unit: str | None = Field(default=None, max_length=32)
    movement_type: MovementType = MovementType.adjustment
    reference_id: int | None = None
    reference_type: str | None = Field(default=None, max_length=32)
    notes: str | None = None


class AdjustmentCreate(BaseModel):
    product_id: int
    direction: AdjustmentDirection
    quantity: float = Field(gt=0)
    reason: AdjustmentReason
    notes: str | None = None


# ---------- Endpoints ----------
@router.get("/movements", response_model=list[InventoryMovementRead])
def get_movements(product_id: int | None = None, db: Session = Depends(get_db)):
    return list_movements(db, product_id=product_id)


@router.get("/recent-movements", response_model=list[InventoryMovementRead])
def get_recent_movements(days: int = Query(default=7, ge=1, le=365), db: Session = Depends(get_db)):
    return recent_movements(db, days)


@router.post("/movements", response_model=InventoryMovementRead, status_code=201)
def create_movement(
    payload: MovementCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    product = db.get(Product, payload.product_id)
    if not product:
        raise HTTPException(status_code=400, detail="Invalid product_id")

    actor = actor_id(db, user_id)
    try:
        mv = apply_stock_movement(
            db,
            product=product,
            quantity=payload.quantity,
            movement_type=payload.movement_type,
            unit=payload.unit,
            reference_id=payload.reference_id,
            reference_type=payload.reference_type,
            notes=payload.notes,
            created_by=actor,
        )
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    log_activity(
        db,
        user_id=actor,
        activity_type=ActivityType.create,
        description=f"Inventory movement {payload.quantity:+g} {mv.unit} on {product.code}",
        entity_type="inventory_movement",
        entity_id=mv.id,
    )
    db.commit()
    db.refresh(mv)
    return mv


@router.post("/adjustments", response_model=InventoryMovementRead, status_code=201)
def create_adjustment(
    payload: AdjustmentCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    product = db.get(Product, payload.product_id)
    if not product:
        raise HTTPException(status_code=400, detail="Invalid product_id")

    actor = actor_id(db, user_id)
    mv = adjust_stock(
        db,
        product,
        direction=payload.direction,
        quantity=payload.quantity,
        reason=payload.reason,
        notes=payload.notes,
        created_by=actor,
    )
    log_activity(
        db,
        user_id=actor,
        activity_type=ActivityType.create,
        description=f"Stock adjustment {mv.quantity:+g} {mv.unit} on {product.code} ({payload.reason.value})",
        entity_type="inventory_adjustment",
        entity_id=mv.id,
    )
    db.commit()
    db.refresh(mv)
    return mv


@router.post("/rebuild")
def rebuild_stock(product_id: int | None = None, db: Session = Depends(get_db)):
    """
    Recalcule current_stock depuis l'historique des mouvements.
    Retourne les écarts corrigés ({} si rien n'avait dérivé).
    """
    if product_id is not None:
        get_or_404(db, Product, product_id, "Product")
        drift = rebuild_current_stock(db, product_ids=[product_id])
    else:
        drift = rebuild_current_stock(db)
    db.commit()
    return {
        "corrected": len(drift),
        "drift": {str(pid): delta for pid, delta in drift.items()},
    }
