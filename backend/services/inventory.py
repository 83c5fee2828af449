from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from backend.app.db.base import utcnow
from backend.app.db.models.models_v1 import (
    Product,
    InventoryMovement,
    Reception,
    ReceptionDetail,
    Output,
    OutputDetail,
)
from backend.app.db.models.core_types import (
    MovementType,
    ReceptionDetailStatus,
    OutputStatus,
    OutputDetailStatus,
    AdjustmentDirection,
    AdjustmentReason,
)

logger = logging.getLogger(__name__)

# Lignes de réception qui font entrer du stock
STOCKED_RECEPTION_DETAIL_STATUSES = {
    ReceptionDetailStatus.completed,
    ReceptionDetailStatus.partial,
}


def apply_stock_movement(
    db: Session,
    *,
    product: Product,
    quantity: float,
    movement_type: MovementType,
    unit: str | None = None,
    reference_id: int | None = None,
    reference_type: str | None = None,
    notes: str | None = None,
    created_by: int | None = None,
) -> InventoryMovement:
    """
    Seul point d'écriture du stock.

    Incrémente (ou décrémente, quantity < 0) Product.current_stock et écrit
    la ligne d'historique InventoryMovement dans la même session.
    Pas de commit ici : l'appelant commit (ou rollback) l'ensemble.
    """
    if quantity == 0:
        raise ValueError("Movement quantity must be non-zero")

    product.current_stock = (product.current_stock or 0) + quantity

    mv = InventoryMovement(
        product_id=product.id,
        quantity=quantity,
        unit=unit or product.unit,
        movement_type=movement_type,
        reference_id=reference_id,
        reference_type=reference_type,
        notes=notes,
        created_by=created_by,
    )
    db.add(mv)
    db.flush()

    logger.info(
        "stock %s product=%s qty=%+g -> current_stock=%g",
        movement_type.value,
        product.code,
        quantity,
        product.current_stock,
    )
    if product.current_stock < 0:
        logger.warning("Negative stock for product %s (current_stock=%g)", product.code, product.current_stock)

    return mv


def open_product_stock(
    db: Session,
    product: Product,
    opening_quantity: float,
    *,
    created_by: int | None = None,
) -> InventoryMovement | None:
    """Stock d'ouverture d'un produit, tracé comme un ajustement."""
    if not opening_quantity:
        return None
    return apply_stock_movement(
        db,
        product=product,
        quantity=opening_quantity,
        movement_type=MovementType.adjustment,
        reference_type="adjustment",
        notes="Opening balance",
        created_by=created_by,
    )


def receive_detail(
    db: Session,
    reception: Reception,
    detail: ReceptionDetail,
    *,
    created_by: int | None = None,
) -> InventoryMovement | None:
    """Entrée en stock d'une ligne de réception (completed / partial uniquement)."""
    if detail.status not in STOCKED_RECEPTION_DETAIL_STATUSES:
        return None
    if not detail.quantity_received:
        return None

    product = db.get(Product, detail.product_id)
    if not product:
        raise LookupError(f"Product {detail.product_id} not found")

    return apply_stock_movement(
        db,
        product=product,
        quantity=detail.quantity_received,
        movement_type=MovementType.reception,
        unit=detail.unit,
        reference_id=reception.id,
        reference_type="reception",
        notes=f"Reception {reception.code}",
        created_by=created_by,
    )


def issue_output_detail(
    db: Session,
    output: Output,
    detail: OutputDetail,
    *,
    created_by: int | None = None,
) -> InventoryMovement:
    """Sortie de stock d'une ligne, puis ligne marquée completed."""
    product = db.get(Product, detail.product_id)
    if not product:
        raise LookupError(f"Product {detail.product_id} not found")

    mv = apply_stock_movement(
        db,
        product=product,
        quantity=-detail.quantity,
        movement_type=MovementType.output,
        unit=detail.unit,
        reference_id=output.id,
        reference_type="output",
        notes=f"Output {output.code}",
        created_by=created_by,
    )
    detail.status = OutputDetailStatus.completed
    return mv


def should_issue_on_create(output: Output, detail: OutputDetail) -> bool:
    return output.status == OutputStatus.completed or detail.status == OutputDetailStatus.completed


def complete_output(
    db: Session,
    output: Output,
    *,
    created_by: int | None = None,
) -> list[InventoryMovement]:
    """
    Passage d'une sortie à completed : chaque ligne pas encore sortie
    décrémente le stock. Les lignes déjà completed ne bougent pas.
    """
    details = (
        db.execute(
            select(OutputDetail)
            .where(OutputDetail.output_id == output.id)
            .order_by(OutputDetail.id)
        )
        .scalars()
        .all()
    )
    movements = []
    for detail in details:
        if detail.status == OutputDetailStatus.completed:
            continue
        movements.append(issue_output_detail(db, output, detail, created_by=created_by))
    return movements


def adjust_stock(
    db: Session,
    product: Product,
    *,
    direction: AdjustmentDirection,
    quantity: float,
    reason: AdjustmentReason,
    notes: str | None = None,
    created_by: int | None = None,
) -> InventoryMovement:
    if quantity <= 0:
        raise ValueError("Adjustment quantity must be positive")

    signed = quantity if direction == AdjustmentDirection.increase else -quantity
    label = f"Adjustment ({reason.value})"
    return apply_stock_movement(
        db,
        product=product,
        quantity=signed,
        movement_type=MovementType.adjustment,
        reference_type="adjustment",
        notes=f"{label}: {notes}" if notes else label,
        created_by=created_by,
    )


# ---------- LECTURE ----------
def low_stock_products(db: Session) -> list[Product]:
    return list(
        db.execute(
            select(Product)
            .where(Product.current_stock <= Product.min_stock)
            .order_by(Product.code)
        )
        .scalars()
        .all()
    )


def list_movements(db: Session, product_id: int | None = None) -> list[InventoryMovement]:
    stmt = select(InventoryMovement).order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc())
    if product_id is not None:
        stmt = stmt.where(InventoryMovement.product_id == product_id)
    return list(db.execute(stmt).scalars().all())


def recent_movements(db: Session, days: int, *, now: datetime | None = None) -> list[InventoryMovement]:
    cutoff = (now or utcnow()) - timedelta(days=days)
    return list(
        db.execute(
            select(InventoryMovement)
            .where(InventoryMovement.created_at > cutoff)
            .order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc())
        )
        .scalars()
        .all()
    )


def rebuild_current_stock(
    db: Session,
    *,
    product_ids: Iterable[int] | None = None,
) -> dict[int, float]:
    """
    Recalcule current_stock à partir de l'historique des mouvements.

    Règle :
        current_stock = SUM(inventory_movements.quantity)

    Retourne {product_id: écart corrigé} pour les produits qui avaient dérivé.
    Déterministe et idempotent : un second appel retourne {}.
    """
    stmt = select(Product).order_by(Product.id)
    if product_ids is not None:
        ids = sorted({int(pid) for pid in product_ids if pid is not None})
        if not ids:
            return {}
        stmt = stmt.where(Product.id.in_(ids))
    products = db.execute(stmt).scalars().all()
    if not products:
        return {}

    rows = db.execute(
        select(
            InventoryMovement.product_id,
            func.coalesce(func.sum(InventoryMovement.quantity), 0).label("qty"),
        )
        .where(InventoryMovement.product_id.in_([p.id for p in products]))
        .group_by(InventoryMovement.product_id)
    ).all()
    totals = {int(pid): float(qty) for pid, qty in rows}

    drift: dict[int, float] = {}
    for product in products:
        expected = totals.get(product.id, 0.0)
        current = float(product.current_stock or 0)
        if abs(current - expected) > 1e-9:
            drift[product.id] = expected - current
            logger.warning(
                "Stock drift on product %s: current_stock=%g, movements=%g",
                product.code,
                current,
                expected,
            )
            product.current_stock = expected

    db.flush()
    return drift
