"""
Procurement service.

Requêtes filtrées du cycle d'achat (besoins, commandes, réceptions, sorties,
factures) et recalcul des montants de commande.

La logique de stock reste centralisée dans :
    backend.services.inventory
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.db.base import utcnow
from backend.app.db.models.models_v1 import (
    Requirement,
    RequirementDetail,
    Product,
    PurchaseOrder,
    PurchaseOrderDetail,
    Reception,
    Output,
    Invoice,
)
from backend.app.db.models.core_types import (
    RequirementStatus,
    POStatus,
    ReceptionStatus,
    OutputStatus,
    InvoiceStatus,
)

# Commandes encore "en cours" côté fournisseur
ACTIVE_PO_STATUSES = {
    POStatus.pending,
    POStatus.confirmed,
}


def line_total(quantity: float, unit_price: float) -> float:
    return round(quantity * unit_price, 2)


def recompute_po_total(db: Session, po: PurchaseOrder) -> float:
    """total_amount = somme des total_price des lignes."""
    db.flush()
    total = db.execute(
        select(func.coalesce(func.sum(PurchaseOrderDetail.total_price), 0))
        .where(PurchaseOrderDetail.purchase_order_id == po.id)
    ).scalar_one()
    po.total_amount = round(float(total), 2)
    return po.total_amount


def purchase_order_from_requirement(
    db: Session,
    requirement: Requirement,
    *,
    code: str,
    supplier_id: int,
    created_by: int | None = None,
    expected_delivery_date: datetime | None = None,
    currency: str = "USD",
) -> PurchaseOrder:
    """
    Commande préremplie depuis un besoin approuvé :
    titre "OC para <titre>", notes reprises, une ligne par détail au coût produit.
    Pas de commit ici.
    """
    if requirement.status != RequirementStatus.approved:
        raise ValueError(f"Requirement {requirement.code} is not approved")

    po = PurchaseOrder(
        code=code,
        title=f"OC para {requirement.title}"[:255],
        supplier_id=supplier_id,
        requirement_id=requirement.id,
        status=POStatus.pending,
        currency=currency,
        notes=requirement.notes,
        expected_delivery_date=expected_delivery_date,
        total_amount=0,
        created_by=created_by,
    )
    db.add(po)
    db.flush()

    rows = db.execute(
        select(RequirementDetail, Product.cost)
        .join(Product, Product.id == RequirementDetail.product_id)
        .where(RequirementDetail.requirement_id == requirement.id)
        .order_by(RequirementDetail.id)
    ).all()
    for detail, cost in rows:
        unit_price = cost or 0.0
        db.add(PurchaseOrderDetail(
            purchase_order_id=po.id,
            product_id=detail.product_id,
            quantity=detail.quantity,
            unit=detail.unit,
            unit_price=unit_price,
            total_price=line_total(detail.quantity, unit_price),
            notes=detail.notes,
        ))

    recompute_po_total(db, po)
    return po


def pending_requirements(db: Session) -> list[Requirement]:
    return list(
        db.execute(
            select(Requirement)
            .where(Requirement.status == RequirementStatus.pending)
            .order_by(Requirement.id)
        )
        .scalars()
        .all()
    )


def active_purchase_orders(db: Session) -> list[PurchaseOrder]:
    return list(
        db.execute(
            select(PurchaseOrder)
            .where(PurchaseOrder.status.in_(ACTIVE_PO_STATUSES))
            .order_by(PurchaseOrder.id)
        )
        .scalars()
        .all()
    )


def delayed_purchase_orders(db: Session, *, now: datetime | None = None) -> list[PurchaseOrder]:
    now = now or utcnow()
    return list(
        db.execute(
            select(PurchaseOrder)
            .where(PurchaseOrder.status.in_(ACTIVE_PO_STATUSES))
            .where(PurchaseOrder.expected_delivery_date.is_not(None))
            .where(PurchaseOrder.expected_delivery_date < now)
            .order_by(PurchaseOrder.expected_delivery_date)
        )
        .scalars()
        .all()
    )


def scheduled_receptions(
    db: Session,
    *,
    now: datetime | None = None,
    window_days: int | None = None,
) -> list[Reception]:
    """Réceptions programmées dans la fenêtre ]now, now + window_days[."""
    now = now or utcnow()
    horizon = now + timedelta(days=window_days or settings.upcoming_window_days)
    return list(
        db.execute(
            select(Reception)
            .where(Reception.status == ReceptionStatus.scheduled)
            .where(Reception.received_at > now)
            .where(Reception.received_at < horizon)
            .order_by(Reception.received_at)
        )
        .scalars()
        .all()
    )


def pending_outputs(db: Session) -> list[Output]:
    return list(
        db.execute(
            select(Output)
            .where(Output.status == OutputStatus.pending)
            .order_by(Output.id)
        )
        .scalars()
        .all()
    )


def due_invoices(
    db: Session,
    *,
    now: datetime | None = None,
    window_days: int | None = None,
) -> list[Invoice]:
    """Factures pending qui arrivent à échéance dans la fenêtre."""
    now = now or utcnow()
    horizon = now + timedelta(days=window_days or settings.upcoming_window_days)
    return list(
        db.execute(
            select(Invoice)
            .where(Invoice.status == InvoiceStatus.pending)
            .where(Invoice.due_date > now)
            .where(Invoice.due_date < horizon)
            .order_by(Invoice.due_date)
        )
        .scalars()
        .all()
    )
