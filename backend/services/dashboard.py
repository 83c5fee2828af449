from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from backend.app.db.base import utcnow
from backend.services import procurement
from backend.services.activity import list_activities
from backend.services.inventory import low_stock_products, recent_movements

RECENT_ACTIVITIES_LIMIT = 8
RECENT_MOVEMENTS_DAYS = 7


def build_dashboard(db: Session, *, now: datetime | None = None) -> dict:
    """Compteurs + listes d'alerte de la page d'accueil."""
    now = now or utcnow()
    return {
        "pending_requirements_count": len(procurement.pending_requirements(db)),
        "active_orders_count": len(procurement.active_purchase_orders(db)),
        "scheduled_receptions_count": len(procurement.scheduled_receptions(db, now=now)),
        "pending_outputs_count": len(procurement.pending_outputs(db)),
        "low_stock_products": low_stock_products(db),
        "delayed_orders": procurement.delayed_purchase_orders(db, now=now),
        "due_invoices": procurement.due_invoices(db, now=now),
        "recent_activities": list_activities(db, limit=RECENT_ACTIVITIES_LIMIT),
        "inventory_movements": recent_movements(db, RECENT_MOVEMENTS_DAYS, now=now),
    }
