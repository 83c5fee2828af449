from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db.models.models_v1 import SystemActivity
from backend.app.db.models.core_types import ActivityType


def log_activity(
    db: Session,
    *,
    user_id: int | None,
    activity_type: ActivityType,
    description: str,
    entity_type: str,
    entity_id: int | None = None,
) -> SystemActivity:
    """Ajoute une ligne au journal d'activité (commit par l'appelant)."""
    activity = SystemActivity(
        user_id=user_id,
        activity_type=activity_type,
        description=description,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    db.add(activity)
    db.flush()
    return activity


def list_activities(db: Session, limit: int | None = None) -> list[SystemActivity]:
    stmt = select(SystemActivity).order_by(SystemActivity.created_at.desc(), SystemActivity.id.desc())
    if limit:
        stmt = stmt.limit(limit)
    return list(db.execute(stmt).scalars().all())
