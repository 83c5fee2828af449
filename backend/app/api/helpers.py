from __future__ import annotations

import logging
from typing import TypeVar

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.db.models.models_v1 import User

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_or_404(db: Session, model: type[T], obj_id: int, label: str) -> T:
    obj = db.get(model, obj_id)
    if not obj:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


def require_ref(db: Session, model, obj_id: int | None, field: str) -> None:
    """FK check (fail fast, message clair) ; None = référence optionnelle absente."""
    if obj_id is not None and not db.get(model, obj_id):
        raise HTTPException(status_code=400, detail=f"Invalid {field}")


def ensure_unique_code(db: Session, model, code: str, label: str, *, exclude_id: int | None = None) -> None:
    stmt = select(model.id).where(model.code == code)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    if db.execute(stmt).first():
        raise HTTPException(status_code=409, detail=f"{label} code already exists")


def actor_id(db: Session, user_id: int) -> int | None:
    # Un X-User-Id inconnu ne casse pas l'écriture : activité sans auteur
    return user_id if db.get(User, user_id) else None


def commit_or_409(db: Session, detail: str) -> None:
    """Commit ; une violation d'intégrité (FK RESTRICT, unique) devient un 409."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info("Integrity error: %s", e.orig)
        raise HTTPException(status_code=409, detail=detail)


def get_by_code_or_404(db: Session, model: type[T], code: str, label: str) -> T:
    obj = db.execute(select(model).where(model.code == code)).scalar_one_or_none()
    if not obj:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


def update_data(payload, *, required: tuple[str, ...] = ()) -> dict:
    """Champs envoyés (PUT partiel) ; null refusé sur les colonnes NOT NULL."""
    data = payload.model_dump(exclude_unset=True)
    for field in required:
        if field in data and data[field] is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")
    return data
