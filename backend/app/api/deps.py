from __future__ import annotations

from typing import Generator

from fastapi import Header, HTTPException

from backend.app.core.config import settings
from backend.app.db.session import SessionLocal


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> int:
    """
    Acteur de la requête (journal d'activité, created_by...).
    Pas d'auth : header X-User-Id, sinon utilisateur par défaut.
    """
    if x_user_id is None or not x_user_id.strip():
        return settings.default_user_id
    try:
        return int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-User-Id header")
