from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db, get_current_user_id
from backend.app.api.helpers import actor_id
from backend.app.db.models.core_types import ActivityType
from backend.app.schemas.activity import SystemActivityRead
from backend.services.activity import log_activity, list_activities

router = APIRouter(prefix="/activities")


class ActivityCreate(BaseModel):
    activity_type: ActivityType
    description: str = Field(min_length=1, max_length=500)
    entity_type: str = Field(min_length=1, max_length=64)
    entity_id: int | None = None


@router.get("", response_model=list[SystemActivityRead])
def get_activities(limit: int | None = Query(default=None, ge=1, le=500), db: Session = Depends(get_db)):
    return list_activities(db, limit=limit)


@router.post("", response_model=SystemActivityRead, status_code=201)
def create_activity(
    payload: ActivityCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    a = log_activity(db, user_id=actor_id(db, user_id), **payload.model_dump())
    db.commit()
    db.refresh(a)
    return a
