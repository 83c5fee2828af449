from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.schemas.dashboard import DashboardRead
from backend.services.dashboard import build_dashboard

router = APIRouter(prefix="/dashboard")


@router.get("", response_model=DashboardRead)
def get_dashboard(db: Session = Depends(get_db)):
    return build_dashboard(db)
