from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.helpers import get_or_404
from backend.app.db.models.models_v1 import User
from backend.app.db.models.core_types import Role
from backend.app.schemas.master_data import UserRead

router = APIRouter(prefix="/users")


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=255)
    full_name: str = Field(min_length=1, max_length=200)
    role: Role
    department: str | None = Field(default=None, max_length=128)
    email: str | None = Field(default=None, max_length=255)


@router.get("", response_model=list[UserRead])
def list_users(db: Session = Depends(get_db)):
    return db.execute(select(User).order_by(User.id)).scalars().all()


@router.get("/by-username/{username}", response_model=UserRead)
def get_user_by_username(username: str, db: Session = Depends(get_db)):
    u = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    return u


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, User, user_id, "User")


@router.post("", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    exists = db.execute(select(User).where(User.username == payload.username)).scalar_one_or_none()
    if exists:
        raise HTTPException(status_code=409, detail="Username already exists")

    # TODO: hash du mot de passe quand l'authentification sera branchée
    u = User(**payload.model_dump())
    db.add(u)
    db.commit()
    db.refresh(u)
    return u
