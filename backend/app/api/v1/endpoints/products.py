from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db, get_current_user_id
from backend.app.api.helpers import (
    get_or_404,
    get_by_code_or_404,
    require_ref,
    ensure_unique_code,
    actor_id,
    commit_or_409,
    update_data,
)
from backend.app.db.models.models_v1 import Product, Supplier
from backend.app.db.models.core_types import ActivityType
from backend.app.schemas.master_data import ProductRead
from backend.services.activity import log_activity
from backend.services.inventory import low_stock_products, open_product_stock

router = APIRouter(prefix="/products")


class ProductCreate(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: str = Field(min_length=1, max_length=128)
    unit: str = Field(default="unit", min_length=1, max_length=32)
    min_stock: int = Field(default=0, ge=0)
    # Stock d'ouverture, enregistré comme mouvement d'ajustement
    current_stock: float = 0
    location: str | None = Field(default=None, max_length=64)
    cost: float | None = Field(default=None, ge=0)
    supplier_id: int | None = None


class ProductUpdate(BaseModel):
    # Pas de current_stock ici : le stock ne bouge que par les mouvements
    code: str | None = Field(default=None, min_length=1, max_length=64)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, min_length=1, max_length=128)
    unit: str | None = Field(default=None, min_length=1, max_length=32)
    min_stock: int | None = Field(default=None, ge=0)
    location: str | None = Field(default=None, max_length=64)
    cost: float | None = Field(default=None, ge=0)
    supplier_id: int | None = None


@router.get("", response_model=list[ProductRead])
def list_products(db: Session = Depends(get_db)):
    return db.execute(select(Product).order_by(Product.code)).scalars().all()


@router.get("/low-stock", response_model=list[ProductRead])
def list_low_stock(db: Session = Depends(get_db)):
    return low_stock_products(db)


@router.get("/by-code/{code}", response_model=ProductRead)
def get_product_by_code(code: str, db: Session = Depends(get_db)):
    return get_by_code_or_404(db, Product, code, "Product")


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Product, product_id, "Product")


@router.post("", response_model=ProductRead, status_code=201)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    ensure_unique_code(db, Product, payload.code, "Product")
    require_ref(db, Supplier, payload.supplier_id, "supplier_id")

    actor = actor_id(db, user_id)
    p = Product(**payload.model_dump(exclude={"current_stock"}), current_stock=0)
    db.add(p)
    db.flush()  # get p.id

    open_product_stock(db, p, payload.current_stock, created_by=actor)
    log_activity(
        db,
        user_id=actor,
        activity_type=ActivityType.create,
        description=f"Created product {p.code} - {p.name}",
        entity_type="product",
        entity_id=p.id,
    )
    db.commit()
    db.refresh(p)
    return p


@router.put("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    p = get_or_404(db, Product, product_id, "Product")
    data = update_data(payload, required=("code", "name", "category", "unit", "min_stock"))
    if data.get("code") is not None:
        ensure_unique_code(db, Product, data["code"], "Product", exclude_id=p.id)
    if "supplier_id" in data:
        require_ref(db, Supplier, data["supplier_id"], "supplier_id")

    for field, value in data.items():
        setattr(p, field, value)

    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.update,
        description=f"Updated product {p.code}",
        entity_type="product",
        entity_id=p.id,
    )
    db.commit()
    db.refresh(p)
    return p


@router.delete("/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    p = get_or_404(db, Product, product_id, "Product")
    log_activity(
        db,
        user_id=actor_id(db, user_id),
        activity_type=ActivityType.delete,
        description=f"Deleted product {p.code}",
        entity_type="product",
        entity_id=product_id,
    )
    db.delete(p)
    commit_or_409(db, "Product has stock movements or document lines")
    return Response(status_code=204)
