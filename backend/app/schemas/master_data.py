from datetime import datetime

from pydantic import BaseModel

from backend.app.db.models.core_types import Role, SupplierStatus


class UserRead(BaseModel):
    id: int
    username: str
    full_name: str
    role: Role
    department: str | None = None
    email: str | None = None
    # password jamais exposé

    class Config:
        from_attributes = True


class SupplierRead(BaseModel):
    id: int
    name: str
    contact: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    tax_id: str | None = None
    notes: str | None = None
    status: SupplierStatus
    created_at: datetime

    class Config:
        from_attributes = True


class ProductRead(BaseModel):
    id: int
    code: str
    name: str
    description: str | None = None
    category: str
    unit: str
    min_stock: int
    current_stock: float  # READ ONLY : modifié uniquement par les mouvements
    location: str | None = None
    cost: float | None = None
    supplier_id: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True
