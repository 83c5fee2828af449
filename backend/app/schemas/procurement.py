from datetime import datetime

from pydantic import BaseModel

from backend.app.db.models.core_types import (
    RequirementStatus,
    Priority,
    POStatus,
    InvoiceStatus,
)


class RequirementRead(BaseModel):
    id: int
    code: str
    title: str
    requestor_id: int | None = None
    department_id: str | None = None
    status: RequirementStatus
    priority: Priority
    notes: str | None = None
    due_date: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class RequirementDetailRead(BaseModel):
    id: int
    requirement_id: int
    product_id: int
    quantity: float
    unit: str
    notes: str | None = None
    status: RequirementStatus

    class Config:
        from_attributes = True


class PurchaseOrderRead(BaseModel):
    id: int
    code: str
    title: str
    supplier_id: int
    requirement_id: int | None = None
    status: POStatus
    total_amount: float | None = None
    currency: str
    notes: str | None = None
    expected_delivery_date: datetime | None = None
    created_by: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class PurchaseOrderDetailRead(BaseModel):
    id: int
    purchase_order_id: int
    product_id: int
    quantity: float
    unit: str
    unit_price: float
    total_price: float
    notes: str | None = None

    class Config:
        from_attributes = True


class InvoiceRead(BaseModel):
    id: int
    code: str
    supplier_invoice_number: str | None = None
    supplier_id: int
    purchase_order_id: int | None = None
    amount: float
    currency: str
    status: InvoiceStatus
    issue_date: datetime
    due_date: datetime
    notes: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True
