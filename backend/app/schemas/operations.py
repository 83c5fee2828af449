from datetime import datetime

from pydantic import BaseModel

from backend.app.db.models.core_types import (
    ReceptionStatus,
    ReceptionDetailStatus,
    OutputStatus,
    OutputDetailStatus,
    DestinationType,
    MovementType,
)


class ReceptionRead(BaseModel):
    id: int
    code: str
    purchase_order_id: int | None = None
    supplier_id: int
    status: ReceptionStatus
    notes: str | None = None
    received_by: int | None = None
    received_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class ReceptionDetailRead(BaseModel):
    id: int
    reception_id: int
    purchase_order_detail_id: int | None = None
    product_id: int
    quantity_expected: float
    quantity_received: float
    unit: str
    notes: str | None = None
    status: ReceptionDetailStatus

    class Config:
        from_attributes = True


class OutputRead(BaseModel):
    id: int
    code: str
    destination: str
    destination_type: DestinationType
    status: OutputStatus
    notes: str | None = None
    requested_by: int | None = None
    approved_by: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class OutputDetailRead(BaseModel):
    id: int
    output_id: int
    product_id: int
    quantity: float
    unit: str
    notes: str | None = None
    status: OutputDetailStatus

    class Config:
        from_attributes = True


class InventoryMovementRead(BaseModel):
    id: int
    product_id: int
    quantity: float  # signé
    unit: str
    movement_type: MovementType
    reference_id: int | None = None
    reference_type: str | None = None
    notes: str | None = None
    created_by: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True
