from pydantic import BaseModel

from backend.app.schemas.activity import SystemActivityRead
from backend.app.schemas.master_data import ProductRead
from backend.app.schemas.operations import InventoryMovementRead
from backend.app.schemas.procurement import PurchaseOrderRead, InvoiceRead


class DashboardRead(BaseModel):
    pending_requirements_count: int
    active_orders_count: int
    scheduled_receptions_count: int
    pending_outputs_count: int
    low_stock_products: list[ProductRead]
    delayed_orders: list[PurchaseOrderRead]
    due_invoices: list[InvoiceRead]
    recent_activities: list[SystemActivityRead]
    inventory_movements: list[InventoryMovementRead]
