import enum


class Role(str, enum.Enum):
    admin = "admin"
    manager = "manager"
    buyer = "buyer"
    warehouse = "warehouse"
    accountant = "accountant"


class SupplierStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    blocked = "blocked"


class RequirementStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    completed = "completed"


class Priority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class POStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    partial = "partial"
    completed = "completed"
    cancelled = "cancelled"


class ReceptionStatus(str, enum.Enum):
    scheduled = "scheduled"
    pending = "pending"
    partial = "partial"
    completed = "completed"
    cancelled = "cancelled"


class ReceptionDetailStatus(str, enum.Enum):
    pending = "pending"
    partial = "partial"
    completed = "completed"
    rejected = "rejected"


class OutputStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    completed = "completed"
    cancelled = "cancelled"


class OutputDetailStatus(str, enum.Enum):
    pending = "pending"
    completed = "completed"


class DestinationType(str, enum.Enum):
    department = "department"
    project = "project"
    branch = "branch"
    client = "client"
    other = "other"


class MovementType(str, enum.Enum):
    reception = "reception"
    output = "output"
    adjustment = "adjustment"


class AdjustmentDirection(str, enum.Enum):
    increase = "increase"
    decrease = "decrease"


class AdjustmentReason(str, enum.Enum):
    inventory_count = "inventory_count"
    damage = "damage"
    loss = "loss"
    expiration = "expiration"
    correction = "correction"
    other = "other"


class InvoiceStatus(str, enum.Enum):
    pending = "pending"
    partial = "partial"
    paid = "paid"
    cancelled = "cancelled"


class ActivityType(str, enum.Enum):
    create = "create"
    update = "update"
    delete = "delete"
