from datetime import datetime

from pydantic import BaseModel

from backend.app.db.models.core_types import ActivityType


class SystemActivityRead(BaseModel):
    id: int
    user_id: int | None = None
    activity_type: ActivityType
    description: str
    entity_type: str
    entity_id: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True
