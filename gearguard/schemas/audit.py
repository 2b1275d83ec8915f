from pydantic import BaseModel
from typing import Optional
from datetime import datetime
import uuid


class AuditLogResponse(BaseModel):
    id: uuid.UUID
    action: str
    entity_type: str
    entity_id: uuid.UUID
    actor_id: Optional[uuid.UUID]
    details: Optional[str]  # raw JSON string stored in DB
    created_at: datetime

    class Config:
        from_attributes = True
