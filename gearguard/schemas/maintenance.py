"""
Maintenance Request Schemas
Create and edit payload fields are loose (optional strings, dates accepted as
text); the RequestManager validates them together and reports every bad field
at once.
"""
from pydantic import BaseModel, Field, computed_field
from typing import List, Optional, Union
from datetime import date, datetime
from uuid import UUID

from gearguard.models.maintenance import MaintenanceStage, MaintenancePriority, RequestType
from gearguard.services.stage_transitions import allowed_targets


class MaintenanceRequestCreate(BaseModel):
    subject: Optional[str] = None
    description: Optional[str] = None
    equipment_id: Optional[UUID] = None
    request_type: Optional[str] = None
    priority: Optional[str] = MaintenancePriority.MEDIUM.value
    scheduled_date: Optional[Union[date, str]] = None
    assigned_technician_id: Optional[UUID] = None
    duration_hours: float = 0.0


class MaintenanceRequestUpdate(BaseModel):
    """Editable request details. Stage, snapshot and creator fields are not accepted."""
    subject: Optional[str] = None
    description: Optional[str] = None
    request_type: Optional[str] = None
    priority: Optional[str] = None
    scheduled_date: Optional[Union[date, str]] = None

    class Config:
        extra = "forbid"


class StageUpdate(BaseModel):
    stage: MaintenanceStage
    # Scrap deactivates the equipment; callers must confirm it explicitly
    confirm: bool = False


class TechnicianAssignment(BaseModel):
    technician_id: UUID


class ResolutionUpdate(BaseModel):
    duration_hours: Optional[float] = Field(None, ge=0)
    resolution_notes: Optional[str] = None


class MaintenanceRequestResponse(BaseModel):
    id: UUID
    subject: str
    description: str
    equipment_id: UUID
    equipment_category: Optional[str]
    maintenance_team_id: Optional[UUID]
    request_type: RequestType
    stage: MaintenanceStage
    priority: MaintenancePriority
    scheduled_date: Optional[date]
    assigned_technician_id: Optional[UUID]
    duration_hours: float
    resolution_notes: str
    created_by_id: UUID
    is_overdue: bool
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def allowed_stages(self) -> List[MaintenanceStage]:
        """Stages this request may move to next (Kanban columns / detail buttons)."""
        return allowed_targets(self.stage)

    class Config:
        from_attributes = True


class CalendarEntry(BaseModel):
    id: UUID
    subject: str
    equipment_id: UUID
    stage: MaintenanceStage
    priority: MaintenancePriority
    scheduled_date: date
    duration_hours: float
    assigned_technician_id: Optional[UUID]

    class Config:
        from_attributes = True
