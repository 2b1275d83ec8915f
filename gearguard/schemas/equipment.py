"""
Equipment Schemas
Ownership consistency (department vs assigned employee) is checked by the
EquipmentRegistry so that partial updates are validated against the merged row.
"""
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import date, datetime
from typing import Optional

from gearguard.models.equipment import OwnershipType
from gearguard.schemas.team import TeamSummary
from gearguard.schemas.user import UserSummary


class EquipmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    serial_number: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    location: str = ""
    purchase_date: Optional[date] = None
    warranty_expiry_date: Optional[date] = None
    ownership_type: OwnershipType
    department: Optional[str] = None
    assigned_employee_id: Optional[UUID] = None
    maintenance_team_id: UUID
    default_technician_id: UUID


class EquipmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    serial_number: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = None
    purchase_date: Optional[date] = None
    warranty_expiry_date: Optional[date] = None
    ownership_type: Optional[OwnershipType] = None
    department: Optional[str] = None
    assigned_employee_id: Optional[UUID] = None
    maintenance_team_id: Optional[UUID] = None
    default_technician_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class EquipmentResponse(BaseModel):
    id: UUID
    name: str
    serial_number: str
    category: str
    location: str
    purchase_date: Optional[date]
    warranty_expiry_date: Optional[date]
    ownership_type: OwnershipType
    department: Optional[str]
    assigned_employee_id: Optional[UUID]
    maintenance_team_id: UUID
    default_technician_id: UUID
    is_active: bool
    is_under_warranty: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AutoFillResponse(BaseModel):
    """Values copied onto a new maintenance request from its equipment."""
    equipment_category: str
    maintenance_team: TeamSummary
    default_technician: UserSummary
