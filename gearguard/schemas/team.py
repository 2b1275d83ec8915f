from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import List, Optional


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    specialization: str = ""
    team_lead_id: Optional[UUID] = None
    member_ids: List[UUID] = []


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    specialization: Optional[str] = None
    team_lead_id: Optional[UUID] = None
    member_ids: Optional[List[UUID]] = None


class TeamSummary(BaseModel):
    id: UUID
    name: str
    specialization: str

    class Config:
        from_attributes = True


class TeamResponse(TeamSummary):
    team_lead_id: Optional[UUID]
    member_ids: List[UUID]
    member_count: int
    created_at: datetime

    class Config:
        from_attributes = True
