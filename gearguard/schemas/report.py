from pydantic import BaseModel
from typing import Optional
from uuid import UUID


class TeamReport(BaseModel):
    team_id: UUID
    team_name: str
    specialization: str
    total_requests: int
    new_requests: int
    in_progress_requests: int
    repaired_requests: int
    scrap_requests: int
    total_duration_hours: float


class CategoryReport(BaseModel):
    category: Optional[str]
    total_requests: int
    corrective_requests: int
    preventive_requests: int
    low_priority: int
    medium_priority: int
    high_priority: int
    urgent_priority: int
    avg_duration_hours: float
