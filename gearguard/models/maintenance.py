from datetime import date
from enum import Enum
from typing import Optional
import uuid

from sqlalchemy import Column, String, ForeignKey, Text, Float, Date, Enum as SQLEnum, Uuid
from sqlalchemy.orm import relationship

from gearguard.db.base import Base, TimestampMixin


class MaintenanceStage(str, Enum):
    NEW = "New"
    IN_PROGRESS = "In Progress"
    REPAIRED = "Repaired"
    SCRAP = "Scrap"


class MaintenancePriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class RequestType(str, Enum):
    CORRECTIVE = "Corrective"
    PREVENTIVE = "Preventive"


CLOSED_STAGES = (MaintenanceStage.REPAIRED, MaintenanceStage.SCRAP)


class MaintenanceRequest(Base, TimestampMixin):
    __tablename__ = "maintenance_requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    subject = Column(String(255), nullable=False)
    description = Column(Text, default="", nullable=False)
    equipment_id = Column(Uuid, ForeignKey("equipment.id"), nullable=False, index=True)

    # Snapshot of the equipment at creation time
    equipment_category = Column(String(100), nullable=True)
    maintenance_team_id = Column(Uuid, ForeignKey("maintenance_teams.id"), nullable=True, index=True)

    request_type = Column(SQLEnum(RequestType), nullable=False)
    stage = Column(SQLEnum(MaintenanceStage), default=MaintenanceStage.NEW, nullable=False, index=True)
    priority = Column(SQLEnum(MaintenancePriority), default=MaintenancePriority.MEDIUM, nullable=False)
    scheduled_date = Column(Date, nullable=True, index=True)
    assigned_technician_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    duration_hours = Column(Float, default=0.0, nullable=False)
    resolution_notes = Column(Text, default="", nullable=False)
    created_by_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    equipment = relationship("Equipment")
    maintenance_team = relationship("MaintenanceTeam")
    assigned_technician = relationship("User", foreign_keys=[assigned_technician_id])
    created_by = relationship("User", foreign_keys=[created_by_id])

    def overdue_as_of(self, today: Optional[date] = None) -> bool:
        if self.scheduled_date is None or self.stage in CLOSED_STAGES:
            return False
        return self.scheduled_date < (today or date.today())

    @property
    def is_overdue(self) -> bool:
        return self.overdue_as_of()
