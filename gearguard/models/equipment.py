from datetime import date
from enum import Enum
import uuid

from sqlalchemy import Column, String, ForeignKey, Boolean, Date, Enum as SQLEnum, Uuid
from sqlalchemy.orm import relationship

from gearguard.db.base import Base, TimestampMixin


class OwnershipType(str, Enum):
    DEPARTMENT = "Department"
    EMPLOYEE = "Employee"


class Equipment(Base, TimestampMixin):
    __tablename__ = "equipment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    serial_number = Column(String(100), unique=True, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    location = Column(String(255), default="", nullable=False)
    purchase_date = Column(Date, nullable=True)
    warranty_expiry_date = Column(Date, nullable=True)

    ownership_type = Column(SQLEnum(OwnershipType), nullable=False)
    department = Column(String(150), nullable=True)
    assigned_employee_id = Column(Uuid, ForeignKey("users.id"), nullable=True)

    maintenance_team_id = Column(Uuid, ForeignKey("maintenance_teams.id"), nullable=False, index=True)
    default_technician_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    maintenance_team = relationship("MaintenanceTeam")
    default_technician = relationship("User", foreign_keys=[default_technician_id])
    assigned_employee = relationship("User", foreign_keys=[assigned_employee_id])

    @property
    def is_under_warranty(self) -> bool:
        if not self.warranty_expiry_date:
            return False
        return self.warranty_expiry_date > date.today()
