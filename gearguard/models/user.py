"""
User Model
Actors of the system: role drives every permission check, team_id drives
technician visibility.
"""
from enum import Enum
from typing import Optional
import uuid

from sqlalchemy import String, Boolean, ForeignKey, Enum as SQLEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gearguard.db.base import Base, TimestampMixin


class UserRole(str, Enum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    TECHNICIAN = "Technician"
    USER = "User"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(SQLEnum(UserRole), default=UserRole.USER, nullable=False, index=True)

    # Primary maintenance team (technicians)
    team_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("maintenance_teams.id"), nullable=True, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    team = relationship("MaintenanceTeam", back_populates="members")

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value})>"
