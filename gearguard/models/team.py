from typing import Optional
import uuid

from sqlalchemy import String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gearguard.db.base import Base, TimestampMixin


class MaintenanceTeam(Base, TimestampMixin):
    """Team responsible for maintaining a set of equipment."""
    __tablename__ = "maintenance_teams"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    specialization: Mapped[str] = mapped_column(Text, default="", nullable=False)
    # Plain reference, not a FK: users.team_id already points this way
    team_lead_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    members = relationship("User", back_populates="team", order_by="User.name")

    @property
    def member_ids(self):
        return [m.id for m in self.members]

    @property
    def member_count(self) -> int:
        return len(self.members)
