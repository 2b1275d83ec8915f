# Import all models so they're registered with Base
from gearguard.models.user import User, UserRole
from gearguard.models.team import MaintenanceTeam
from gearguard.models.equipment import Equipment, OwnershipType
from gearguard.models.maintenance import (
    MaintenanceRequest,
    MaintenanceStage,
    MaintenancePriority,
    RequestType,
)
from gearguard.models.audit import AuditLog

__all__ = [
    "User",
    "UserRole",
    "MaintenanceTeam",
    "Equipment",
    "OwnershipType",
    "MaintenanceRequest",
    "MaintenanceStage",
    "MaintenancePriority",
    "RequestType",
    "AuditLog",
]
