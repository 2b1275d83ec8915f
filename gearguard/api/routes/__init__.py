from gearguard.api.routes.auth import router as auth_router
from gearguard.api.routes.users import router as users_router
from gearguard.api.routes.teams import router as teams_router
from gearguard.api.routes.equipment import router as equipment_router
from gearguard.api.routes.requests import router as requests_router
from gearguard.api.routes.reports import router as reports_router
from gearguard.api.routes.audit import router as audit_router

__all__ = [
    "auth_router",
    "users_router",
    "teams_router",
    "equipment_router",
    "requests_router",
    "reports_router",
    "audit_router",
]
