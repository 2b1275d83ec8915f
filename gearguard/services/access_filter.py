"""
Role-based visibility and permission checks for maintenance requests.

Every branch matches UserRole exhaustively; a role added to the enum without
a rule here fails loudly instead of silently seeing everything.
"""
import logging

from sqlalchemy import or_, true
from sqlalchemy.sql.elements import ColumnElement

from gearguard.models.maintenance import MaintenanceRequest
from gearguard.models.user import User, UserRole

logger = logging.getLogger(__name__)

MANAGER_ROLES = (UserRole.ADMIN, UserRole.MANAGER)


class UnknownRoleError(RuntimeError):
    pass


def is_manager(actor: User) -> bool:
    return actor.role in MANAGER_ROLES


def visibility_clause(actor: User) -> ColumnElement:
    """SQL predicate selecting the requests *actor* may list."""
    role = actor.role
    if role in MANAGER_ROLES:
        return true()
    if role == UserRole.TECHNICIAN:
        conditions = [MaintenanceRequest.assigned_technician_id == actor.id]
        if actor.team_id is not None:
            conditions.append(MaintenanceRequest.maintenance_team_id == actor.team_id)
        return or_(*conditions)
    if role == UserRole.USER:
        return MaintenanceRequest.created_by_id == actor.id
    raise UnknownRoleError(f"No visibility rule for role {role!r}")


def can_view(request: MaintenanceRequest, actor: User) -> bool:
    """Single-record access. Only basic users are limited to their own requests."""
    role = actor.role
    if role in MANAGER_ROLES or role == UserRole.TECHNICIAN:
        return True
    if role == UserRole.USER:
        return request.created_by_id == actor.id
    raise UnknownRoleError(f"No view rule for role {role!r}")


def can_work_on(request: MaintenanceRequest, actor: User) -> bool:
    """Stage and resolution changes: managers, or the assigned technician."""
    role = actor.role
    if role in MANAGER_ROLES:
        return True
    if role == UserRole.TECHNICIAN:
        return request.assigned_technician_id is not None and request.assigned_technician_id == actor.id
    if role == UserRole.USER:
        return False
    raise UnknownRoleError(f"No work rule for role {role!r}")
