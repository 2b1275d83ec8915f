"""
Maintenance team CRUD. Membership is stored on users.team_id.
"""
import logging
from typing import List

from sqlalchemy.orm import Session

from gearguard.core.exceptions import NotFoundError, RequestValidationFailed
from gearguard.models.equipment import Equipment
from gearguard.models.maintenance import MaintenanceRequest
from gearguard.models.team import MaintenanceTeam
from gearguard.models.user import User
from gearguard.schemas.team import TeamCreate, TeamUpdate

logger = logging.getLogger(__name__)


def get_team(db: Session, team_id) -> MaintenanceTeam:
    team = db.get(MaintenanceTeam, team_id)
    if team is None:
        raise NotFoundError("Team", team_id)
    return team


def list_teams(db: Session) -> List[MaintenanceTeam]:
    return db.query(MaintenanceTeam).order_by(MaintenanceTeam.name.asc()).all()


def _ensure_unique_name(db: Session, name: str, exclude_id=None) -> None:
    query = db.query(MaintenanceTeam.id).filter(MaintenanceTeam.name == name)
    if exclude_id is not None:
        query = query.filter(MaintenanceTeam.id != exclude_id)
    if query.first():
        raise RequestValidationFailed.single("name", "Team with this name already exists")


def _set_members(db: Session, team: MaintenanceTeam, member_ids) -> None:
    members = db.query(User).filter(User.id.in_(member_ids)).all() if member_ids else []
    missing = set(member_ids) - {m.id for m in members}
    if missing:
        raise RequestValidationFailed.single(
            "member_ids", f"Unknown users: {', '.join(sorted(str(m) for m in missing))}"
        )
    for user in list(team.members):
        if user.id not in member_ids:
            user.team_id = None
    for user in members:
        user.team_id = team.id


def create_team(db: Session, payload: TeamCreate) -> MaintenanceTeam:
    name = payload.name.strip()
    _ensure_unique_name(db, name)

    team = MaintenanceTeam(
        name=name,
        specialization=payload.specialization,
        team_lead_id=payload.team_lead_id,
    )
    db.add(team)
    db.flush()
    _set_members(db, team, payload.member_ids)
    db.commit()
    db.refresh(team)
    logger.info(f"[TEAM] Created '{team.name}' ({team.id})")
    return team


def update_team(db: Session, team_id, payload: TeamUpdate) -> MaintenanceTeam:
    team = get_team(db, team_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("name"):
        changes["name"] = changes["name"].strip()
        _ensure_unique_name(db, changes["name"], exclude_id=team.id)

    member_ids = changes.pop("member_ids", None)
    if member_ids is not None:
        _set_members(db, team, member_ids)

    for key, value in changes.items():
        if value is not None or key == "team_lead_id":
            setattr(team, key, value)

    db.commit()
    db.refresh(team)
    return team


def delete_team(db: Session, team_id) -> None:
    team = get_team(db, team_id)
    in_use = (
        db.query(Equipment.id).filter(Equipment.maintenance_team_id == team.id).first()
        or db.query(MaintenanceRequest.id).filter(MaintenanceRequest.maintenance_team_id == team.id).first()
    )
    if in_use:
        raise RequestValidationFailed.single(
            "team_id", "Team still has equipment or maintenance requests; reassign them first"
        )
    name = team.name
    for user in list(team.members):
        user.team_id = None
    db.delete(team)
    db.commit()
    logger.info(f"[TEAM] Deleted '{name}' ({team_id})")
