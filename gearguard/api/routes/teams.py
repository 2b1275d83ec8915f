"""
Maintenance Team Routes
Anyone signed in can read teams; Admin/Manager maintain them.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gearguard.database import get_db
from gearguard.dependencies import get_current_user, require_manager
from gearguard.models.user import User
from gearguard.schemas.team import TeamCreate, TeamResponse, TeamUpdate
from gearguard.services import team_service

router = APIRouter()


@router.post("/", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
def create_team(
    payload: TeamCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    return team_service.create_team(db, payload)


@router.get("/", response_model=List[TeamResponse])
def list_teams(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return team_service.list_teams(db)


@router.get("/{team_id}", response_model=TeamResponse)
def get_team(
    team_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return team_service.get_team(db, team_id)


@router.put("/{team_id}", response_model=TeamResponse)
def update_team(
    team_id: UUID,
    payload: TeamUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    return team_service.update_team(db, team_id, payload)


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_team(
    team_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    team_service.delete_team(db, team_id)
    return None
