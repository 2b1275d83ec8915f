from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gearguard.core.config import settings
from gearguard.database import get_db
from gearguard.dependencies import get_current_user, require_manager
from gearguard.models.user import User, UserRole
from gearguard.schemas.user import UserResponse, UserSummary

router = APIRouter()


@router.get("/", response_model=List[UserResponse])
def list_users(
    role: Optional[UserRole] = None,
    team_id: Optional[UUID] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """List users, optionally by role or team (e.g. technicians to assign)."""
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if team_id:
        query = query.filter(User.team_id == team_id)
    return query.order_by(User.name.asc()).offset(skip).limit(limit).all()


@router.get("/technicians", response_model=List[UserSummary])
def list_technicians(
    team_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Active technicians, for assignment pickers."""
    query = db.query(User).filter(User.role == UserRole.TECHNICIAN, User.is_active.is_(True))
    if team_id:
        query = query.filter(User.team_id == team_id)
    return query.order_by(User.name.asc()).all()
