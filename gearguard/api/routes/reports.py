from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gearguard.database import get_db
from gearguard.dependencies import require_manager
from gearguard.models.user import User
from gearguard.schemas.report import CategoryReport, TeamReport
from gearguard.services import report_service

router = APIRouter()


@router.get("/by-team", response_model=List[TeamReport])
def reports_by_team(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Request counts per maintenance team, busiest first."""
    return report_service.by_team(db)


@router.get("/by-category", response_model=List[CategoryReport])
def reports_by_category(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Request counts per equipment category, by type and priority."""
    return report_service.by_category(db)
