"""
Maintenance Request Routes

Endpoints:
  POST   /requests                  – create (any signed-in user, active equipment only)
  GET    /requests                  – role-filtered list; stage / priority / type / equipment / technician filters
  GET    /requests/calendar         – scheduled requests in a date range
  GET    /requests/overdue          – scheduled in the past and still open (Admin, Manager, Technician)
  GET    /requests/{id}             – get
  PUT    /requests/{id}             – edit subject, description, type, priority, schedule (Admin, Manager, assigned technician)
  PATCH  /requests/{id}/stage       – workflow transition (Admin, Manager, assigned technician)
  PATCH  /requests/{id}/assign      – assign technician (Admin, Manager)
  PATCH  /requests/{id}/resolution  – duration / resolution notes (Admin, Manager, assigned technician)
  DELETE /requests/{id}             – delete (Admin, Manager)
"""
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gearguard.core.config import settings
from gearguard.database import get_db
from gearguard.dependencies import get_current_user, require_staff
from gearguard.models.maintenance import MaintenancePriority, MaintenanceStage, RequestType
from gearguard.models.user import User
from gearguard.schemas.maintenance import (
    CalendarEntry,
    MaintenanceRequestCreate,
    MaintenanceRequestResponse,
    MaintenanceRequestUpdate,
    ResolutionUpdate,
    StageUpdate,
    TechnicianAssignment,
)
from gearguard.services.request_manager import RequestManager

router = APIRouter()


def get_manager(db: Session = Depends(get_db)) -> RequestManager:
    return RequestManager(db)


# ── Static routes first (must come before /{request_id}) ──

@router.get("/calendar", response_model=List[CalendarEntry])
def get_calendar_requests(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    manager: RequestManager = Depends(get_manager),
    current_user: User = Depends(get_current_user),
):
    return manager.calendar(current_user, start_date=start_date, end_date=end_date)


@router.get("/overdue", response_model=List[MaintenanceRequestResponse])
def get_overdue_requests(
    manager: RequestManager = Depends(get_manager),
    current_user: User = Depends(require_staff),
):
    return manager.overdue(current_user)


# ── Request CRUD ──

@router.post("/", response_model=MaintenanceRequestResponse, status_code=status.HTTP_201_CREATED)
def create_request(
    payload: MaintenanceRequestCreate,
    manager: RequestManager = Depends(get_manager),
    current_user: User = Depends(get_current_user),
):
    return manager.create(payload, current_user)


@router.get("/", response_model=List[MaintenanceRequestResponse])
def list_requests(
    stage: Optional[MaintenanceStage] = None,
    priority: Optional[MaintenancePriority] = None,
    request_type: Optional[RequestType] = None,
    equipment_id: Optional[UUID] = None,
    technician_id: Optional[UUID] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    manager: RequestManager = Depends(get_manager),
    current_user: User = Depends(get_current_user),
):
    return manager.list(
        current_user,
        stage=stage,
        priority=priority,
        request_type=request_type,
        equipment_id=equipment_id,
        technician_id=technician_id,
        skip=skip,
        limit=limit,
    )


@router.get("/{request_id}", response_model=MaintenanceRequestResponse)
def get_request(
    request_id: UUID,
    manager: RequestManager = Depends(get_manager),
    current_user: User = Depends(get_current_user),
):
    return manager.get(request_id, current_user)


@router.put("/{request_id}", response_model=MaintenanceRequestResponse)
def update_request(
    request_id: UUID,
    payload: MaintenanceRequestUpdate,
    manager: RequestManager = Depends(get_manager),
    current_user: User = Depends(get_current_user),
):
    return manager.update_details(request_id, payload, current_user)


@router.patch("/{request_id}/stage", response_model=MaintenanceRequestResponse)
def update_request_stage(
    request_id: UUID,
    payload: StageUpdate,
    manager: RequestManager = Depends(get_manager),
    current_user: User = Depends(get_current_user),
):
    """Kanban drag-and-drop and the detail page both land here."""
    return manager.update_stage(request_id, payload.stage, current_user, confirmed=payload.confirm)


@router.patch("/{request_id}/assign", response_model=MaintenanceRequestResponse)
def assign_technician(
    request_id: UUID,
    payload: TechnicianAssignment,
    manager: RequestManager = Depends(get_manager),
    current_user: User = Depends(get_current_user),
):
    return manager.assign_technician(request_id, payload.technician_id, current_user)


@router.patch("/{request_id}/resolution", response_model=MaintenanceRequestResponse)
def update_resolution(
    request_id: UUID,
    payload: ResolutionUpdate,
    manager: RequestManager = Depends(get_manager),
    current_user: User = Depends(get_current_user),
):
    return manager.update_resolution(request_id, payload, current_user)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request(
    request_id: UUID,
    manager: RequestManager = Depends(get_manager),
    current_user: User = Depends(get_current_user),
):
    manager.delete(request_id, current_user)
    return None
