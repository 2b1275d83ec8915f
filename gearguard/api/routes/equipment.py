"""
Equipment Routes

Endpoints:
  POST   /equipment                      – create (Admin, Manager)
  GET    /equipment                      – list, filter by category / is_active / search
  GET    /equipment/{id}                 – get
  PUT    /equipment/{id}                 – update (Admin, Manager)
  DELETE /equipment/{id}                 – delete (Admin)
  GET    /equipment/{id}/requests        – all maintenance requests for the equipment
  GET    /equipment/{id}/requests/open   – requests not yet Repaired / Scrap
  GET    /equipment/{id}/auto-fill       – values pre-filled on a new request
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gearguard.core.config import settings
from gearguard.database import get_db
from gearguard.dependencies import get_current_user, require_admin, require_manager
from gearguard.models.user import User
from gearguard.schemas.equipment import (
    AutoFillResponse,
    EquipmentCreate,
    EquipmentResponse,
    EquipmentUpdate,
)
from gearguard.schemas.maintenance import MaintenanceRequestResponse
from gearguard.services.equipment_registry import EquipmentRegistry

router = APIRouter()


def get_registry(db: Session = Depends(get_db)) -> EquipmentRegistry:
    return EquipmentRegistry(db)


@router.post("/", response_model=EquipmentResponse, status_code=status.HTTP_201_CREATED)
def create_equipment(
    payload: EquipmentCreate,
    registry: EquipmentRegistry = Depends(get_registry),
    current_user: User = Depends(require_manager),
):
    return registry.create(payload, actor_id=current_user.id)


@router.get("/", response_model=List[EquipmentResponse])
def list_equipment(
    category: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    registry: EquipmentRegistry = Depends(get_registry),
    current_user: User = Depends(get_current_user),
):
    return registry.list(category=category, is_active=is_active, search=search, skip=skip, limit=limit)


@router.get("/{equipment_id}", response_model=EquipmentResponse)
def get_equipment(
    equipment_id: UUID,
    registry: EquipmentRegistry = Depends(get_registry),
    current_user: User = Depends(get_current_user),
):
    return registry.get(equipment_id)


@router.put("/{equipment_id}", response_model=EquipmentResponse)
def update_equipment(
    equipment_id: UUID,
    payload: EquipmentUpdate,
    registry: EquipmentRegistry = Depends(get_registry),
    current_user: User = Depends(require_manager),
):
    return registry.update(equipment_id, payload, actor_id=current_user.id)


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_equipment(
    equipment_id: UUID,
    registry: EquipmentRegistry = Depends(get_registry),
    current_user: User = Depends(require_admin),
):
    registry.delete(equipment_id, actor_id=current_user.id)
    return None


@router.get("/{equipment_id}/requests", response_model=List[MaintenanceRequestResponse])
def get_equipment_requests(
    equipment_id: UUID,
    registry: EquipmentRegistry = Depends(get_registry),
    current_user: User = Depends(get_current_user),
):
    return registry.requests_for(equipment_id, current_user)


@router.get("/{equipment_id}/requests/open", response_model=List[MaintenanceRequestResponse])
def get_equipment_open_requests(
    equipment_id: UUID,
    registry: EquipmentRegistry = Depends(get_registry),
    current_user: User = Depends(get_current_user),
):
    return registry.requests_for(equipment_id, current_user, open_only=True)


@router.get("/{equipment_id}/auto-fill", response_model=AutoFillResponse)
def get_equipment_auto_fill(
    equipment_id: UUID,
    registry: EquipmentRegistry = Depends(get_registry),
    current_user: User = Depends(get_current_user),
):
    return registry.get_auto_fill(equipment_id)
