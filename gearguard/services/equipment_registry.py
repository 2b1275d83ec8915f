"""
Equipment Registry
Owns equipment rows: CRUD, the ownership invariant, auto-fill data for new
maintenance requests and the deactivation used when a request is scrapped.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gearguard.core.exceptions import (
    InactiveEquipmentError,
    NotFoundError,
    RequestValidationFailed,
)
from gearguard.models.equipment import Equipment, OwnershipType
from gearguard.models.maintenance import MaintenanceRequest, CLOSED_STAGES
from gearguard.models.team import MaintenanceTeam
from gearguard.models.user import User
from gearguard.schemas.equipment import AutoFillResponse, EquipmentCreate, EquipmentUpdate
from gearguard.schemas.team import TeamSummary
from gearguard.schemas.user import UserSummary
from gearguard.services import access_filter
from gearguard.services.audit_service import AuditLogger

logger = logging.getLogger(__name__)

ENTITY = "equipment"
# Fields an update may explicitly clear
NULLABLE_FIELDS = {"department", "assigned_employee_id", "purchase_date", "warranty_expiry_date"}


def normalize_serial(serial: str) -> str:
    return serial.strip().upper()


def ownership_errors(
    ownership_type: Optional[OwnershipType],
    department: Optional[str],
    assigned_employee_id,
) -> List[Dict[str, str]]:
    """Exactly one of department / assigned employee, matching the ownership type."""
    errors = []
    has_department = bool(department and department.strip())
    has_employee = assigned_employee_id is not None

    if ownership_type == OwnershipType.DEPARTMENT:
        if not has_department:
            errors.append({"field": "department",
                           "message": "Department is required when ownership type is Department"})
        if has_employee:
            errors.append({"field": "assigned_employee_id",
                           "message": "Department-owned equipment cannot have an assigned employee"})
    elif ownership_type == OwnershipType.EMPLOYEE:
        if not has_employee:
            errors.append({"field": "assigned_employee_id",
                           "message": "Assigned employee is required when ownership type is Employee"})
        if has_department:
            errors.append({"field": "department",
                           "message": "Employee-owned equipment cannot have a department"})
    else:
        errors.append({"field": "ownership_type", "message": "Ownership type is required"})
    return errors


class EquipmentRegistry:
    def __init__(self, db: Session, audit: Optional[AuditLogger] = None):
        self.db = db
        self.audit = audit or AuditLogger(db)

    # ──────────────────────────── Reads ────────────────────────────

    def get(self, equipment_id) -> Equipment:
        equipment = self.db.get(Equipment, equipment_id)
        if equipment is None:
            raise NotFoundError("Equipment", equipment_id)
        return equipment

    def list(
        self,
        category: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Equipment]:
        query = self.db.query(Equipment)
        if category:
            query = query.filter(Equipment.category == category)
        if is_active is not None:
            query = query.filter(Equipment.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Equipment.name.ilike(pattern), Equipment.serial_number.ilike(pattern))
            )
        return (
            query.order_by(Equipment.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def requests_for(self, equipment_id, actor: User, open_only: bool = False) -> List[MaintenanceRequest]:
        """Requests raised against the equipment that the actor is allowed to see."""
        self.get(equipment_id)
        query = self.db.query(MaintenanceRequest).filter(
            MaintenanceRequest.equipment_id == equipment_id,
            access_filter.visibility_clause(actor),
        )
        if open_only:
            query = query.filter(MaintenanceRequest.stage.notin_(CLOSED_STAGES))
        return query.order_by(MaintenanceRequest.created_at.desc()).all()

    # ──────────────────────── Request support ────────────────────────

    def require_active(self, equipment_id) -> Equipment:
        """Equipment that may receive a new maintenance request."""
        equipment = self.get(equipment_id)
        if not equipment.is_active:
            logger.info(f"[EQUIPMENT] Rejected new request for inactive equipment {equipment_id}")
            raise InactiveEquipmentError(equipment_id)
        return equipment

    def get_auto_fill(self, equipment_id) -> AutoFillResponse:
        equipment = self.require_active(equipment_id)
        return AutoFillResponse(
            equipment_category=equipment.category,
            maintenance_team=TeamSummary.model_validate(equipment.maintenance_team),
            default_technician=UserSummary.model_validate(equipment.default_technician),
        )

    def deactivate(self, equipment_id, actor_id=None, reason: Optional[str] = None) -> Equipment:
        """
        Mark equipment inactive. Idempotent: nothing is written when it is
        already inactive. Flushes only; the caller commits.
        """
        equipment = self.get(equipment_id)
        if not equipment.is_active:
            return equipment

        equipment.is_active = False
        self.audit.record(
            "equipment_deactivated", ENTITY, equipment.id,
            {"reason": reason} if reason else None,
            actor_id=actor_id,
        )
        self.db.flush()
        logger.info(f"[EQUIPMENT] Deactivated {equipment.serial_number} ({equipment.id})")
        return equipment

    # ──────────────────────────── Writes ────────────────────────────

    def create(self, payload: EquipmentCreate, actor_id=None) -> Equipment:
        data = payload.model_dump()
        data["serial_number"] = normalize_serial(data["serial_number"])
        self._validate(data)

        equipment = Equipment(**data)
        self.db.add(equipment)
        self.db.flush()
        self.audit.record("equipment_created", ENTITY, equipment.id,
                          {"serial_number": equipment.serial_number}, actor_id=actor_id)
        self._commit()
        self.db.refresh(equipment)
        logger.info(f"[EQUIPMENT] Created {equipment.serial_number} ({equipment.id})")
        return equipment

    def update(self, equipment_id, payload: EquipmentUpdate, actor_id=None) -> Equipment:
        equipment = self.get(equipment_id)
        changes = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_FIELDS
        }
        if "serial_number" in changes:
            changes["serial_number"] = normalize_serial(changes["serial_number"])

        merged = {
            column: getattr(equipment, column)
            for column in (
                "serial_number", "ownership_type", "department", "assigned_employee_id",
                "maintenance_team_id", "default_technician_id",
            )
        }
        merged.update(changes)
        self._validate(merged, exclude_id=equipment.id)

        for key, value in changes.items():
            setattr(equipment, key, value)
        self.audit.record("equipment_updated", ENTITY, equipment.id,
                          {"fields": sorted(changes)}, actor_id=actor_id)
        self._commit()
        self.db.refresh(equipment)
        return equipment

    def delete(self, equipment_id, actor_id=None) -> None:
        equipment = self.get(equipment_id)
        linked = (
            self.db.query(MaintenanceRequest.id)
            .filter(MaintenanceRequest.equipment_id == equipment.id)
            .first()
        )
        if linked:
            raise RequestValidationFailed.single(
                "equipment_id",
                "Equipment has maintenance requests; scrap or deactivate it instead of deleting",
            )
        serial_number = equipment.serial_number
        self.db.delete(equipment)
        self.audit.record("equipment_deleted", ENTITY, equipment_id,
                          {"serial_number": serial_number}, actor_id=actor_id)
        self._commit()
        logger.info(f"[EQUIPMENT] Deleted {serial_number} ({equipment_id})")

    # ─────────────────────────── Helpers ───────────────────────────

    def _validate(self, data: dict, exclude_id=None) -> None:
        errors = ownership_errors(
            data.get("ownership_type"), data.get("department"), data.get("assigned_employee_id")
        )

        if not data.get("serial_number"):
            errors.append({"field": "serial_number", "message": "Serial number is required"})
        else:
            query = self.db.query(Equipment.id).filter(Equipment.serial_number == data["serial_number"])
            if exclude_id is not None:
                query = query.filter(Equipment.id != exclude_id)
            if query.first():
                errors.append({"field": "serial_number",
                               "message": "Equipment with this serial number already exists"})

        if data.get("maintenance_team_id") is None or self.db.get(MaintenanceTeam, data["maintenance_team_id"]) is None:
            errors.append({"field": "maintenance_team_id", "message": "Maintenance team not found"})
        if data.get("default_technician_id") is None or self.db.get(User, data["default_technician_id"]) is None:
            errors.append({"field": "default_technician_id", "message": "Default technician not found"})
        if data.get("assigned_employee_id") is not None and self.db.get(User, data["assigned_employee_id"]) is None:
            errors.append({"field": "assigned_employee_id", "message": "Assigned employee not found"})

        if errors:
            raise RequestValidationFailed(errors)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(f"[EQUIPMENT] Integrity error: {exc.orig}")
            raise RequestValidationFailed.single(
                "serial_number", "Equipment with this serial number already exists"
            )
