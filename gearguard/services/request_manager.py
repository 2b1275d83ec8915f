"""
Request Manager
Creates maintenance requests from equipment auto-fill, moves them through the
stage workflow and cascades Scrap onto the equipment.

Every mutating operation writes an audit row in the same transaction.
"""
import logging
import time
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gearguard.core.config import settings
from gearguard.core.exceptions import (
    CascadeFailureError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    RequestValidationFailed,
)
from gearguard.models.maintenance import (
    CLOSED_STAGES,
    MaintenancePriority,
    MaintenanceRequest,
    MaintenanceStage,
    RequestType,
)
from gearguard.models.user import User
from gearguard.schemas.maintenance import (
    MaintenanceRequestCreate,
    MaintenanceRequestUpdate,
    ResolutionUpdate,
)
from gearguard.services import access_filter
from gearguard.services.audit_service import AuditLogger
from gearguard.services.equipment_registry import EquipmentRegistry
from gearguard.services.stage_transitions import is_valid_transition, requires_confirmation

logger = logging.getLogger(__name__)

ENTITY = "maintenance_request"
WORKER_ROLES = "Admin or Manager or the assigned technician"
MANAGER_ROLES = "Admin or Manager"


def _parse_enum(enum_cls, value, field: str, errors: List[Dict[str, str]]):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        errors.append({"field": field, "message": f"Must be one of: {allowed}"})
        return None


def _parse_date(value, field: str, errors: List[Dict[str, str]]) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        errors.append({"field": field, "message": "Must be a date in YYYY-MM-DD format"})
        return None


def _required_text(value: Optional[str], field: str, label: str, errors: List[Dict[str, str]]) -> str:
    text = (value or "").strip()
    if not text:
        errors.append({"field": field, "message": f"{label} is required"})
    return text


def _schedule_error(request_type, scheduled_date) -> Optional[Dict[str, str]]:
    if request_type == RequestType.PREVENTIVE and scheduled_date is None:
        return {"field": "scheduled_date",
                "message": "Scheduled date is required for preventive maintenance"}
    return None


class RequestManager:
    def __init__(
        self,
        db: Session,
        registry: Optional[EquipmentRegistry] = None,
        audit: Optional[AuditLogger] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
    ):
        self.db = db
        self.audit = audit or AuditLogger(db)
        self.registry = registry or EquipmentRegistry(db, self.audit)
        self.max_retries = max(1, max_retries if max_retries is not None else settings.CASCADE_MAX_RETRIES)
        self.retry_backoff = (
            retry_backoff if retry_backoff is not None else settings.CASCADE_RETRY_BACKOFF_SECONDS
        )

    # ──────────────────────────── Create ────────────────────────────

    def create(self, payload: MaintenanceRequestCreate, actor: User) -> MaintenanceRequest:
        errors: List[Dict[str, str]] = []

        subject = _required_text(payload.subject, "subject", "Subject", errors)
        description = _required_text(payload.description, "description", "Description", errors)
        if payload.equipment_id is None:
            errors.append({"field": "equipment_id", "message": "Equipment is required"})

        request_type = None
        if not payload.request_type:
            errors.append({"field": "request_type", "message": "Request type is required"})
        else:
            request_type = _parse_enum(RequestType, payload.request_type, "request_type", errors)

        priority = _parse_enum(
            MaintenancePriority,
            payload.priority or MaintenancePriority.MEDIUM.value,
            "priority",
            errors,
        )

        scheduled_date = _parse_date(payload.scheduled_date, "scheduled_date", errors)
        schedule_error = _schedule_error(request_type, payload.scheduled_date)
        if schedule_error:
            errors.append(schedule_error)
        if payload.duration_hours < 0:
            errors.append({"field": "duration_hours", "message": "Duration cannot be negative"})
        if (payload.assigned_technician_id is not None
                and self.db.get(User, payload.assigned_technician_id) is None):
            errors.append({"field": "assigned_technician_id", "message": "Technician not found"})

        if errors:
            raise RequestValidationFailed(errors)

        equipment = self.registry.require_active(payload.equipment_id)

        request = MaintenanceRequest(
            subject=subject,
            description=description,
            equipment_id=equipment.id,
            equipment_category=equipment.category,
            maintenance_team_id=equipment.maintenance_team_id,
            request_type=request_type,
            stage=MaintenanceStage.NEW,
            priority=priority,
            scheduled_date=scheduled_date,
            assigned_technician_id=payload.assigned_technician_id or equipment.default_technician_id,
            duration_hours=payload.duration_hours,
            resolution_notes="",
            created_by_id=actor.id,
        )
        self.db.add(request)
        self.db.flush()
        self.audit.record(
            "request_created", ENTITY, request.id,
            {"equipment_id": equipment.id, "subject": request.subject},
            actor_id=actor.id,
        )
        self.db.commit()
        self.db.refresh(request)
        logger.info(f"[REQUEST] Created {request.id} for equipment {equipment.id} by {actor.id}")
        return request

    # ──────────────────────────── Reads ────────────────────────────

    def _load(self, request_id) -> MaintenanceRequest:
        request = self.db.get(MaintenanceRequest, request_id)
        if request is None:
            raise NotFoundError("Request", request_id)
        return request

    def get(self, request_id, actor: User) -> MaintenanceRequest:
        request = self._load(request_id)
        if not access_filter.can_view(request, actor):
            raise ForbiddenError("the request creator", actor.role.value)
        return request

    def list(
        self,
        actor: User,
        stage: Optional[MaintenanceStage] = None,
        priority: Optional[MaintenancePriority] = None,
        request_type: Optional[RequestType] = None,
        equipment_id=None,
        technician_id=None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[MaintenanceRequest]:
        query = self.db.query(MaintenanceRequest).filter(access_filter.visibility_clause(actor))
        if stage:
            query = query.filter(MaintenanceRequest.stage == stage)
        if priority:
            query = query.filter(MaintenanceRequest.priority == priority)
        if request_type:
            query = query.filter(MaintenanceRequest.request_type == request_type)
        if equipment_id:
            query = query.filter(MaintenanceRequest.equipment_id == equipment_id)
        if technician_id:
            query = query.filter(MaintenanceRequest.assigned_technician_id == technician_id)
        return (
            query.order_by(MaintenanceRequest.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def calendar(
        self,
        actor: User,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[MaintenanceRequest]:
        query = self.db.query(MaintenanceRequest).filter(
            MaintenanceRequest.scheduled_date.isnot(None),
            access_filter.visibility_clause(actor),
        )
        if start_date:
            query = query.filter(MaintenanceRequest.scheduled_date >= start_date)
        if end_date:
            query = query.filter(MaintenanceRequest.scheduled_date <= end_date)
        return query.order_by(MaintenanceRequest.scheduled_date.asc()).all()

    def overdue(self, actor: User, today: Optional[date] = None) -> List[MaintenanceRequest]:
        today = today or date.today()
        return (
            self.db.query(MaintenanceRequest)
            .filter(
                MaintenanceRequest.scheduled_date < today,
                MaintenanceRequest.stage.notin_(CLOSED_STAGES),
                access_filter.visibility_clause(actor),
            )
            .order_by(MaintenanceRequest.scheduled_date.asc())
            .all()
        )

    # ──────────────────────────── Workflow ────────────────────────────

    def update_stage(
        self,
        request_id,
        new_stage: MaintenanceStage,
        actor: User,
        confirmed: bool = True,
    ) -> MaintenanceRequest:
        """
        Move a request along the workflow.

        ``confirmed`` is the caller's explicit acknowledgement for stages that
        need one (Scrap); the HTTP layer passes the client's ``confirm`` flag.
        """
        new_stage = MaintenanceStage(new_stage)
        request = self._load(request_id)

        if not access_filter.can_work_on(request, actor):
            raise ForbiddenError(WORKER_ROLES, actor.role.value)

        current = request.stage
        if new_stage == current:
            logger.info(f"[REQUEST] {request.id} already in '{current.value}', nothing to do")
            return request

        if not is_valid_transition(current, new_stage):
            raise InvalidTransitionError(current, new_stage)

        if requires_confirmation(new_stage) and not confirmed:
            raise RequestValidationFailed.single(
                "confirm",
                f"Moving to '{new_stage.value}' deactivates the equipment; resend with confirm=true",
            )

        if new_stage == MaintenanceStage.SCRAP:
            return self._scrap(request, actor)

        request.stage = new_stage
        self.audit.record(
            "stage_changed", ENTITY, request.id,
            {"from": current.value, "to": new_stage.value},
            actor_id=actor.id,
        )
        self.db.commit()
        self.db.refresh(request)
        logger.info(f"[REQUEST] {request.id} moved '{current.value}' -> '{new_stage.value}' by {actor.id}")
        return request

    def _scrap(self, request: MaintenanceRequest, actor: User) -> MaintenanceRequest:
        """
        Deactivate the equipment and write the Scrap stage in one transaction.
        Database errors roll both back and are retried; when every attempt
        fails the caller gets CascadeFailureError and neither row has changed.
        """
        request_id = request.id
        equipment_id = request.equipment_id
        actor_id = actor.id
        last_error = None

        for attempt in range(1, self.max_retries + 1):
            try:
                request = self._load(request_id)
                previous = request.stage
                # Another writer may have moved the request since the last attempt
                if not is_valid_transition(previous, MaintenanceStage.SCRAP):
                    raise InvalidTransitionError(previous, MaintenanceStage.SCRAP)
                self.registry.deactivate(
                    equipment_id, actor_id=actor_id, reason=f"request {request_id} scrapped"
                )
                request.stage = MaintenanceStage.SCRAP
                self.audit.record(
                    "stage_changed", ENTITY, request_id,
                    {"from": previous.value, "to": MaintenanceStage.SCRAP.value},
                    actor_id=actor_id,
                )
                self.db.commit()
            except SQLAlchemyError as exc:
                self.db.rollback()
                last_error = exc
                logger.warning(
                    f"[CASCADE] Scrap of request {request_id} failed "
                    f"(attempt {attempt}/{self.max_retries}): {exc}"
                )
                if attempt < self.max_retries and self.retry_backoff:
                    time.sleep(self.retry_backoff * attempt)
                continue

            self.db.refresh(request)
            logger.info(
                f"[CASCADE] Request {request_id} scrapped; equipment {equipment_id} deactivated"
            )
            return request

        logger.error(f"[CASCADE] Giving up on scrapping request {request_id}: {last_error}")
        raise CascadeFailureError(request_id, equipment_id, self.max_retries, str(last_error))

    # ──────────────────────────── Updates ────────────────────────────

    def assign_technician(self, request_id, technician_id, actor: User) -> MaintenanceRequest:
        if not access_filter.is_manager(actor):
            raise ForbiddenError(MANAGER_ROLES, actor.role.value)

        request = self._load(request_id)
        technician = self.db.get(User, technician_id)
        if technician is None:
            raise NotFoundError("Technician", technician_id)

        # Team membership is not checked
        previous = request.assigned_technician_id
        request.assigned_technician_id = technician.id
        self.audit.record(
            "technician_assigned", ENTITY, request.id,
            {"from": previous, "to": technician.id},
            actor_id=actor.id,
        )
        self.db.commit()
        self.db.refresh(request)
        logger.info(f"[REQUEST] {request.id} assigned to {technician.id}")
        return request

    def update_details(self, request_id, payload: MaintenanceRequestUpdate, actor: User) -> MaintenanceRequest:
        """
        Edit subject, description, type, priority and schedule. Validated the
        same way as create, with the Preventive schedule rule checked against
        the merged row.
        """
        request = self._load(request_id)
        if not access_filter.can_work_on(request, actor):
            raise ForbiddenError(WORKER_ROLES, actor.role.value)

        errors: List[Dict[str, str]] = []
        changes = payload.model_dump(exclude_unset=True)

        if "subject" in changes:
            changes["subject"] = _required_text(changes["subject"], "subject", "Subject", errors)
        if "description" in changes:
            changes["description"] = _required_text(
                changes["description"], "description", "Description", errors
            )
        if "request_type" in changes:
            changes["request_type"] = _parse_enum(RequestType, changes["request_type"], "request_type", errors)
        if "priority" in changes:
            changes["priority"] = _parse_enum(MaintenancePriority, changes["priority"], "priority", errors)
        if "scheduled_date" in changes:
            raw_date = changes["scheduled_date"]
            changes["scheduled_date"] = _parse_date(raw_date, "scheduled_date", errors)
        else:
            raw_date = request.scheduled_date

        request_type = changes.get("request_type", request.request_type)
        schedule_error = _schedule_error(request_type, raw_date)
        if schedule_error:
            errors.append(schedule_error)

        if errors:
            raise RequestValidationFailed(errors)

        for key, value in changes.items():
            setattr(request, key, value)
        self.audit.record(
            "request_updated", ENTITY, request.id,
            {"fields": sorted(changes)},
            actor_id=actor.id,
        )
        self.db.commit()
        self.db.refresh(request)
        logger.info(f"[REQUEST] {request.id} details updated by {actor.id}")
        return request

    def update_resolution(self, request_id, payload: ResolutionUpdate, actor: User) -> MaintenanceRequest:
        request = self._load(request_id)
        if not access_filter.can_work_on(request, actor):
            raise ForbiddenError(WORKER_ROLES, actor.role.value)

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if changes.get("duration_hours", 0) < 0:
            raise RequestValidationFailed.single("duration_hours", "Duration cannot be negative")

        for key, value in changes.items():
            setattr(request, key, value)
        self.audit.record(
            "resolution_updated", ENTITY, request.id,
            {"fields": sorted(changes)},
            actor_id=actor.id,
        )
        self.db.commit()
        self.db.refresh(request)
        return request

    def delete(self, request_id, actor: User) -> None:
        if not access_filter.is_manager(actor):
            raise ForbiddenError(MANAGER_ROLES, actor.role.value)

        request = self._load(request_id)
        self.db.delete(request)
        self.audit.record(
            "request_deleted", ENTITY, request.id,
            {"subject": request.subject, "equipment_id": request.equipment_id},
            actor_id=actor.id,
        )
        self.db.commit()
        logger.info(f"[REQUEST] Deleted {request_id} by {actor.id}")
