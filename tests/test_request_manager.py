from datetime import date, timedelta
import json
import uuid

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from gearguard.core.exceptions import (
    CascadeFailureError,
    ForbiddenError,
    InactiveEquipmentError,
    InvalidTransitionError,
    NotFoundError,
    RequestValidationFailed,
)
from gearguard.models import AuditLog, Equipment, MaintenanceRequest
from gearguard.models.maintenance import MaintenancePriority, MaintenanceStage, RequestType
from gearguard.schemas.maintenance import (
    MaintenanceRequestCreate,
    MaintenanceRequestUpdate,
    ResolutionUpdate,
)
from gearguard.services.request_manager import RequestManager


@pytest.fixture
def manager(db):
    return RequestManager(db, max_retries=3, retry_backoff=0)


def new_request(manager, world, actor=None, **overrides):
    data = dict(
        subject="Spindle noise",
        description="Grinding sound at high RPM",
        equipment_id=world.equipment.id,
        request_type="Corrective",
    )
    data.update(overrides)
    return manager.create(MaintenanceRequestCreate(**data), actor or world.requester)


def audit_actions(db, entity_id):
    rows = db.query(AuditLog).filter(AuditLog.entity_id == entity_id).all()
    return sorted(r.action for r in rows)


def db_error():
    return OperationalError("COMMIT", {}, Exception("database is locked"))


# ── Create ──

def test_create_fills_from_equipment(manager, world):
    request = new_request(manager, world)

    assert request.assigned_technician_id == world.technician.id
    assert request.maintenance_team_id == world.team.id
    assert request.equipment_category == "CNC Machine"
    assert request.stage == MaintenanceStage.NEW
    assert request.priority == MaintenancePriority.MEDIUM
    assert request.request_type == RequestType.CORRECTIVE
    assert request.created_by_id == world.requester.id
    assert request.duration_hours == 0


def test_create_keeps_explicit_technician(manager, world):
    request = new_request(manager, world, assigned_technician_id=world.teammate.id, priority="Urgent")
    assert request.assigned_technician_id == world.teammate.id
    assert request.priority == MaintenancePriority.URGENT


def test_create_snapshot_is_not_resynced(db, manager, world):
    request = new_request(manager, world)
    world.equipment.category = "Milling"
    world.equipment.maintenance_team_id = world.other_team.id
    db.commit()

    db.refresh(request)
    assert request.equipment_category == "CNC Machine"
    assert request.maintenance_team_id == world.team.id


def test_create_reports_every_invalid_field(manager, world):
    with pytest.raises(RequestValidationFailed) as exc_info:
        new_request(
            manager, world,
            subject="  ", description="", request_type="Preventive",
            priority="Critical", duration_hours=-1,
        )
    fields = {e["field"] for e in exc_info.value.errors}
    assert fields == {"subject", "description", "priority", "scheduled_date", "duration_hours"}
    assert exc_info.value.to_dict()["error"] == "ValidationError"


def test_create_requires_request_type(manager, world):
    with pytest.raises(RequestValidationFailed) as exc_info:
        new_request(manager, world, request_type=None)
    assert [e["field"] for e in exc_info.value.errors] == ["request_type"]

    with pytest.raises(RequestValidationFailed):
        new_request(manager, world, request_type="Emergency")


def test_preventive_requires_scheduled_date(manager, world):
    with pytest.raises(RequestValidationFailed) as exc_info:
        new_request(manager, world, request_type="Preventive")
    assert [e["field"] for e in exc_info.value.errors] == ["scheduled_date"]

    request = new_request(manager, world, request_type="Preventive",
                          scheduled_date=date.today() + timedelta(days=30))
    assert request.request_type == RequestType.PREVENTIVE


def test_create_rejects_unknown_technician(manager, world):
    with pytest.raises(RequestValidationFailed) as exc_info:
        new_request(manager, world, assigned_technician_id=uuid.uuid4())
    assert [e["field"] for e in exc_info.value.errors] == ["assigned_technician_id"]


def test_create_against_missing_or_inactive_equipment(manager, world, make_equipment):
    with pytest.raises(NotFoundError):
        new_request(manager, world, equipment_id=uuid.uuid4())

    retired = make_equipment(world.team, world.technician, is_active=False)
    with pytest.raises(InactiveEquipmentError):
        new_request(manager, world, equipment_id=retired.id)


def test_create_writes_audit_entry(db, manager, world):
    request = new_request(manager, world)
    entry = db.query(AuditLog).filter(AuditLog.entity_id == request.id).one()
    assert entry.action == "request_created"
    assert entry.actor_id == world.requester.id
    assert json.loads(entry.details)["subject"] == "Spindle noise"


# ── Scenarios ──

def test_scenario_a_to_d_full_lifecycle(db, manager, world):
    # A: auto-fill
    r1 = new_request(manager, world)
    assert r1.assigned_technician_id == world.technician.id
    assert r1.maintenance_team_id == world.team.id
    assert r1.stage == MaintenanceStage.NEW

    # B: manager starts work
    r1 = manager.update_stage(r1.id, MaintenanceStage.IN_PROGRESS, world.manager)
    assert r1.stage == MaintenanceStage.IN_PROGRESS

    # C: repaired work cannot be reopened
    r1 = manager.update_stage(r1.id, MaintenanceStage.REPAIRED, world.manager)
    with pytest.raises(InvalidTransitionError) as exc_info:
        manager.update_stage(r1.id, MaintenanceStage.NEW, world.manager)
    assert "'Repaired'" in exc_info.value.message and "'New'" in exc_info.value.message

    # D: assigned technician scraps it
    r1 = manager.update_stage(r1.id, MaintenanceStage.SCRAP, world.technician)
    assert r1.stage == MaintenanceStage.SCRAP
    db.refresh(world.equipment)
    assert world.equipment.is_active is False
    with pytest.raises(InactiveEquipmentError):
        new_request(manager, world)


def test_scenario_e_user_sees_only_own_request(manager, world):
    r2 = new_request(manager, world, actor=world.requester)

    assert manager.get(r2.id, world.requester).id == r2.id
    with pytest.raises(ForbiddenError):
        manager.get(r2.id, world.other_requester)


def test_get_missing_request(manager, world):
    with pytest.raises(NotFoundError):
        manager.get(uuid.uuid4(), world.manager)


def test_technician_can_view_any_request(manager, world):
    request = new_request(manager, world)
    assert manager.get(request.id, world.outsider).id == request.id


# ── Stage updates ──

def test_user_can_never_change_stage(manager, world):
    request = new_request(manager, world, actor=world.requester)
    for stage in MaintenanceStage:
        with pytest.raises(ForbiddenError):
            manager.update_stage(request.id, stage, world.requester)


def test_unassigned_technician_cannot_change_stage(manager, world):
    request = new_request(manager, world)
    with pytest.raises(ForbiddenError):
        manager.update_stage(request.id, MaintenanceStage.IN_PROGRESS, world.teammate)


def test_same_stage_is_a_no_op(db, manager, world):
    request = new_request(manager, world)
    result = manager.update_stage(request.id, MaintenanceStage.NEW, world.manager)

    assert result.stage == MaintenanceStage.NEW
    assert "stage_changed" not in audit_actions(db, request.id)


def test_skipping_a_stage_is_rejected(manager, world):
    request = new_request(manager, world)
    with pytest.raises(InvalidTransitionError):
        manager.update_stage(request.id, MaintenanceStage.REPAIRED, world.manager)


def test_scrap_is_terminal(manager, world):
    request = new_request(manager, world)
    manager.update_stage(request.id, MaintenanceStage.SCRAP, world.manager)
    for stage in (MaintenanceStage.NEW, MaintenanceStage.IN_PROGRESS, MaintenanceStage.REPAIRED):
        with pytest.raises(InvalidTransitionError):
            manager.update_stage(request.id, stage, world.manager)


def test_scrap_requires_confirmation(db, manager, world):
    request = new_request(manager, world)
    with pytest.raises(RequestValidationFailed) as exc_info:
        manager.update_stage(request.id, MaintenanceStage.SCRAP, world.manager, confirmed=False)
    assert exc_info.value.errors[0]["field"] == "confirm"

    db.refresh(world.equipment)
    assert world.equipment.is_active is True


def test_stage_change_is_audited(db, manager, world):
    request = new_request(manager, world)
    manager.update_stage(request.id, MaintenanceStage.IN_PROGRESS, world.technician)

    entry = (
        db.query(AuditLog)
        .filter(AuditLog.entity_id == request.id, AuditLog.action == "stage_changed")
        .one()
    )
    assert json.loads(entry.details) == {"from": "New", "to": "In Progress"}
    assert entry.actor_id == world.technician.id


def test_scrap_audits_both_entities(db, manager, world):
    request = new_request(manager, world)
    manager.update_stage(request.id, MaintenanceStage.SCRAP, world.manager)

    assert "stage_changed" in audit_actions(db, request.id)
    assert audit_actions(db, world.equipment.id) == ["equipment_deactivated"]


def test_scrapping_second_request_on_inactive_equipment(db, manager, world):
    first = new_request(manager, world)
    second = new_request(manager, world, subject="Coolant pump")
    manager.update_stage(first.id, MaintenanceStage.SCRAP, world.manager)

    result = manager.update_stage(second.id, MaintenanceStage.SCRAP, world.manager)
    assert result.stage == MaintenanceStage.SCRAP
    assert audit_actions(db, world.equipment.id) == ["equipment_deactivated"]


def test_scrap_retries_after_database_error(db, manager, world, monkeypatch):
    request = new_request(manager, world)
    real_commit = db.commit
    calls = {"n": 0}

    def flaky_commit():
        calls["n"] += 1
        if calls["n"] == 1:
            raise db_error()
        return real_commit()

    monkeypatch.setattr(db, "commit", flaky_commit)
    result = manager.update_stage(request.id, MaintenanceStage.SCRAP, world.manager)
    monkeypatch.undo()

    assert calls["n"] == 2
    assert result.stage == MaintenanceStage.SCRAP
    db.refresh(world.equipment)
    assert world.equipment.is_active is False
    assert audit_actions(db, world.equipment.id) == ["equipment_deactivated"]


def test_scrap_cascade_failure_leaves_both_rows_unchanged(db, manager, world, monkeypatch):
    request = new_request(manager, world)
    request_id, equipment_id = request.id, world.equipment.id
    calls = {"n": 0}

    def failing_commit():
        calls["n"] += 1
        raise db_error()

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(CascadeFailureError) as exc_info:
        manager.update_stage(request_id, MaintenanceStage.SCRAP, world.manager)
    monkeypatch.undo()

    assert calls["n"] == 3
    assert exc_info.value.status_code == 500
    body = exc_info.value.to_dict()
    assert body["request_id"] == str(request_id)
    assert body["equipment_id"] == str(equipment_id)

    db.expire_all()
    assert db.get(Equipment, equipment_id).is_active is True
    assert db.get(MaintenanceRequest, request_id).stage == MaintenanceStage.NEW
    assert audit_actions(db, equipment_id) == []


def test_scrap_retry_rechecks_stage_after_concurrent_scrap(db, manager, world, monkeypatch):
    request = new_request(manager, world)
    request_id, equipment_id = request.id, world.equipment.id
    real_commit = db.commit
    calls = {"n": 0}

    def commit_after_other_writer():
        calls["n"] += 1
        if calls["n"] == 1:
            db.rollback()
            db.execute(
                update(MaintenanceRequest)
                .where(MaintenanceRequest.id == request_id)
                .values(stage=MaintenanceStage.SCRAP)
            )
            real_commit()
            raise db_error()
        return real_commit()

    monkeypatch.setattr(db, "commit", commit_after_other_writer)
    with pytest.raises(InvalidTransitionError):
        manager.update_stage(request_id, MaintenanceStage.SCRAP, world.manager)
    monkeypatch.undo()

    assert calls["n"] == 1
    db.expire_all()
    assert db.get(MaintenanceRequest, request_id).stage == MaintenanceStage.SCRAP
    assert db.get(Equipment, equipment_id).is_active is True
    assert audit_actions(db, equipment_id) == []


# ── Listing ──

def test_list_filters_and_visibility(manager, world):
    mine = new_request(manager, world, actor=world.requester, priority="High")
    theirs = new_request(manager, world, actor=world.other_requester)
    manager.update_stage(theirs.id, MaintenanceStage.IN_PROGRESS, world.manager)

    assert {r.id for r in manager.list(world.requester)} == {mine.id}
    assert {r.id for r in manager.list(world.manager)} == {mine.id, theirs.id}
    assert [r.id for r in manager.list(world.manager, stage=MaintenanceStage.IN_PROGRESS)] == [theirs.id]
    assert [r.id for r in manager.list(world.manager, priority=MaintenancePriority.HIGH)] == [mine.id]
    assert manager.list(world.manager, technician_id=world.outsider.id) == []
    assert len(manager.list(world.manager, equipment_id=world.equipment.id)) == 2


def test_calendar_returns_scheduled_requests_in_range(manager, world):
    today = date.today()
    soon = new_request(manager, world, request_type="Preventive", scheduled_date=today + timedelta(days=2))
    later = new_request(manager, world, request_type="Preventive", scheduled_date=today + timedelta(days=40))
    new_request(manager, world)

    assert [r.id for r in manager.calendar(world.manager)] == [soon.id, later.id]
    in_range = manager.calendar(world.manager, start_date=today, end_date=today + timedelta(days=7))
    assert [r.id for r in in_range] == [soon.id]


def test_overdue_excludes_closed_requests(manager, world):
    today = date.today()
    late = new_request(manager, world, request_type="Preventive", scheduled_date=today - timedelta(days=3))
    done = new_request(manager, world, request_type="Preventive", scheduled_date=today - timedelta(days=5))
    new_request(manager, world, request_type="Preventive", scheduled_date=today + timedelta(days=3))
    manager.update_stage(done.id, MaintenanceStage.IN_PROGRESS, world.manager)
    manager.update_stage(done.id, MaintenanceStage.REPAIRED, world.manager)

    assert [r.id for r in manager.overdue(world.manager, today=today)] == [late.id]
    assert late.overdue_as_of(today) is True
    assert done.overdue_as_of(today) is False
    assert manager.overdue(world.outsider, today=today) == []


# ── Assignment, resolution, delete ──

def test_assign_technician(db, manager, world):
    request = new_request(manager, world)
    # Team membership is not checked on assignment
    result = manager.assign_technician(request.id, world.outsider.id, world.manager)
    assert result.assigned_technician_id == world.outsider.id
    assert "technician_assigned" in audit_actions(db, request.id)


def test_assign_technician_permissions_and_missing_user(manager, world):
    request = new_request(manager, world)
    with pytest.raises(ForbiddenError):
        manager.assign_technician(request.id, world.teammate.id, world.technician)
    with pytest.raises(NotFoundError):
        manager.assign_technician(request.id, uuid.uuid4(), world.manager)


def test_update_details(db, manager, world):
    request = new_request(manager, world)
    result = manager.update_details(
        request.id,
        MaintenanceRequestUpdate(description=" Grinding and smoke ", priority="Urgent"),
        world.technician,
    )
    assert result.description == "Grinding and smoke"
    assert result.priority == MaintenancePriority.URGENT
    assert result.subject == "Spindle noise"
    assert result.equipment_category == "CNC Machine"
    assert "request_updated" in audit_actions(db, request.id)

    with pytest.raises(ForbiddenError):
        manager.update_details(request.id, MaintenanceRequestUpdate(subject="Mine now"), world.requester)
    with pytest.raises(ForbiddenError):
        manager.update_details(request.id, MaintenanceRequestUpdate(subject="Mine now"), world.teammate)


def test_update_details_checks_schedule_against_stored_row(manager, world):
    request = new_request(
        manager, world, request_type="Preventive", scheduled_date=date.today() + timedelta(days=5)
    )
    with pytest.raises(RequestValidationFailed) as exc_info:
        manager.update_details(request.id, MaintenanceRequestUpdate(scheduled_date=None), world.manager)
    assert [e["field"] for e in exc_info.value.errors] == ["scheduled_date"]

    with pytest.raises(RequestValidationFailed) as exc_info:
        manager.update_details(
            request.id, MaintenanceRequestUpdate(priority="Critical", subject=" "), world.manager
        )
    assert {e["field"] for e in exc_info.value.errors} == {"priority", "subject"}

    result = manager.update_details(
        request.id, MaintenanceRequestUpdate(request_type="Corrective", scheduled_date=None), world.manager
    )
    assert result.request_type == RequestType.CORRECTIVE
    assert result.scheduled_date is None


def test_update_resolution(manager, world):
    request = new_request(manager, world)
    result = manager.update_resolution(
        request.id, ResolutionUpdate(duration_hours=2.5, resolution_notes="Replaced bearing"),
        world.technician,
    )
    assert result.duration_hours == 2.5
    assert result.resolution_notes == "Replaced bearing"

    result = manager.update_resolution(request.id, ResolutionUpdate(resolution_notes="Checked"), world.manager)
    assert result.duration_hours == 2.5

    with pytest.raises(ForbiddenError):
        manager.update_resolution(request.id, ResolutionUpdate(duration_hours=1), world.requester)


def test_delete_request(db, manager, world):
    request = new_request(manager, world)
    request_id = request.id

    with pytest.raises(ForbiddenError):
        manager.delete(request_id, world.technician)
    manager.delete(request_id, world.manager)

    assert db.get(MaintenanceRequest, request_id) is None
    assert "request_deleted" in audit_actions(db, request_id)
