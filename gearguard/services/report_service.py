"""
Maintenance reports: request counts per team and per equipment category.
Aggregation only; presentation is left to the client.
"""
from typing import Any, Dict, List

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from gearguard.models.maintenance import (
    MaintenancePriority,
    MaintenanceRequest,
    MaintenanceStage,
    RequestType,
)
from gearguard.models.team import MaintenanceTeam


def _count_when(column, value):
    return func.sum(case((column == value, 1), else_=0))


def by_team(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(
            MaintenanceTeam.id.label("team_id"),
            MaintenanceTeam.name.label("team_name"),
            MaintenanceTeam.specialization.label("specialization"),
            func.count(MaintenanceRequest.id).label("total_requests"),
            _count_when(MaintenanceRequest.stage, MaintenanceStage.NEW).label("new_requests"),
            _count_when(MaintenanceRequest.stage, MaintenanceStage.IN_PROGRESS).label("in_progress_requests"),
            _count_when(MaintenanceRequest.stage, MaintenanceStage.REPAIRED).label("repaired_requests"),
            _count_when(MaintenanceRequest.stage, MaintenanceStage.SCRAP).label("scrap_requests"),
            func.coalesce(func.sum(MaintenanceRequest.duration_hours), 0).label("total_duration_hours"),
        )
        .join(MaintenanceRequest, MaintenanceRequest.maintenance_team_id == MaintenanceTeam.id)
        .group_by(MaintenanceTeam.id, MaintenanceTeam.name, MaintenanceTeam.specialization)
        .order_by(func.count(MaintenanceRequest.id).desc())
        .all()
    )
    return [dict(row._mapping) for row in rows]


def by_category(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(
            MaintenanceRequest.equipment_category.label("category"),
            func.count(MaintenanceRequest.id).label("total_requests"),
            _count_when(MaintenanceRequest.request_type, RequestType.CORRECTIVE).label("corrective_requests"),
            _count_when(MaintenanceRequest.request_type, RequestType.PREVENTIVE).label("preventive_requests"),
            _count_when(MaintenanceRequest.priority, MaintenancePriority.LOW).label("low_priority"),
            _count_when(MaintenanceRequest.priority, MaintenancePriority.MEDIUM).label("medium_priority"),
            _count_when(MaintenanceRequest.priority, MaintenancePriority.HIGH).label("high_priority"),
            _count_when(MaintenanceRequest.priority, MaintenancePriority.URGENT).label("urgent_priority"),
            func.avg(MaintenanceRequest.duration_hours).label("avg_duration_hours"),
        )
        .group_by(MaintenanceRequest.equipment_category)
        .order_by(func.count(MaintenanceRequest.id).desc())
        .all()
    )
    results = []
    for row in rows:
        data = dict(row._mapping)
        data["avg_duration_hours"] = round(float(data["avg_duration_hours"] or 0), 2)
        results.append(data)
    return results
