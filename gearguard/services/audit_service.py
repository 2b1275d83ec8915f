"""
Audit logger injected into the services.
Rows are added to the caller's session and committed with the mutation they
describe, so a rolled-back change leaves no audit trail behind.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from gearguard.models.audit import AuditLog

logger = logging.getLogger(__name__)


class AuditLogger:
    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id,
        details: Optional[Dict[str, Any]] = None,
        actor_id=None,
    ) -> AuditLog:
        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            details=json.dumps(details, default=str) if details else None,
        )
        self.db.add(entry)
        logger.info(f"[AUDIT] {action} {entity_type}={entity_id} actor={actor_id}")
        return entry

    def recent(
        self,
        entity_type: Optional[str] = None,
        entity_id=None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[AuditLog]:
        query = self.db.query(AuditLog)
        if entity_type:
            query = query.filter(AuditLog.entity_type == entity_type)
        if entity_id is not None:
            query = query.filter(AuditLog.entity_id == entity_id)
        return (
            query.order_by(AuditLog.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
