from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gearguard.core.config import settings
from gearguard.database import get_db
from gearguard.dependencies import require_manager
from gearguard.models.user import User
from gearguard.schemas.audit import AuditLogResponse
from gearguard.services.audit_service import AuditLogger

router = APIRouter()


@router.get("/", response_model=List[AuditLogResponse])
def list_audit_logs(
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Most recent audit entries, optionally for one entity."""
    return AuditLogger(db).recent(entity_type=entity_type, entity_id=entity_id, skip=skip, limit=limit)
