from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from modules.audit.models.audit_log import AuditAction
from modules.audit.schemas import AuditLogResponse
from modules.audit.services.audit_service import AuditService
from modules.auth.dependencies import require_permission
from modules.documents.models.user import User

router = APIRouter(prefix="/audit-logs", tags=["audit"])

@router.get("", response_model=List[AuditLogResponse])
def list_audit_logs(
    user_id: Optional[int] = Query(None),
    document_id: Optional[int] = Query(None),
    action: Optional[AuditAction] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("audit")),
):
    return AuditService(db).list_logs(user_id, document_id, action, start, end, limit)
