import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from modules.audit.models.audit_log import AuditLog, AuditAction

logger = logging.getLogger(__name__)

class AuditService:
    def __init__(self, session: Session):
        self.session = session

    def log_activity(
        self,
        user_id: Optional[int],
        action: AuditAction,
        document_id: Optional[int] = None,
        details: str = "",
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """Record an audit entry in its own transaction. Never raises."""
        entry = AuditLog(
            user_id=user_id,
            document_id=document_id,
            action=action,
            details=details,
            ip_address=ip_address or None,
            user_agent=user_agent or None,
            created_at=datetime.utcnow(),
        )
        try:
            self.session.add(entry)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Failed to create audit log %s for user %s", action.value, user_id)
            return None
        logger.info("Audit log created: %s by user %s", action.value, user_id)
        return entry

    def list_logs(
        self,
        user_id: Optional[int] = None,
        document_id: Optional[int] = None,
        action: Optional[AuditAction] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[AuditLog]:
        query = self.session.query(AuditLog)
        if user_id is not None:
            query = query.filter(AuditLog.user_id == user_id)
        if document_id is not None:
            query = query.filter(AuditLog.document_id == document_id)
        if action is not None:
            query = query.filter(AuditLog.action == action)
        if start is not None:
            query = query.filter(AuditLog.created_at >= start)
        if end is not None:
            query = query.filter(AuditLog.created_at <= end)
        return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
