from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from modules.audit.models.audit_log import AuditAction

class AuditLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    document_id: Optional[int] = None
    action: AuditAction
    details: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
