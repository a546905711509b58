from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from modules.notifications.models.notification import NotificationType

class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: NotificationType
    created_at: datetime
    read_at: Optional[datetime] = None
    user_id: int
    document_id: Optional[int] = None
    is_read: bool = False

    model_config = {"from_attributes": True}

class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int

class CountResponse(BaseModel):
    message: str
    count: int
