from datetime import datetime
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from modules.notifications.models.notification import Notification

class NotificationRepository:
    def __init__(self, db_session: Session):
        self.db = db_session

    def add(self, notification: Notification) -> Notification:
        """Stage a notification in the current transaction without committing it."""
        with self.db.begin_nested():
            self.db.add(notification)
            self.db.flush()
        return notification

    def find_by_user_id(self, user_id: int, limit: int = 50) -> List[Notification]:
        return (
            self.db
            .query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )

    def count_unread(self, user_id: int) -> int:
        return (
            self.db
            .query(func.count(Notification.id))
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .scalar()
        )

    def mark_read(self, notification_id: int, user_id: int) -> Optional[Notification]:
        notif = (
            self.db
            .query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )
        if not notif:
            return None
        if not notif.is_read:
            notif.is_read = True
            notif.read_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(notif)
        return notif

    def mark_all_read(self, user_id: int) -> int:
        count = (
            self.db
            .query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .update({"is_read": True, "read_at": datetime.utcnow()}, synchronize_session=False)
        )
        self.db.commit()
        return count

    def delete_read(self, user_id: int) -> int:
        # unread notifications are never deleted
        count = (
            self.db
            .query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(True))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return count
