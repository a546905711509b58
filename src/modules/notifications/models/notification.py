from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Boolean, Column, Integer, String, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship

from database import Base

MAX_NOTIFICATION_TITLE_LENGTH = 255

class NotificationType(PyEnum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"

    @classmethod
    def coerce(cls, value) -> "NotificationType":
        """Unknown kinds fall back to INFO."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.INFO

class Notification(Base):
    __tablename__ = 'notifications'

    id = Column(Integer, primary_key=True)
    title = Column(String(MAX_NOTIFICATION_TITLE_LENGTH), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(Enum(NotificationType), nullable=False, default=NotificationType.INFO)
    created_at = Column(DateTime, default=datetime.utcnow)
    read_at = Column(DateTime, nullable=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    user = relationship("User", back_populates="notifications")
    document_id = Column(Integer, ForeignKey('documents.id'), nullable=True)
    document = relationship("Document")
    is_read = Column(Boolean, default=False, nullable=False)
