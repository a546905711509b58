from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from datetime import datetime
from database import Base

class UserRole(PyEnum):
    ADMIN = "ADMIN"
    PRINCIPAL = "PRINCIPAL"
    HEAD_TEACHER = "HEAD_TEACHER"
    TEACHER = "TEACHER"
    STAFF = "STAFF"

# Top-level decision maker, copied on every decision it did not take itself
OVERSEER_ROLE = UserRole.PRINCIPAL

class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), nullable=False)
    department = Column(String, nullable=True)
    subject = Column(String, nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationship with documents
    documents = relationship("Document", back_populates="uploader", foreign_keys="Document.uploader_id")

    # Relationship with notifications
    notifications = relationship(
        "Notification",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    @property
    def is_overseer(self) -> bool:
        return self.role == OVERSEER_ROLE
