from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum
from database import Base

MAX_COMMENT_LENGTH = 2048

class ApprovalStatus(PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVISION_REQUESTED = "revision_requested"

class ApprovalStep(Base):
    """One level of a document's approval chain, decided exactly once."""

    __tablename__ = 'approvals'
    __table_args__ = (
        UniqueConstraint('document_id', 'approval_level', name='uq_approvals_document_level'),
        CheckConstraint('approval_level >= 1', name='ck_approvals_level_positive'),
    )

    id = Column(Integer, primary_key=True)
    document_id = Column(Integer, ForeignKey('documents.id'), nullable=False, index=True)
    approval_level = Column(Integer, nullable=False)
    approver_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    status = Column(Enum(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING)
    comments = Column(String(MAX_COMMENT_LENGTH), nullable=True)
    decision_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    document = relationship("Document", back_populates="approvals")
    approver = relationship("User")
