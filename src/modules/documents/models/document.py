from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum
from database import Base

MAX_TITLE_LENGTH = 200

class DocumentStatus(PyEnum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVISION_REQUESTED = "revision_requested"

# Statuses in which somebody must be assigned as current approver
ACTIVE_STATUSES = frozenset({DocumentStatus.PENDING, DocumentStatus.IN_REVIEW})

class DocumentPriority(PyEnum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """1 is the most urgent."""
        return PRIORITY_RANK[self]

PRIORITY_RANK = {
    DocumentPriority.URGENT: 1,
    DocumentPriority.HIGH: 2,
    DocumentPriority.MEDIUM: 3,
    DocumentPriority.LOW: 4,
}

class Document(Base):
    __tablename__ = 'documents'

    id = Column(Integer, primary_key=True)
    title = Column(String(MAX_TITLE_LENGTH), nullable=False)
    document_type = Column(String, nullable=False)
    department = Column(String, nullable=True)
    priority = Column(Enum(DocumentPriority), nullable=False, default=DocumentPriority.MEDIUM)
    status = Column(Enum(DocumentStatus), nullable=False, default=DocumentStatus.PENDING)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    uploader_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    uploader = relationship("User", back_populates="documents", foreign_keys=[uploader_id])

    current_approver_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    current_approver = relationship("User", foreign_keys=[current_approver_id])

    # Approval chain, lowest level first
    approvals = relationship("ApprovalStep", back_populates="document", order_by="ApprovalStep.approval_level")

    signatures = relationship("DocumentSignature", back_populates="document", order_by="DocumentSignature.approval_level")

    def append_remark(self, note: str) -> None:
        self.remarks = f"{self.remarks or ''}\n{note}"
