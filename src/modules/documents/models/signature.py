# src/modules/documents/models/signature.py

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Column, Integer, ForeignKey, DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship, composite
from datetime import datetime
from database import Base

@dataclass(frozen=True)
class SignerSnapshot:
    """Signer identity as it was at signing time."""
    name: str
    role: str
    department: Optional[str] = None
    subject: Optional[str] = None

class DocumentSignature(Base):
    __tablename__ = "document_signatures"
    __table_args__ = (
        UniqueConstraint("document_id", "approval_level", name="uq_signatures_document_level"),
    )

    id = Column(Integer, primary_key=True)
    document_id = Column(Integer, ForeignKey("documents.id"), nullable=False, index=True)
    signer_id   = Column(Integer, ForeignKey("users.id"),     nullable=False)
    approval_level = Column(Integer, nullable=False)

    signer_name       = Column(String, nullable=False)
    signer_role       = Column(String, nullable=False)
    signer_department = Column(String, nullable=True)
    signer_subject    = Column(String, nullable=True)
    signer = composite(SignerSnapshot, signer_name, signer_role, signer_department, signer_subject)

    signature_hash  = Column(String(64), nullable=False, unique=True)
    signature_image = Column(Text, nullable=True)
    signed_at       = Column(DateTime, default=datetime.utcnow, nullable=False)

    document = relationship("Document", back_populates="signatures")

    @property
    def short_hash(self) -> str:
        return f"{self.signature_hash[:16]}..."
