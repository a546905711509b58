from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional

from modules.documents.models.document import DocumentPriority, DocumentStatus

class SubmitDocumentRequest(BaseModel):
    title: str
    document_type: str
    priority: DocumentPriority = DocumentPriority.MEDIUM

class DocumentResponse(BaseModel):
    id: int
    title: str
    document_type: str
    department: Optional[str] = None
    priority: DocumentPriority
    status: DocumentStatus
    remarks: Optional[str] = None
    uploader_id: int
    current_approver_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

class SignatureResponse(BaseModel):
    id: int
    document_id: int
    signer_id: int
    signer_name: str
    signer_role: str
    signer_department: Optional[str] = None
    signer_subject: Optional[str] = None
    approval_level: int
    signature_hash: str
    signature_image: Optional[str] = None
    signed_at: datetime

    model_config = {"from_attributes": True}

class SignatureListResponse(BaseModel):
    success: bool = True
    signatures: List[SignatureResponse]
