from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modules.documents.models.approval import ApprovalStatus
from modules.documents.models.document import DocumentPriority, DocumentStatus


class ApproveRequest(BaseModel):
    comments: Optional[str] = None
    signature_image: Optional[str] = None


class DecisionRequest(BaseModel):
    comments: Optional[str] = None


class SignatureReceiptResponse(BaseModel):
    hash: str
    signed_at: datetime
    signer: str
    has_image: bool

    model_config = {"from_attributes": True}


class ApproveResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    is_final_approval: bool = Field(serialization_alias="isFinalApproval")
    next_approver: Optional[str] = Field(default=None, serialization_alias="nextApprover")
    signature: SignatureReceiptResponse


class DecisionResponse(BaseModel):
    success: bool = True
    message: str


class PendingApprovalResponse(BaseModel):
    approval_id: int
    document_id: int
    approval_level: int
    status: ApprovalStatus
    created_at: datetime
    title: str
    document_type: str
    priority: DocumentPriority
    department: Optional[str] = None
    document_status: DocumentStatus
    submitter_name: str
    submitter_email: Optional[str] = None
    days_pending: int


class PendingApprovalsResponse(BaseModel):
    success: bool = True
    approvals: List[PendingApprovalResponse]
    count: int


class ApprovalHistoryEntry(BaseModel):
    approval_id: int
    approval_level: int
    status: ApprovalStatus
    comments: Optional[str] = None
    decision_date: Optional[datetime] = None
    created_at: datetime
    approver_name: str
    approver_department: Optional[str] = None
    approver_role: str
    signature_hash: Optional[str] = None
    has_signature_image: bool = False
    signed_at: Optional[datetime] = None


class ApprovalHistoryResponse(BaseModel):
    success: bool = True
    history: List[ApprovalHistoryEntry]
