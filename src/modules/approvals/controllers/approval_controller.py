from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from modules.approvals.exceptions import WorkflowError
from modules.approvals.repositories.approval_repository import ApprovalRepository
from modules.approvals.schemas.approval_schemas import (
    ApproveRequest, ApproveResponse, DecisionRequest, DecisionResponse,
    PendingApprovalResponse, PendingApprovalsResponse,
    ApprovalHistoryEntry, ApprovalHistoryResponse, SignatureReceiptResponse,
)
from modules.approvals.services.approval_service import ApprovalWorkflowEngine, Decision
from modules.auth.controllers.auth_controller import get_current_user
from modules.auth.dependencies import require_permission
from modules.documents.models.user import User
from modules.documents.services.document_service import DocumentService

router = APIRouter(prefix="/approvals", tags=["approvals"])

def get_workflow_engine(db: Session = Depends(get_db)) -> ApprovalWorkflowEngine:
    return ApprovalWorkflowEngine(db)

def workflow_http_error(error: WorkflowError) -> HTTPException:
    return HTTPException(
        status_code=error.status_code,
        detail={"error": error.kind, "message": error.client_message},
    )

def _request_info(request: Request) -> dict:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }

def _decide(engine, approval_id, user, decision, comments, request, signature_image=None):
    try:
        return engine.decide(approval_id, user.id, decision, comments, signature_image, **_request_info(request))
    except WorkflowError as e:
        raise workflow_http_error(e)

@router.get("/pending", response_model=PendingApprovalsResponse)
def list_pending_approvals(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Steps waiting on the caller, most urgent first"""
    today = datetime.utcnow()
    approvals = [
        PendingApprovalResponse(
            approval_id=step.id,
            document_id=document.id,
            approval_level=step.approval_level,
            status=step.status,
            created_at=step.created_at,
            title=document.title,
            document_type=document.document_type,
            priority=document.priority,
            department=document.department,
            document_status=document.status,
            submitter_name=uploader.full_name,
            submitter_email=uploader.email,
            days_pending=(today - step.created_at).days,
        )
        for step, document, uploader in ApprovalRepository(db).pending_for_approver(current_user.id)
    ]
    return PendingApprovalsResponse(approvals=approvals, count=len(approvals))

@router.post("/{approval_id}/approve", response_model=ApproveResponse)
def approve_document(
    approval_id: int,
    payload: ApproveRequest,
    request: Request,
    engine: ApprovalWorkflowEngine = Depends(get_workflow_engine),
    current_user: User = Depends(require_permission("review")),
):
    """Approves the caller's step, signs it and forwards or finalizes the document"""
    result = _decide(engine, approval_id, current_user, Decision.APPROVE, payload.comments, request,
                     payload.signature_image)
    return ApproveResponse(
        message=result.message,
        is_final_approval=result.is_final_approval,
        next_approver=result.next_approver,
        signature=SignatureReceiptResponse.model_validate(result.signature),
    )

@router.post("/{approval_id}/reject", response_model=DecisionResponse)
def reject_document(
    approval_id: int,
    payload: DecisionRequest,
    request: Request,
    engine: ApprovalWorkflowEngine = Depends(get_workflow_engine),
    current_user: User = Depends(require_permission("review")),
):
    result = _decide(engine, approval_id, current_user, Decision.REJECT, payload.comments, request)
    return DecisionResponse(message=result.message)

@router.post("/{approval_id}/request-revision", response_model=DecisionResponse)
def request_revision(
    approval_id: int,
    payload: DecisionRequest,
    request: Request,
    engine: ApprovalWorkflowEngine = Depends(get_workflow_engine),
    current_user: User = Depends(require_permission("review")),
):
    result = _decide(engine, approval_id, current_user, Decision.REVISE, payload.comments, request)
    return DecisionResponse(message=result.message)

@router.get("/history/{document_id}", response_model=ApprovalHistoryResponse)
def approval_history(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    document = DocumentService.get_document(db, document_id)
    if document is None or not DocumentService.can_view(db, current_user, document):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Document not found")

    history = [
        ApprovalHistoryEntry(
            approval_id=step.id,
            approval_level=step.approval_level,
            status=step.status,
            comments=step.comments,
            decision_date=step.decision_date,
            created_at=step.created_at,
            approver_name=approver.full_name,
            approver_department=approver.department,
            approver_role=approver.role.value,
            signature_hash=signature.short_hash if signature else None,
            has_signature_image=bool(signature and signature.signature_image),
            signed_at=signature.signed_at if signature else None,
        )
        for step, approver, signature in ApprovalRepository(db).history(document_id)
    ]
    return ApprovalHistoryResponse(history=history)
