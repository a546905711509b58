from typing import List
from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from modules.approvals.exceptions import ValidationError
from modules.auth.controllers.auth_controller import get_current_user
from modules.auth.dependencies import require_permission
from modules.documents.models.user import User
from modules.documents.schemas.document_schemas import SubmitDocumentRequest, DocumentResponse
from modules.documents.services.document_service import DocumentService

router = APIRouter(
    prefix="/documents",
    tags=["documents"]
)

@router.post("/submit", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def submit_document(
    payload: SubmitDocumentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("submit")),
):
    try:
        return DocumentService.submit_document(
            db, current_user.id, payload.title, payload.document_type, payload.priority
        )
    except ValidationError as e:
        raise HTTPException(400, {"error": e.kind, "message": str(e)})

@router.get("", response_model=List[DocumentResponse])
def list_documents(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return DocumentService.list_documents_for_user(db, current_user)

@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(document_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    doc = DocumentService.get_document(db, document_id)
    if not doc or not DocumentService.can_view(db, current_user, doc):
        raise HTTPException(404, "Document not found")
    return doc
