# src/modules/documents/controllers/signature_controller.py
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from database import get_db
from modules.auth.controllers.auth_controller import get_current_user
from modules.documents.models.user import User
from modules.documents.schemas.document_schemas import SignatureListResponse
from modules.documents.services.document_service import DocumentService
from modules.documents.services.signature_service import SignatureService

router = APIRouter(
    prefix="/documents",
    tags=["documents"]
)

@router.get("/{document_id}/signatures", response_model=SignatureListResponse)
def list_signatures(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Signatures of a document, one per approved level, in level order.
    """
    doc = DocumentService.get_document(db, document_id)
    if not doc or not DocumentService.can_view(db, current_user, doc):
        raise HTTPException(404, "Document not found")
    return SignatureListResponse(signatures=SignatureService(db).list_for_document(document_id))
