import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from modules.approvals.exceptions import ValidationError
from modules.audit.models.audit_log import AuditAction
from modules.audit.services.audit_service import AuditService
from modules.documents.models.approval import ApprovalStep, ApprovalStatus
from modules.documents.models.document import MAX_TITLE_LENGTH, Document, DocumentStatus, DocumentPriority
from modules.documents.models.user import User, UserRole
from modules.documents.repositories.user_repository import UserRepository
from modules.notifications.repositories.notification_repository import NotificationRepository
from modules.notifications.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

class DocumentService:

    @staticmethod
    def build_approval_chain(session: Session, uploader: User) -> List[User]:
        """
        Approvers in level order: the department's head teacher, then the principal.
        The uploader never approves their own document and nobody appears twice.
        """
        users = UserRepository(session)
        chain: List[User] = []
        for candidate in (users.find_head_teacher(uploader.department), users.find_overseer()):
            if candidate is None or candidate.id == uploader.id:
                continue
            if any(existing.id == candidate.id for existing in chain):
                continue
            chain.append(candidate)
        return chain

    @staticmethod
    def submit_document(
        session: Session,
        uploader_id: int,
        title: str,
        document_type: str,
        priority: DocumentPriority = DocumentPriority.MEDIUM,
        notifier: Optional[NotificationService] = None,
    ) -> Document:
        """
        Creates the document together with its ordered chain of pending steps
        and hands it to the first approver.
        """
        if not title or not title.strip():
            raise ValidationError("Title is required.")
        if len(title.strip()) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters.")
        if not document_type or not document_type.strip():
            raise ValidationError("Document type is required.")

        uploader = session.get(User, uploader_id)
        if uploader is None:
            raise ValidationError("Uploader does not exist.")

        chain = DocumentService.build_approval_chain(session, uploader)
        if not chain:
            raise ValidationError("No approvers are configured for this department.")

        now = datetime.utcnow()
        document = Document(
            title=title.strip(),
            document_type=document_type.strip(),
            department=uploader.department,
            priority=priority,
            status=DocumentStatus.PENDING,
            uploader_id=uploader.id,
            current_approver_id=chain[0].id,
            created_at=now,
            updated_at=now,
        )
        session.add(document)
        session.flush()

        for level, approver in enumerate(chain, start=1):
            session.add(ApprovalStep(
                document_id=document.id,
                approval_level=level,
                approver_id=approver.id,
                status=ApprovalStatus.PENDING,
                created_at=now,
            ))
        session.commit()
        logger.info("Document %s submitted by user %s with %d approval level(s)",
                    document.id, uploader.id, len(chain))

        # The document exists now; telling the first approver is best-effort
        notifier = notifier or NotificationService(NotificationRepository(session))
        try:
            notifier.notify_new_submission(document, chain[0], uploader)
            session.commit()
        except Exception:
            session.rollback()
            notifier.discard_pending()
            logger.exception("Could not notify first approver of document %s", document.id)
        else:
            notifier.dispatch_pending()

        AuditService(session).log_activity(
            uploader.id, AuditAction.DOCUMENT_UPLOADED, document.id, f"Uploaded document: {document.title}"
        )
        return document

    @staticmethod
    def get_document(session: Session, document_id: int) -> Optional[Document]:
        return session.get(Document, document_id)

    @staticmethod
    def list_documents_for_user(session: Session, user: User) -> List[Document]:
        """
        Principal and admin see everything, everybody else sees their own uploads.
        """
        query = session.query(Document)
        if user.role not in (UserRole.PRINCIPAL, UserRole.ADMIN):
            query = query.filter(Document.uploader_id == user.id)
        return query.order_by(Document.created_at.desc(), Document.id.desc()).all()

    @staticmethod
    def can_view(session: Session, user: User, document: Document) -> bool:
        if user.role in (UserRole.PRINCIPAL, UserRole.ADMIN):
            return True
        if document.uploader_id == user.id:
            return True
        return (
            session.query(ApprovalStep)
            .filter(ApprovalStep.document_id == document.id, ApprovalStep.approver_id == user.id)
            .first()
            is not None
        )
