import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum as PyEnum
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from modules.approvals.exceptions import (
    AlreadyDecided,
    ApprovalNotFound,
    PersistenceFailure,
    ValidationError,
    WorkflowError,
)
from modules.approvals.repositories.approval_repository import ApprovalRepository
from modules.audit.models.audit_log import AuditAction
from modules.audit.services.audit_service import AuditService
from modules.documents.models.approval import MAX_COMMENT_LENGTH, ApprovalStatus, ApprovalStep
from modules.documents.models.document import ACTIVE_STATUSES, Document, DocumentStatus
from modules.documents.models.signature import DocumentSignature
from modules.documents.models.user import User
from modules.documents.repositories.user_repository import UserRepository
from modules.documents.services.signature_service import SignatureService, validate_signature_image
from modules.notifications.repositories.notification_repository import NotificationRepository
from modules.notifications.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

DEFAULT_APPROVAL_COMMENT = "Approved"

class Decision(PyEnum):
    APPROVE = "approve"
    REJECT = "reject"
    REVISE = "revise"

STEP_OUTCOME = {
    Decision.APPROVE: ApprovalStatus.APPROVED,
    Decision.REJECT: ApprovalStatus.REJECTED,
    Decision.REVISE: ApprovalStatus.REVISION_REQUESTED,
}

AUDIT_ACTION = {
    Decision.APPROVE: AuditAction.DOCUMENT_APPROVED,
    Decision.REJECT: AuditAction.DOCUMENT_REJECTED,
    Decision.REVISE: AuditAction.REVISION_REQUESTED,
}

@dataclass(frozen=True)
class SignatureReceipt:
    """Redacted view of a signature, safe to hand back to clients."""
    hash: str
    signed_at: datetime
    signer: str
    has_image: bool

    @classmethod
    def from_signature(cls, signature: DocumentSignature) -> "SignatureReceipt":
        return cls(
            hash=signature.short_hash,
            signed_at=signature.signed_at,
            signer=signature.signer.name,
            has_image=bool(signature.signature_image),
        )

@dataclass(frozen=True)
class DecisionResult:
    decision: Decision
    approval_id: int
    document_id: int
    document_status: DocumentStatus
    message: str
    is_final_approval: bool = False
    next_approver: Optional[str] = None
    next_approver_id: Optional[int] = None
    signature: Optional[SignatureReceipt] = None

class ApprovalWorkflowEngine:
    """Applies an approver's decision to the active step of a document's chain.

    Everything that touches workflow state happens in one transaction on
    ``session``: the step update, the document update, the signature and the
    in-system notifications. E-mails and the audit entry only go out once
    that transaction has committed.
    """

    def __init__(
        self,
        session: Session,
        notifier: Optional[NotificationService] = None,
        signatures: Optional[SignatureService] = None,
        audit: Optional[AuditService] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.session = session
        self.approvals = ApprovalRepository(session)
        self.users = UserRepository(session)
        self.notifier = notifier or NotificationService(NotificationRepository(session))
        self.signatures = signatures or SignatureService(session)
        self.audit = audit or AuditService(session)
        self.clock = clock

    def approve(self, approval_id: int, actor_id: int, comments: Optional[str] = None,
                signature_image: Optional[str] = None, **request_info) -> DecisionResult:
        return self.decide(approval_id, actor_id, Decision.APPROVE, comments, signature_image, **request_info)

    def reject(self, approval_id: int, actor_id: int, comments: Optional[str], **request_info) -> DecisionResult:
        return self.decide(approval_id, actor_id, Decision.REJECT, comments, **request_info)

    def request_revision(self, approval_id: int, actor_id: int, comments: Optional[str],
                         **request_info) -> DecisionResult:
        return self.decide(approval_id, actor_id, Decision.REVISE, comments, **request_info)

    def decide(
        self,
        approval_id: int,
        actor_id: int,
        decision,
        comments: Optional[str] = None,
        signature_image: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> DecisionResult:
        decision = Decision(decision)
        comments = self._validate(decision, comments, signature_image)

        try:
            result, audit_details = self._apply(approval_id, actor_id, decision, comments, signature_image)
            self.session.commit()
        except WorkflowError as e:
            self._abort()
            logger.info("Decision %s on approval %s by user %s refused (%s): %s",
                        decision.value, approval_id, actor_id, type(e).__name__, e)
            raise
        except SQLAlchemyError as e:
            self._abort()
            logger.exception("Decision %s on approval %s by user %s rolled back",
                             decision.value, approval_id, actor_id)
            raise PersistenceFailure(f"Failed to {decision.value} approval {approval_id}") from e
        except Exception:
            self._abort()
            raise

        logger.info("Approval %s %s by user %s; document %s is now %s",
                    approval_id, result.decision.value, actor_id, result.document_id, result.document_status.value)

        self.notifier.dispatch_pending()
        self.audit.log_activity(actor_id, AUDIT_ACTION[decision], result.document_id, audit_details,
                                ip_address, user_agent)
        return result

    @staticmethod
    def _validate(decision: Decision, comments: Optional[str], signature_image: Optional[str]) -> Optional[str]:
        if comments is not None:
            comments = comments.strip()
        if decision == Decision.REJECT and not comments:
            raise ValidationError("Comments are required when rejecting a document.")
        if decision == Decision.REVISE and not comments:
            raise ValidationError("Comments are required when requesting revision.")
        if comments and len(comments) > MAX_COMMENT_LENGTH:
            raise ValidationError(f"Comments must be at most {MAX_COMMENT_LENGTH} characters.")
        if decision == Decision.APPROVE:
            validate_signature_image(signature_image)
        return comments or None

    def _abort(self) -> None:
        self.session.rollback()
        self.notifier.discard_pending()

    def _apply(self, approval_id, actor_id, decision, comments, signature_image):
        step = self.approvals.lock_step_for_actor(approval_id, actor_id)
        if step is None:
            raise ApprovalNotFound()
        if step.status != ApprovalStatus.PENDING:
            logger.info("Approval %s is already %s", approval_id, step.status.value)
            raise AlreadyDecided()

        document = self.approvals.lock_document(step.document_id)
        actor = self.users.get(actor_id)
        if document is None or actor is None or not self._is_active_step(step, document):
            raise ApprovalNotFound()

        now = self.clock()
        stored_comments = (comments or DEFAULT_APPROVAL_COMMENT) if decision == Decision.APPROVE else comments
        if not self.approvals.mark_decided(step.id, actor_id, STEP_OUTCOME[decision], stored_comments, now):
            raise AlreadyDecided()

        if decision == Decision.APPROVE:
            return self._approve(step, document, actor, comments, signature_image, now)
        if decision == Decision.REJECT:
            return self._reject(step, document, actor, comments, now)
        return self._request_revision(step, document, actor, comments, now)

    def _is_active_step(self, step: ApprovalStep, document: Document) -> bool:
        # only the lowest pending level of a live document can be decided
        return (
            document.status in ACTIVE_STATUSES
            and document.current_approver_id == step.approver_id
            and not self.approvals.has_pending_below(document.id, step.approval_level)
        )

    def _approve(self, step, document, actor, comments, signature_image, now):
        signature = self.signatures.sign(document.id, actor.id, step.approval_level, signature_image)
        next_step = self.approvals.next_pending_step(document.id, step.approval_level)

        if next_step is None:
            document.status = DocumentStatus.APPROVED
            document.current_approver_id = None
            document.updated_at = now
            self._best_effort(
                self.notifier.notify_decision, document, actor, "approved",
                comments or f"Approved (Level {step.approval_level})", notify_overseer=True,
            )
            result = DecisionResult(
                decision=Decision.APPROVE,
                approval_id=step.id,
                document_id=document.id,
                document_status=document.status,
                message="Document approved and fully signed!",
                is_final_approval=True,
                signature=SignatureReceipt.from_signature(signature),
            )
        else:
            next_approver = self.users.get(next_step.approver_id)
            next_name = next_approver.full_name if next_approver else "Next Approver"
            document.status = DocumentStatus.IN_REVIEW
            document.current_approver_id = next_step.approver_id
            document.updated_at = now
            self._best_effort(
                self.notifier.notify_decision, document, actor, "forwarded",
                f'Your document "{document.title}" has been approved and forwarded to {next_name}.',
                notify_overseer=False,
            )
            if next_approver is not None:
                self._best_effort(
                    self.notifier.notify_next_approver, document, next_approver, actor,
                    is_overseer=next_approver.is_overseer,
                )
            result = DecisionResult(
                decision=Decision.APPROVE,
                approval_id=step.id,
                document_id=document.id,
                document_status=document.status,
                message=f"Document approved and forwarded to {next_name}",
                next_approver=next_name,
                next_approver_id=next_step.approver_id,
                signature=SignatureReceipt.from_signature(signature),
            )

        self.session.flush()
        return result, f"Approved and signed: {document.title} (Level {step.approval_level})"

    def _reject(self, step, document, actor, comments, now):
        document.status = DocumentStatus.REJECTED
        document.remarks = f"Rejected: {comments}"
        document.current_approver_id = None
        document.updated_at = now
        self._best_effort(self.notifier.notify_decision, document, actor, "rejected", comments, notify_overseer=True)
        self.session.flush()
        result = DecisionResult(
            decision=Decision.REJECT,
            approval_id=step.id,
            document_id=document.id,
            document_status=document.status,
            message="Document rejected. The submitter has been notified.",
        )
        return result, f"Rejected: {document.title} - {comments}"

    def _request_revision(self, step, document, actor, comments, now):
        document.status = DocumentStatus.REVISION_REQUESTED
        document.remarks = f"Revision needed: {comments}"
        document.current_approver_id = None
        document.updated_at = now
        self._best_effort(
            self.notifier.notify_decision, document, actor, "revision_requested", comments, notify_overseer=True
        )
        self.session.flush()
        result = DecisionResult(
            decision=Decision.REVISE,
            approval_id=step.id,
            document_id=document.id,
            document_status=document.status,
            message="Revision requested. The submitter has been notified.",
        )
        return result, f"Revision requested: {document.title} - {comments}"

    @staticmethod
    def _best_effort(notify, *args, **kwargs) -> None:
        try:
            notify(*args, **kwargs)
        except Exception:
            logger.exception("Notification step %s failed; decision proceeds", getattr(notify, "__name__", notify))
