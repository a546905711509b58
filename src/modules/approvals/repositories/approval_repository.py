from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import and_, case, select, update
from sqlalchemy.orm import Session, aliased

from modules.documents.models.approval import ApprovalStep, ApprovalStatus
from modules.documents.models.document import Document, PRIORITY_RANK
from modules.documents.models.signature import DocumentSignature
from modules.documents.models.user import User

class ApprovalRepository:
    def __init__(self, db_session: Session):
        self.db = db_session

    def lock_step_for_actor(self, approval_id: int, actor_id: int) -> Optional[ApprovalStep]:
        """Load the step owned by ``actor_id`` and hold a row lock until the transaction ends."""
        return self.db.execute(
            select(ApprovalStep)
            .where(ApprovalStep.id == approval_id, ApprovalStep.approver_id == actor_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def lock_document(self, document_id: int) -> Optional[Document]:
        return self.db.execute(
            select(Document)
            .where(Document.id == document_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def mark_decided(
        self,
        approval_id: int,
        actor_id: int,
        status: ApprovalStatus,
        comments: Optional[str],
        decided_at: datetime,
    ) -> bool:
        """Compare-and-set: only a still-pending step owned by the actor is updated."""
        result = self.db.execute(
            update(ApprovalStep)
            .where(
                ApprovalStep.id == approval_id,
                ApprovalStep.approver_id == actor_id,
                ApprovalStep.status == ApprovalStatus.PENDING,
            )
            .values(status=status, comments=comments, decision_date=decided_at)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def next_pending_step(self, document_id: int, after_level: int) -> Optional[ApprovalStep]:
        return (
            self.db
            .query(ApprovalStep)
            .filter(
                ApprovalStep.document_id == document_id,
                ApprovalStep.approval_level > after_level,
                ApprovalStep.status == ApprovalStatus.PENDING,
            )
            .order_by(ApprovalStep.approval_level.asc())
            .first()
        )

    def pending_for_approver(self, approver_id: int) -> List[Tuple[ApprovalStep, Document, User]]:
        uploader = aliased(User)
        priority_rank = case(
            *[(Document.priority == priority, rank) for priority, rank in PRIORITY_RANK.items()],
            else_=len(PRIORITY_RANK) + 1,
        )
        return (
            self.db
            .query(ApprovalStep, Document, uploader)
            .join(Document, ApprovalStep.document_id == Document.id)
            .join(uploader, Document.uploader_id == uploader.id)
            .filter(
                ApprovalStep.approver_id == approver_id,
                ApprovalStep.status == ApprovalStatus.PENDING,
                Document.current_approver_id == approver_id,
            )
            .order_by(priority_rank.asc(), ApprovalStep.created_at.asc(), ApprovalStep.id.asc())
            .all()
        )

    def history(self, document_id: int) -> List[Tuple[ApprovalStep, User, Optional[DocumentSignature]]]:
        return (
            self.db
            .query(ApprovalStep, User, DocumentSignature)
            .join(User, ApprovalStep.approver_id == User.id)
            .outerjoin(
                DocumentSignature,
                and_(
                    DocumentSignature.document_id == ApprovalStep.document_id,
                    DocumentSignature.approval_level == ApprovalStep.approval_level,
                ),
            )
            .filter(ApprovalStep.document_id == document_id)
            .order_by(ApprovalStep.approval_level.asc())
            .all()
        )

    def has_pending_below(self, document_id: int, level: int) -> bool:
        return self.db.query(
            self.db.query(ApprovalStep)
            .filter(
                ApprovalStep.document_id == document_id,
                ApprovalStep.approval_level < level,
                ApprovalStep.status == ApprovalStatus.PENDING,
            )
            .exists()
        ).scalar()
