# modules/notifications/services/notification_service.py
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from config import settings
from modules.approvals.exceptions import NotificationDeliveryFailure
from modules.documents.models.document import Document
from modules.documents.models.user import User
from modules.documents.repositories.user_repository import UserRepository
from modules.notifications.models.notification import MAX_NOTIFICATION_TITLE_LENGTH, Notification, NotificationType
from modules.notifications.repositories.notification_repository import NotificationRepository
from modules.notifications.services.email_service import EmailService, OutgoingEmail

logger = logging.getLogger(__name__)

def clip_title(title: str, limit: int = MAX_NOTIFICATION_TITLE_LENGTH) -> str:
    if len(title) <= limit:
        return title
    return title[:limit - 3].rstrip() + "..."

class NotificationTemplate:
    def __init__(self, title: str, message: str, kind: NotificationType = NotificationType.INFO):
        self.title = title
        self.message = message
        self.kind = kind

class DecisionNotification(NotificationTemplate):
    """What the uploader is told about a decision on their document."""

    def __init__(self, document: Document, actor_name: str, outcome: str, comments: Optional[str] = None):
        if outcome == "approved":
            title = f"Document Approved: {document.title}"
            suffix = f' - "{comments}"' if comments else ""
            message = f"{actor_name} approved your document{suffix}."
            kind = NotificationType.SUCCESS
        elif outcome == "rejected":
            title = f"Document Rejected: {document.title}"
            message = f"{actor_name} rejected your document. Reason: {comments}"
            kind = NotificationType.ERROR
        elif outcome == "revision_requested":
            title = f"Revision Requested: {document.title}"
            message = f"{actor_name} requested revisions: {comments}"
            kind = NotificationType.WARNING
        else:
            title = f"Update on Document: {document.title}"
            message = comments or f"{actor_name} updated your document: {outcome}"
            kind = NotificationType.INFO
        super().__init__(title, message, kind)

class OverseerDecisionNotification(NotificationTemplate):
    def __init__(self, document: Document, actor_name: str, uploader_name: str, outcome: str):
        readable = outcome.replace("_", " ")
        title = f"Document {readable.upper()}: {document.title}"
        message = f'{actor_name} {readable} document "{document.title}" submitted by {uploader_name}.'
        super().__init__(title, message, NotificationType.INFO)

class NextApproverNotification(NotificationTemplate):
    def __init__(self, document: Document, actor_name: str):
        title = "New Document for Review"
        message = f'{actor_name} forwarded the document "{document.title}" to you for approval.'
        super().__init__(title, message, NotificationType.INFO)

class NewSubmissionNotification(NotificationTemplate):
    def __init__(self, document: Document, uploader_name: str):
        title = f"New Document Submitted: {document.title}"
        message = (
            f'{uploader_name} submitted a new document "{document.title}"'
            f" for {document.department or 'your school'}. Please review and take action."
        )
        super().__init__(title, message, NotificationType.INFO)

class NotificationService:
    """In-system notifications plus best-effort e-mail.

    In-system rows are written inside the caller's transaction. E-mails are
    queued and only leave the process when ``dispatch_pending`` is called,
    which the caller does after its transaction has committed.
    """

    def __init__(self, repository: NotificationRepository, email_service: Optional[EmailService] = None):
        self.notification_repository = repository
        self.email_service = email_service or EmailService()
        self.users = UserRepository(repository.db)
        self._outbox: List[OutgoingEmail] = []

    @property
    def pending_emails(self) -> List[OutgoingEmail]:
        return list(self._outbox)

    def notify(
        self,
        user_id: int,
        document_id: Optional[int],
        title: str,
        message: str,
        kind=NotificationType.INFO,
        deliver_external: bool = True,
    ) -> Optional[Notification]:
        title = clip_title(title)
        notif = Notification(
            user_id=user_id,
            document_id=document_id,
            title=title,
            message=message,
            type=NotificationType.coerce(kind),
            is_read=False,
        )
        try:
            self.notification_repository.add(notif)
            logger.info("Notification created for user %s: %s", user_id, title)
        except SQLAlchemyError:
            logger.exception("Could not store notification for user %s", user_id)
            notif = None

        if deliver_external:
            self._queue_email(user_id, document_id, title, message)
        return notif

    def notify_decision(
        self,
        document: Document,
        actor: User,
        outcome: str,
        comments: Optional[str] = None,
        notify_overseer: bool = True,
    ) -> None:
        uploader = document.uploader
        template = DecisionNotification(document, actor.full_name, outcome, comments)
        self.notify(document.uploader_id, document.id, template.title, template.message, template.kind)

        if not notify_overseer:
            return
        overseer = self.users.find_overseer()
        if overseer is None:
            logger.info("No active overseer to notify about document %s", document.id)
            return
        if overseer.id == actor.id:
            return
        copy = OverseerDecisionNotification(
            document, actor.full_name, uploader.full_name if uploader else "User", outcome
        )
        self.notify(overseer.id, document.id, copy.title, copy.message, copy.kind)

    def notify_next_approver(self, document: Document, next_approver: User, actor: User, is_overseer: bool) -> None:
        template = NextApproverNotification(document, actor.full_name)
        self.notify(
            next_approver.id, document.id, template.title, template.message, template.kind,
            deliver_external=is_overseer,
        )

    def notify_new_submission(self, document: Document, approver: User, uploader: User) -> None:
        template = NewSubmissionNotification(document, uploader.full_name)
        self.notify(approver.id, document.id, template.title, template.message, template.kind)

    def dispatch_pending(self) -> int:
        """Send queued e-mails. Failures are logged and dropped."""
        outbox, self._outbox = self._outbox, []
        sent = 0
        for email in outbox:
            try:
                self.email_service.send(email)
                sent += 1
            except NotificationDeliveryFailure as e:
                logger.warning("Email to %s not delivered: %s", email.to, e)
        return sent

    def discard_pending(self) -> None:
        if self._outbox:
            logger.info("Discarding %d queued email(s) after rollback", len(self._outbox))
        self._outbox = []

    def _queue_email(self, user_id: int, document_id: Optional[int], title: str, message: str) -> None:
        try:
            user = self.users.get(user_id)
        except SQLAlchemyError:
            logger.exception("Could not resolve email address of user %s", user_id)
            return
        if not user or not user.email:
            logger.info("User %s has no email configured, skipping email", user_id)
            return

        link = f"{settings.FRONTEND_URL}/documents/{document_id}" if document_id else settings.FRONTEND_URL
        link_html = f'<p><a href="{link}">View document</a></p>' if document_id else ""
        html = (
            f"<p>Hi {user.full_name or ''},</p>"
            f"<p>{message}</p>"
            f"{link_html}"
            f'<hr/><p style="font-size:12px;color:#666">This is an automated notification from {settings.APP_NAME}</p>'
        )
        self._outbox.append(OutgoingEmail(
            to=user.email,
            subject=title,
            html=html,
            text=f"{message}\n\nView: {link}",
        ))

    def get_notifications(self, user_id: int) -> List[Notification]:
        return self.notification_repository.find_by_user_id(user_id)

    def unread_count(self, user_id: int) -> int:
        return self.notification_repository.count_unread(user_id)

    def mark_as_read(self, notification_id: int, user_id: int) -> Optional[Notification]:
        return self.notification_repository.mark_read(notification_id, user_id)

    def mark_all_as_read(self, user_id: int) -> int:
        return self.notification_repository.mark_all_read(user_id)

    def clear_read(self, user_id: int) -> int:
        return self.notification_repository.delete_read(user_id)
