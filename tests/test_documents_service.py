import pytest

from conftest import create_dummy_user
from modules.approvals.exceptions import ValidationError
from modules.audit.models.audit_log import AuditAction, AuditLog
from modules.documents.models import ApprovalStatus, DocumentPriority, DocumentStatus, UserRole
from modules.documents.models.document import MAX_TITLE_LENGTH
from modules.documents.services.document_service import DocumentService
from modules.notifications.models.notification import Notification


def test_submit_builds_head_teacher_then_principal_chain(session, users, notifier, mailer):
    document = DocumentService.submit_document(
        session, users["teacher"].id, "  Lesson Plan Q1 ", "Lesson Plan", DocumentPriority.HIGH, notifier=notifier
    )

    assert document.title == "Lesson Plan Q1"
    assert document.status == DocumentStatus.PENDING
    assert document.department == "Science"
    assert document.priority == DocumentPriority.HIGH
    assert document.current_approver_id == users["head"].id
    assert [(s.approval_level, s.approver_id, s.status) for s in document.approvals] == [
        (1, users["head"].id, ApprovalStatus.PENDING),
        (2, users["principal"].id, ApprovalStatus.PENDING),
    ]

    [notif] = session.query(Notification).all()
    assert notif.user_id == users["head"].id
    assert notif.document_id == document.id
    assert [email.to for email in mailer.sent] == ["head.science@school.edu"]

    [log] = session.query(AuditLog).all()
    assert log.action == AuditAction.DOCUMENT_UPLOADED
    assert log.details == "Uploaded document: Lesson Plan Q1"


def test_head_teacher_skips_own_level(session, users, notifier):
    document = DocumentService.submit_document(session, users["head"].id, "Budget", "Memo", notifier=notifier)

    assert [s.approver_id for s in document.approvals] == [users["principal"].id]
    assert document.current_approver_id == users["principal"].id


def test_department_without_head_goes_to_principal(session, users, notifier):
    artist = create_dummy_user(session, "Leo Diaz", UserRole.TEACHER, "Arts", "leo@school.edu")

    document = DocumentService.submit_document(session, artist.id, "Mural", "Proposal", notifier=notifier)

    assert [s.approver_id for s in document.approvals] == [users["principal"].id]


def test_submission_without_approvers_is_refused(session, users, notifier):
    with pytest.raises(ValidationError):
        DocumentService.submit_document(session, users["principal"].id, "Vision", "Memo", notifier=notifier)


@pytest.mark.parametrize("title, document_type", [("", "Memo"), ("   ", "Memo"), ("Plan", "")])
def test_submission_requires_title_and_type(session, users, title, document_type):
    with pytest.raises(ValidationError):
        DocumentService.submit_document(session, users["teacher"].id, title, document_type)


def test_notification_failure_keeps_submitted_document(session, users, notifier, monkeypatch):
    def crash(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(notifier, "notify_new_submission", crash)

    document = DocumentService.submit_document(session, users["teacher"].id, "Plan", "Memo", notifier=notifier)

    assert DocumentService.get_document(session, document.id) is not None
    assert len(document.approvals) == 2


def test_visibility(session, users, notifier):
    document = DocumentService.submit_document(session, users["teacher"].id, "Plan", "Memo", notifier=notifier)

    assert DocumentService.can_view(session, users["teacher"], document)
    assert DocumentService.can_view(session, users["head"], document)
    assert DocumentService.can_view(session, users["principal"], document)
    assert DocumentService.can_view(session, users["admin"], document)
    assert not DocumentService.can_view(session, users["math_head"], document)

    assert DocumentService.list_documents_for_user(session, users["math_head"]) == []
    assert [d.id for d in DocumentService.list_documents_for_user(session, users["principal"])] == [document.id]


def test_submission_refuses_over_long_titles(session, users, notifier):
    with pytest.raises(ValidationError):
        DocumentService.submit_document(
            session, users["teacher"].id, "T" * (MAX_TITLE_LENGTH + 1), "Memo", notifier=notifier
        )

    document = DocumentService.submit_document(
        session, users["teacher"].id, "T" * MAX_TITLE_LENGTH, "Memo", notifier=notifier
    )
    assert len(document.title) == MAX_TITLE_LENGTH
