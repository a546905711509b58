import pytest

from conftest import RecordingEmailService, make_document
from modules.notifications.models.notification import MAX_NOTIFICATION_TITLE_LENGTH, Notification, NotificationType
from modules.notifications.repositories.notification_repository import NotificationRepository
from modules.notifications.services.notification_service import (
    DecisionNotification, NotificationService, clip_title,
)


def test_notify_stores_row_and_queues_email(session, users, notifier, mailer):
    notif = notifier.notify(users["teacher"].id, None, "Hello", "World", "success")
    session.commit()

    assert notif.type == NotificationType.SUCCESS
    assert not notif.is_read
    assert mailer.sent == []
    [email] = notifier.pending_emails
    assert email.to == "ana@school.edu"
    assert email.subject == "Hello"
    assert "World" in email.html

    assert notifier.dispatch_pending() == 1
    assert [e.to for e in mailer.sent] == ["ana@school.edu"]
    assert notifier.pending_emails == []


def test_unknown_kind_falls_back_to_info(session, users, notifier):
    notif = notifier.notify(users["teacher"].id, None, "Hi", "There", "celebration")

    assert notif.type == NotificationType.INFO


def test_users_without_email_get_in_system_notification_only(session, users, notifier):
    users["teacher"].email = None
    session.commit()

    notifier.notify(users["teacher"].id, None, "Hi", "There")
    session.commit()

    assert notifier.pending_emails == []
    assert session.query(Notification).count() == 1


def test_email_links_to_document(session, users, notifier):
    document, _ = make_document(session, users["teacher"], [users["head"]])

    notifier.notify(users["teacher"].id, document.id, "Title", "Body")

    [email] = notifier.pending_emails
    assert email.text.endswith(f"/documents/{document.id}")


def test_discarded_emails_are_never_sent(session, users, notifier, mailer):
    notifier.notify(users["teacher"].id, None, "Hi", "There")
    session.rollback()
    notifier.discard_pending()

    assert notifier.dispatch_pending() == 0
    assert mailer.sent == []
    assert session.query(Notification).count() == 0


def test_delivery_failures_are_dropped(session, users):
    notifier = NotificationService(NotificationRepository(session), email_service=RecordingEmailService(fail=True))
    notifier.notify(users["teacher"].id, None, "Hi", "There")
    notifier.notify(users["head"].id, None, "Hi", "There")

    assert notifier.dispatch_pending() == 0
    assert notifier.pending_emails == []


def test_failed_insert_leaves_outer_transaction_usable(session, users, notifier):
    document, _ = make_document(session, users["teacher"], [users["head"]])
    document.title = "Renamed"

    # user_id is NOT NULL; the savepoint absorbs the failure
    result = notifier.notify(None, document.id, "Broken", "Row", deliver_external=False)
    session.commit()

    assert result is None
    session.refresh(document)
    assert document.title == "Renamed"
    assert session.query(Notification).count() == 0


@pytest.mark.parametrize("outcome, kind, message", [
    ("approved", NotificationType.SUCCESS, 'Jose Reyes approved your document - "Nice".'),
    ("rejected", NotificationType.ERROR, "Jose Reyes rejected your document. Reason: Nice"),
    ("revision_requested", NotificationType.WARNING, "Jose Reyes requested revisions: Nice"),
    ("forwarded", NotificationType.INFO, "Nice"),
])
def test_decision_templates(session, users, outcome, kind, message):
    document, _ = make_document(session, users["teacher"], [users["head"]])

    template = DecisionNotification(document, "Jose Reyes", outcome, "Nice")

    assert template.kind == kind
    assert template.message == message


def test_approved_template_without_comment(session, users):
    document, _ = make_document(session, users["teacher"], [users["head"]])

    assert DecisionNotification(document, "Jose Reyes", "approved").message == "Jose Reyes approved your document."


def test_new_submission_notifies_approver(session, users, notifier):
    document, _ = make_document(session, users["teacher"], [users["head"]])

    notifier.notify_new_submission(document, users["head"], users["teacher"])
    session.commit()

    [notif] = notifier.get_notifications(users["head"].id)
    assert notif.title == "New Document Submitted: Lesson Plan Q1"
    assert "Ana Cruz submitted" in notif.message
    assert "for Science" in notif.message


def test_read_state_management(session, users, notifier):
    user_id = users["teacher"].id
    first = notifier.notify(user_id, None, "One", "1")
    notifier.notify(user_id, None, "Two", "2")
    notifier.notify(user_id, None, "Three", "3")
    session.commit()

    assert notifier.unread_count(user_id) == 3
    assert notifier.mark_as_read(first.id, users["head"].id) is None

    read = notifier.mark_as_read(first.id, user_id)
    assert read.is_read and read.read_at is not None
    assert notifier.unread_count(user_id) == 2

    assert notifier.clear_read(user_id) == 1
    assert len(notifier.get_notifications(user_id)) == 2

    assert notifier.mark_all_as_read(user_id) == 2
    assert notifier.unread_count(user_id) == 0


def test_over_long_titles_are_clipped(session, users, notifier):
    notif = notifier.notify(users["teacher"].id, None, "Q" * 300, "Body")
    session.commit()

    assert len(notif.title) == MAX_NOTIFICATION_TITLE_LENGTH
    assert notif.title.endswith("...")
    assert clip_title("Short title") == "Short title"


def test_long_messages_are_stored_whole(session, users, notifier):
    message = "m" * 5000

    notif = notifier.notify(users["teacher"].id, None, "Long", message)
    session.commit()

    session.refresh(notif)
    assert notif.message == message
