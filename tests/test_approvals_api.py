import pytest

from conftest import TestingSessionLocal, auth_headers, make_document
from modules.audit.models.audit_log import AuditAction
from modules.documents.models import ApprovalStep, ApprovalStatus, Document, DocumentPriority, DocumentStatus

PNG = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="


@pytest.fixture
def headers(session, users):
    result = {name: auth_headers(user) for name, user in users.items()}
    session.commit()
    return result


@pytest.fixture
def chain(session, users):
    """A teacher's document waiting on the head teacher, then the principal."""
    document, steps = make_document(session, users["teacher"], [users["head"], users["principal"]])
    ids = {"document": document.id, "first": steps[0].id, "second": steps[1].id}
    session.commit()
    return ids


def test_pending_lists_most_urgent_first(client, session, users, headers):
    make_document(session, users["teacher"], [users["head"], users["principal"]],
                  title="Field Trip", priority=DocumentPriority.LOW)
    make_document(session, users["teacher"], [users["head"], users["principal"]],
                  title="Exam Schedule", priority=DocumentPriority.URGENT)
    session.commit()

    response = client.get("/approvals/pending", headers=headers["head"])

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert [a["title"] for a in body["approvals"]] == ["Exam Schedule", "Field Trip"]
    assert body["approvals"][0]["submitter_name"] == "Ana Cruz"
    assert body["approvals"][0]["days_pending"] == 0

    response = client.get("/approvals/pending", headers=headers["principal"])
    assert response.json()["count"] == 0


def test_approve_forwards_and_returns_receipt(client, headers, chain):
    response = client.post(
        f"/approvals/{chain['first']}/approve",
        json={"comments": "Good work", "signature_image": PNG},
        headers=headers["head"],
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["isFinalApproval"] is False
    assert body["nextApprover"] == "Maria Santos"
    assert body["message"] == "Document approved and forwarded to Maria Santos"
    assert body["signature"]["hash"].endswith("...")
    assert len(body["signature"]["hash"]) == 19
    assert body["signature"]["has_image"] is True

    pending = client.get("/approvals/pending", headers=headers["principal"]).json()
    assert [a["approval_id"] for a in pending["approvals"]] == [chain["second"]]

    body = client.post(f"/approvals/{chain['second']}/approve", json={}, headers=headers["principal"]).json()
    assert body["isFinalApproval"] is True
    assert body["nextApprover"] is None
    assert body["message"] == "Document approved and fully signed!"

    with TestingSessionLocal() as db:
        assert db.get(Document, chain["document"]).status == DocumentStatus.APPROVED


def test_reject_requires_comments(client, headers, chain):
    response = client.post(f"/approvals/{chain['first']}/reject", json={"comments": "  "}, headers=headers["head"])

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "validation_error"


def test_reject_and_revise(client, session, users, headers, chain):
    response = client.post(f"/approvals/{chain['first']}/reject", json={"comments": "Missing rubric"},
                           headers=headers["head"])
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Document rejected. The submitter has been notified."}

    _, steps = make_document(session, users["teacher"], [users["head"]], title="Quiz")
    step_id = steps[0].id
    session.commit()

    response = client.post(f"/approvals/{step_id}/request-revision", json={"comments": "Add answer key"},
                           headers=headers["head"])
    assert response.status_code == 200

    with TestingSessionLocal() as db:
        assert db.get(ApprovalStep, step_id).status == ApprovalStatus.REVISION_REQUESTED


def test_foreign_and_decided_steps_look_the_same(client, headers, chain):
    foreign = client.post(f"/approvals/{chain['first']}/approve", json={}, headers=headers["principal"])
    client.post(f"/approvals/{chain['first']}/approve", json={}, headers=headers["head"])
    repeated = client.post(f"/approvals/{chain['first']}/approve", json={}, headers=headers["head"])
    missing = client.post("/approvals/4242/approve", json={}, headers=headers["head"])

    for response in (foreign, repeated, missing):
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "approval_not_found"
        assert response.json()["detail"]["message"] == "Approval not found or unauthorized."


def test_invalid_signature_image(client, headers, chain):
    response = client.post(f"/approvals/{chain['first']}/approve", json={"signature_image": "scribble"},
                           headers=headers["head"])

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_signature_format"


@pytest.mark.parametrize("role", ["teacher", "admin"])
def test_roles_without_review_permission(client, headers, chain, role):
    response = client.post(f"/approvals/{chain['first']}/approve", json={}, headers=headers[role])

    assert response.status_code == 403


def test_invalid_token_is_refused(client, chain):
    response = client.get("/approvals/pending", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


def test_history_shows_redacted_signatures(client, headers, chain):
    client.post(f"/approvals/{chain['first']}/approve", json={"signature_image": PNG}, headers=headers["head"])

    response = client.get(f"/approvals/history/{chain['document']}", headers=headers["teacher"])

    assert response.status_code == 200
    first, second = response.json()["history"]
    assert first["approval_level"] == 1
    assert first["status"] == "approved"
    assert first["approver_name"] == "Jose Reyes"
    assert first["signature_hash"].endswith("...")
    assert first["has_signature_image"] is True
    assert second["status"] == "pending"
    assert second["signature_hash"] is None

    assert client.get(f"/approvals/history/{chain['document']}", headers=headers["math_head"]).status_code == 404


def test_signatures_endpoint(client, headers, chain):
    client.post(f"/approvals/{chain['first']}/approve", json={}, headers=headers["head"])

    response = client.get(f"/documents/{chain['document']}/signatures", headers=headers["principal"])

    assert response.status_code == 200
    [signature] = response.json()["signatures"]
    assert signature["signer_name"] == "Jose Reyes"
    assert signature["signer_department"] == "Science"
    assert len(signature["signature_hash"]) == 64


def test_submit_then_notifications(client, headers):
    response = client.post("/documents/submit", json={"title": "Unit Plan", "document_type": "Plan",
                                                      "priority": "high"}, headers=headers["teacher"])

    assert response.status_code == 201
    assert response.json()["status"] == "pending"

    body = client.get("/notifications", headers=headers["head"]).json()
    assert body["unread_count"] == 1
    [notification] = body["notifications"]
    assert notification["title"] == "New Document Submitted: Unit Plan"

    read = client.post(f"/notifications/{notification['id']}/read", headers=headers["head"])
    assert read.json()["is_read"] is True
    assert client.get("/notifications/unread-count", headers=headers["head"]).json() == {"count": 0}
    assert client.post(f"/notifications/{notification['id']}/read", headers=headers["teacher"]).status_code == 404
    assert client.post("/notifications/clear-read", headers=headers["head"]).json()["count"] == 1


def test_admin_cannot_submit(client, headers):
    response = client.post("/documents/submit", json={"title": "X", "document_type": "Memo"}, headers=headers["admin"])

    assert response.status_code == 403


def test_audit_logs_are_admin_only(client, headers, chain):
    client.post(f"/approvals/{chain['first']}/approve", json={}, headers=headers["head"])

    response = client.get("/audit-logs", params={"action": AuditAction.DOCUMENT_APPROVED.value},
                          headers=headers["admin"])

    assert response.status_code == 200
    [entry] = response.json()
    assert entry["document_id"] == chain["document"]
    assert client.get("/audit-logs", headers=headers["principal"]).status_code == 403


def test_document_listing_respects_visibility(client, headers, chain):
    own = client.get("/documents", headers=headers["teacher"]).json()

    assert [d["id"] for d in own] == [chain["document"]]
    assert client.get("/documents", headers=headers["math_head"]).json() == []
    assert client.get(f"/documents/{chain['document']}", headers=headers["head"]).status_code == 200
    assert client.get(f"/documents/{chain['document']}", headers=headers["math_head"]).status_code == 404


@pytest.mark.parametrize("action", ["approve", "reject", "request-revision"])
def test_over_long_comments_are_a_client_error(client, headers, chain, action):
    response = client.post(f"/approvals/{chain['first']}/{action}", json={"comments": "x" * 5000},
                           headers=headers["head"])

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "validation_error"
    with TestingSessionLocal() as db:
        assert db.get(ApprovalStep, chain["first"]).status == ApprovalStatus.PENDING


def test_over_long_title_is_a_client_error(client, headers):
    response = client.post("/documents/submit", json={"title": "T" * 500, "document_type": "Memo"},
                           headers=headers["teacher"])

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "validation_error"
