import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_DEMO_DATA", "false")

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import create_tables  # noqa: F401  registers every model
from database import Base, build_engine, get_db
from main import app
from modules.approvals.services.approval_service import ApprovalWorkflowEngine
from modules.auth.services.auth_service import AuthService
from modules.documents.models import (
    ApprovalStatus, ApprovalStep, Document, DocumentPriority, DocumentStatus, User, UserRole,
)
from modules.notifications.repositories.notification_repository import NotificationRepository
from modules.notifications.services.notification_service import NotificationService

engine = build_engine("sqlite://", poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingEmailService:
    """Stands in for SMTP; remembers what would have been sent."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    def send(self, email):
        from modules.approvals.exceptions import NotificationDeliveryFailure
        if self.fail:
            raise NotificationDeliveryFailure("smtp down")
        self.sent.append(email)


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session():
    db = TestingSessionLocal()
    yield db
    db.close()


def create_dummy_user(session, full_name, role, department=None, email=None, subject=None):
    user = User(
        full_name=full_name,
        email=email,
        password_hash="not-a-real-hash",
        role=role,
        department=department,
        subject=subject,
        is_active=True,
        created_at=datetime.utcnow(),
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def users(session):
    return {
        "principal": create_dummy_user(session, "Maria Santos", UserRole.PRINCIPAL, email="principal@school.edu"),
        "head": create_dummy_user(session, "Jose Reyes", UserRole.HEAD_TEACHER, "Science",
                                  "head.science@school.edu", "Physics"),
        "math_head": create_dummy_user(session, "Luz Garcia", UserRole.HEAD_TEACHER, "Math", "head.math@school.edu"),
        "teacher": create_dummy_user(session, "Ana Cruz", UserRole.TEACHER, "Science", "ana@school.edu", "Biology"),
        "admin": create_dummy_user(session, "School Admin", UserRole.ADMIN, email="admin@school.edu"),
    }


def make_document(session, uploader, approvers, levels=None, title="Lesson Plan Q1",
                  priority=DocumentPriority.MEDIUM):
    """A document with its chain of pending steps, as submission leaves it."""
    levels = levels or list(range(1, len(approvers) + 1))
    document = Document(
        title=title,
        document_type="Lesson Plan",
        department=uploader.department,
        priority=priority,
        status=DocumentStatus.PENDING,
        uploader_id=uploader.id,
        current_approver_id=approvers[0].id,
    )
    session.add(document)
    session.flush()
    steps = []
    for level, approver in zip(levels, approvers):
        step = ApprovalStep(document_id=document.id, approval_level=level,
                            approver_id=approver.id, status=ApprovalStatus.PENDING)
        session.add(step)
        steps.append(step)
    session.commit()
    return document, steps


@pytest.fixture
def mailer():
    return RecordingEmailService()


@pytest.fixture
def notifier(session, mailer):
    return NotificationService(NotificationRepository(session), email_service=mailer)


@pytest.fixture
def workflow(session, notifier):
    return ApprovalWorkflowEngine(session, notifier=notifier)


@pytest.fixture
def client():
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user):
    return {"Authorization": f"Bearer {AuthService.create_token_for(user)}"}
