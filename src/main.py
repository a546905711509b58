import logging
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from config import settings
from create_tables import create_tables
from database import SessionLocal
from logging_config import configure_logging

from modules.auth.job import start_code_sweep_job
from modules.documents.models import User, UserRole
from modules.auth.services.auth_service import AuthService
from modules.auth.controllers.auth_controller import router as auth_router
from modules.approvals.controllers.approval_controller import router as approval_router
from modules.audit.controllers.audit_controller import router as audit_router
from modules.notifications.controllers.notification_controller import router as notification_router
from modules.documents.controllers.document_controller import router as document_router
from modules.documents.controllers.signature_controller import router as signature_router

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting %s %s", settings.APP_NAME, settings.APP_VERSION)
    create_tables()
    scheduler = start_code_sweep_job()
    logger.info("Verification code sweep job started")
    if settings.SEED_DEMO_DATA:
        _seed_demo_users()
    yield
    scheduler.shutdown(wait=False)
    logger.info("Application stopped")

def _seed_demo_users():
    """Creates one user per role on an empty database."""
    with SessionLocal() as session:
        if session.query(User).count() > 0:
            return

        demo = [
            ("School Admin", "admin@school.edu", "admin123", UserRole.ADMIN, None, None),
            ("Maria Santos", "principal@school.edu", "principal123", UserRole.PRINCIPAL, None, None),
            ("Jose Reyes", "head.science@school.edu", "head123", UserRole.HEAD_TEACHER, "Science", "Physics"),
            ("Ana Cruz", "teacher.science@school.edu", "teacher123", UserRole.TEACHER, "Science", "Biology"),
        ]
        session.add_all([
            User(
                full_name=name,
                email=email,
                password_hash=AuthService.get_password_hash(password),
                role=role,
                department=department,
                subject=subject,
                is_active=True,
            )
            for name, email, password, role, department, subject in demo
        ])
        session.commit()
        logger.info("Demo users created: %s", ", ".join(email for _, email, *_ in demo))

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Document approval workflow with digital signatures",
    version=settings.APP_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    max_age=86400,
)
# Routers
app.include_router(auth_router)
app.include_router(approval_router)
app.include_router(audit_router)
app.include_router(notification_router, prefix="/notifications", tags=["notifications"])
app.include_router(document_router)
app.include_router(signature_router)

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
