import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from modules.audit.models.audit_log import AuditAction
from modules.audit.services.audit_service import AuditService
from modules.auth.services.auth_service import AuthService
from modules.auth.services.verification_codes import verification_codes
from modules.auth.schemas.auth_schemas import (
    LoginRequest, TokenResponse, UserCreate, UserResponse,
    PasswordResetRequest, PasswordResetConfirm
)
from modules.approvals.exceptions import NotificationDeliveryFailure
from modules.documents.models.user import User, UserRole
from modules.documents.repositories.user_repository import UserRepository
from modules.notifications.services.email_service import EmailService, OutgoingEmail

router = APIRouter(prefix="/auth", tags=["authentication"])
security = HTTPBearer()
logger = logging.getLogger(__name__)

RESET_REQUEST_MESSAGE = "If the email is registered, a verification code has been sent."

def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security), db: Session = Depends(get_db)):
    """Dependency resolving the authenticated user"""
    user = AuthService.get_current_user(db, credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

def verify_admin(current_user: User = Depends(get_current_user)):
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can perform this action"
        )
    return current_user

@router.post("/login", response_model=TokenResponse)
def login(login_data: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = AuthService.authenticate_user(db, login_data.email, login_data.password)
    audit = AuditService(db)
    if not user:
        audit.log_activity(None, AuditAction.LOGIN_FAILED, details=f"Failed login for {login_data.email}",
                           ip_address=request.client.host if request.client else None)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    audit.log_activity(user.id, AuditAction.LOGIN_SUCCESS, details="Login",
                       ip_address=request.client.host if request.client else None)

    return TokenResponse(
        access_token=AuthService.create_token_for(user),
        token_type="bearer",
        user_id=user.id,
        user_name=user.full_name,
        user_role=user.role.value
    )

@router.post("/register", response_model=UserResponse)
def register_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_admin)
):
    """User registration (administrators only)"""
    if UserRepository(db).get_by_email(user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is already registered"
        )

    new_user = User(
        full_name=user_data.full_name,
        email=user_data.email,
        password_hash=AuthService.get_password_hash(user_data.password),
        role=user_data.role,
        department=user_data.department,
        subject=user_data.subject,
        is_active=True
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    AuditService(db).log_activity(current_user.id, AuditAction.USER_CREATED,
                                  details=f"Created user {new_user.email} ({new_user.role.value})")
    return new_user

@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    return current_user

@router.post("/password-reset/request")
def request_password_reset(payload: PasswordResetRequest, db: Session = Depends(get_db)):
    """Sends a short-lived code; the answer never reveals whether the email exists"""
    user = UserRepository(db).get_by_email(payload.email)
    if user is None or not user.is_active:
        return {"message": RESET_REQUEST_MESSAGE}

    code = verification_codes.issue(user.email)
    minutes = settings.CODE_TTL_MINUTES
    try:
        EmailService().send(OutgoingEmail(
            to=user.email,
            subject=f"{settings.APP_NAME} password reset code",
            html=f"<p>Hi {user.full_name},</p><p>Your verification code is <b>{code}</b>. "
                 f"It expires in {minutes} minutes.</p>",
            text=f"Your verification code is {code}. It expires in {minutes} minutes.",
        ))
    except NotificationDeliveryFailure as e:
        logger.warning("Password reset code for user %s not delivered: %s", user.id, e)
    return {"message": RESET_REQUEST_MESSAGE}

@router.post("/password-reset/confirm")
def confirm_password_reset(payload: PasswordResetConfirm, db: Session = Depends(get_db)):
    user = UserRepository(db).get_by_email(payload.email)
    if user is None or not verification_codes.verify(payload.email, payload.code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification code"
        )
    user.password_hash = AuthService.get_password_hash(payload.new_password)
    db.commit()
    AuditService(db).log_activity(user.id, AuditAction.PASSWORD_RESET, details="Password reset with code")
    return {"message": "Password updated successfully"}
