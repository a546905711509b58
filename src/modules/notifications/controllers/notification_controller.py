# modules/notifications/controllers/notification_controller.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from modules.auth.controllers.auth_controller import get_current_user
from modules.documents.models.user import User
from modules.notifications.repositories.notification_repository import NotificationRepository
from modules.notifications.services.notification_service import NotificationService
from modules.notifications.models.schemas import (
    NotificationResponse,
    NotificationListResponse,
    CountResponse,
)

router = APIRouter()


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    repo = NotificationRepository(db)
    return NotificationService(repo)


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="Notifications of the current user"
)
def list_notifications(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return NotificationListResponse(
        notifications=service.get_notifications(current_user.id),
        unread_count=service.unread_count(current_user.id),
    )


@router.get("/unread-count", summary="Number of unread notifications")
def unread_count(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return {"count": service.unread_count(current_user.id)}


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification as read"
)
def mark_notification_as_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    notif = service.mark_as_read(notification_id, current_user.id)
    if not notif:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )
    return notif


@router.post("/mark-all-read", response_model=CountResponse, summary="Mark every notification as read")
def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    count = service.mark_all_as_read(current_user.id)
    return CountResponse(message="All notifications marked as read.", count=count)


@router.post("/clear-read", response_model=CountResponse, summary="Delete read notifications")
def clear_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    count = service.clear_read(current_user.id)
    return CountResponse(message="All read notifications cleared.", count=count)
