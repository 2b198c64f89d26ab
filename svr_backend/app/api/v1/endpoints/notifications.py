"""
Notification API Endpoints.
"""

from fastapi import APIRouter, Depends

from svr_backend.app.core.dependencies import get_current_user, get_notification_center
from svr_backend.app.schemas.notification import NotificationListResponse, NotificationResponse
from svr_backend.app.services.notification_service import NotificationCenter

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    current_user: dict = Depends(get_current_user),
    notifications: NotificationCenter = Depends(get_notification_center)
):
    """Most recent request activity, newest first."""
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(item) for item in notifications.recent()]
    )
