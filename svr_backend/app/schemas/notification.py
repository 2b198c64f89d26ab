"""
Notification Schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import List

from svr_backend.app.services.notification_service import NotificationType


class NotificationResponse(BaseModel):
    id: str
    type: NotificationType
    details: str
    timestamp: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
