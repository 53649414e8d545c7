"""In-app notification routes."""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_user
from app.models import Notification, User
from app.schemas.student import NotificationItem

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=List[NotificationItem])
def list_my_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Most recent notifications for the current user."""
    query = db.query(Notification).filter(Notification.recipient_id == current_user.user_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)
    return query.order_by(
        Notification.created_at.desc(), Notification.notification_id.desc()
    ).limit(limit).all()
