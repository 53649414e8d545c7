"""In-app notification model."""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.time import utc_now
from app.models.base import Base


class NotificationType:
    """Enum-like class for notification type codes."""
    CLEARANCE_SUBMITTED = "clearance_submitted"
    CLEARANCE_APPROVED = "clearance_approved"
    CLEARANCE_REJECTED = "clearance_rejected"
    CLEARANCE_COMPLETED = "clearance_completed"


class Notification(Base):
    """Notification delivered to a user's in-app inbox."""
    __tablename__ = "notifications"

    notification_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recipient_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    clearance_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("clearances.clearance_id", ondelete="SET NULL"), nullable=True
    )
    department_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("departments.department_id", ondelete="SET NULL"), nullable=True
    )
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    recipient: Mapped["User"] = relationship("User", foreign_keys=[recipient_id])
