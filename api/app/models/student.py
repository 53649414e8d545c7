"""Student profile model."""
from datetime import datetime
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.time import utc_now
from app.models.base import Base


class Student(Base):
    """Academic profile attached to a student's user account."""
    __tablename__ = "students"

    student_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="RESTRICT"),
        nullable=False, unique=True
    )
    matric_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    programme: Mapped[str] = mapped_column(String(150), nullable=False)
    faculty: Mapped[str] = mapped_column(String(150), nullable=False)
    level: Mapped[str] = mapped_column(String(20), nullable=False)
    academic_session: Mapped[str] = mapped_column(String(20), nullable=False)  # e.g. "2024/2025"
    current_semester: Mapped[str] = mapped_column(
        String(10), nullable=False, default="first"
    )  # first, second
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])
