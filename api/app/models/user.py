"""User model."""
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, ForeignKey, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.roles import RoleCode
from app.core.time import utc_now
from app.models.base import Base

if TYPE_CHECKING:
    from app.models.department import Department


class User(Base):
    """Login identity of a student, department officer or administrator."""
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(50), nullable=False, default=RoleCode.STUDENT.value)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Department officers belong to exactly one department
    department_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("departments.department_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Department an officer decides for (NULL for students and admins)"
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    department: Mapped[Optional["Department"]] = relationship(
        "Department", foreign_keys=[department_id]
    )
