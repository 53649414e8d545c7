"""Department catalog models."""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import String, Integer, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.time import utc_now
from app.models.base import Base


class Department(Base):
    """A clearing department (Library, Bursary, ...) and its checklist."""
    __tablename__ = "departments"

    department_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    faculty: Mapped[str] = mapped_column(String(150), nullable=False, default="General")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    requirements: Mapped[List["DepartmentRequirement"]] = relationship(
        "DepartmentRequirement", back_populates="department",
        cascade="all, delete-orphan", order_by="DepartmentRequirement.sort_order"
    )


class DepartmentRequirement(Base):
    """Static checklist item a department expects a student to satisfy."""
    __tablename__ = "department_requirements"

    requirement_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    department_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("departments.department_id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    document_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    department: Mapped["Department"] = relationship(
        "Department", back_populates="requirements"
    )
