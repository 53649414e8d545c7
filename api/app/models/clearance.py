"""Clearance aggregate models: application, department records, checklist, timeline."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import (
    String, Integer, Text, DateTime, ForeignKey, JSON, UniqueConstraint, CheckConstraint, event
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.clearance_status import ClearanceStatus, DepartmentStatus
from app.core.exceptions import TimelineImmutableError
from app.core.time import utc_now
from app.models.base import Base


class Clearance(Base):
    """
    One clearance application by a student (aggregate root).

    The count/percentage/status columns are derived from ``departments`` by
    the status aggregation engine and must only be written through
    ``app.core.clearance_status.apply_aggregate``.
    """
    __tablename__ = "clearances"

    clearance_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    application_number: Mapped[str] = mapped_column(
        String(40), unique=True, nullable=False, index=True
    )
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("students.student_id", ondelete="RESTRICT"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True
    )
    clearance_type: Mapped[str] = mapped_column(String(20), nullable=False)
    academic_session: Mapped[str] = mapped_column(String(20), nullable=False)
    semester: Mapped[str] = mapped_column(String(10), nullable=False)
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default="normal"
    )  # low, normal, high, urgent
    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    # Opaque references into the document store
    documents: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Derived fields
    overall_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ClearanceStatus.DRAFT.value, index=True
    )
    total_departments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    approved_departments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pending_departments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rejected_departments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completion_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    # Optimistic concurrency: every UPDATE is guarded by the version read
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    student: Mapped["Student"] = relationship("Student", foreign_keys=[student_id])
    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    departments: Mapped[List["ClearanceDepartment"]] = relationship(
        "ClearanceDepartment", back_populates="clearance",
        cascade="all, delete-orphan", order_by="ClearanceDepartment.position"
    )
    timeline: Mapped[List["ClearanceTimelineEvent"]] = relationship(
        "ClearanceTimelineEvent", back_populates="clearance",
        cascade="save-update, merge", order_by="ClearanceTimelineEvent.sequence"
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "completion_percentage >= 0 AND completion_percentage <= 100",
            name="chk_clearance_completion_range"
        ),
    )


class ClearanceDepartment(Base):
    """A department's portion of a clearance, snapshotted at submission."""
    __tablename__ = "clearance_departments"

    clearance_department_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    clearance_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clearances.clearance_id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    department_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("departments.department_id", ondelete="RESTRICT"),
        nullable=False, index=True
    )
    # Snapshot; catalog renames do not rewrite history
    department_name: Mapped[str] = mapped_column(String(150), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DepartmentStatus.PENDING.value, index=True
    )
    decided_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True
    )
    decided_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    # Relationships
    clearance: Mapped["Clearance"] = relationship("Clearance", back_populates="departments")
    decided_by: Mapped[Optional["User"]] = relationship("User", foreign_keys=[decided_by_id])
    requirements: Mapped[List["ClearanceRequirement"]] = relationship(
        "ClearanceRequirement", back_populates="clearance_department",
        cascade="all, delete-orphan", order_by="ClearanceRequirement.sort_order"
    )

    __table_args__ = (
        UniqueConstraint('clearance_id', 'department_id', name='uq_clearance_department'),
    )


class ClearanceRequirement(Base):
    """Checklist item copied from the department catalog; informational only."""
    __tablename__ = "clearance_requirements"

    requirement_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    clearance_department_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clearance_departments.clearance_department_id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_completed: Mapped[bool] = mapped_column(nullable=False, default=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    clearance_department: Mapped["ClearanceDepartment"] = relationship(
        "ClearanceDepartment", back_populates="requirements"
    )


class ClearanceTimelineEvent(Base):
    """Append-only audit entry on a clearance. Rows are never updated or deleted."""
    __tablename__ = "clearance_timeline_events"

    event_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    clearance_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clearances.clearance_id", ondelete="RESTRICT"),
        nullable=False, index=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)  # submitted, department_approved, ...
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    performed_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    event_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)

    clearance: Mapped["Clearance"] = relationship("Clearance", back_populates="timeline")
    performed_by: Mapped[Optional["User"]] = relationship("User", foreign_keys=[performed_by_id])

    __table_args__ = (
        UniqueConstraint('clearance_id', 'sequence', name='uq_timeline_sequence'),
    )


@event.listens_for(ClearanceTimelineEvent, "before_update")
def _reject_timeline_update(mapper, connection, target):
    raise TimelineImmutableError(
        "Timeline events are append-only", event_id=target.event_id
    )


@event.listens_for(ClearanceTimelineEvent, "before_delete")
def _reject_timeline_delete(mapper, connection, target):
    raise TimelineImmutableError(
        "Timeline events are append-only", event_id=target.event_id
    )
