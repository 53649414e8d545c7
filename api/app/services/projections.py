"""
Read projections over clearance aggregates.

Projections assemble the student dashboard, a department's pending queue
and the administrator's raw view. They never write. Catalog and identity
data is joined in for display only; the clearance's own snapshot fields
(such as ``department_name``) are always returned as stored.

Assembled projections are memoized in a ``ProjectionCache`` owned by this
module. Every cache key embeds a cheap freshness token read from the
database (clearance version, pending-queue shape), so a decision or a new
submission produces a new key instead of serving a stale entry.
"""
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Hashable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.clearance_status import DepartmentStatus, get_status_label
from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.core.time import utc_now
from app.models.clearance import Clearance, ClearanceDepartment
from app.models.department import Department
from app.models.notification import Notification
from app.models.student import Student
from app.schemas.clearance import (
    AdminDepartmentView,
    ClearanceAdminView,
    ClearanceResponse,
    TimelineEventResponse,
)
from app.schemas.department import PendingDepartmentRecord, PendingRequirementItem
from app.schemas.student import (
    ClearanceStatusSummary,
    NotificationItem,
    RecentActivityItem,
    StudentSummaryResponse,
)
from app.services.clearance_service import get_clearance

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    data: Any
    cached_at: datetime


class ProjectionCache:
    """Bounded, time-expiring in-memory cache for assembled projections.

    Shared by every request thread; entry bookkeeping runs under one lock.
    Builders run outside it, so two threads may build the same key once each.
    """

    def __init__(
        self,
        ttl_seconds: int = 60,
        max_entries: int = 256,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._entries: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.cached_at >= self._ttl:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.data

    def set(self, key: Hashable, data: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(data=data, cached_at=self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def get_or_build(self, key: Hashable, build: Callable[[], Any]) -> Any:
        cached = self.get(key)
        if cached is not None:
            logger.debug("Projection cache hit: %s", key)
            return cached
        data = build()
        self.set(key, data)
        return data

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


projection_cache = ProjectionCache(
    ttl_seconds=settings.PROJECTION_CACHE_TTL_SECONDS,
    max_entries=settings.PROJECTION_CACHE_MAX_ENTRIES,
)


# --- Student summary ---

def _latest_clearance_token(db: Session, student_id: int):
    return db.query(Clearance.clearance_id, Clearance.version).filter(
        Clearance.student_id == student_id
    ).order_by(Clearance.created_at.desc(), Clearance.clearance_id.desc()).first()


def build_recent_activity(clearance: Clearance, limit: int) -> List[RecentActivityItem]:
    """Decided department records of ``clearance``, most recent first."""
    decided = [d for d in clearance.departments if d.decided_at is not None]
    decided.sort(key=lambda d: (d.decided_at, d.clearance_department_id), reverse=True)
    return [
        RecentActivityItem(
            clearance_department_id=d.clearance_department_id,
            department_id=d.department_id,
            department=d.department_name,
            status=d.status,
            date=d.decided_at,
            remarks=d.remarks or "",
        )
        for d in decided[:limit]
    ]


def get_student_summary(
    db: Session,
    student_id: int,
    cache: Optional[ProjectionCache] = None,
) -> StudentSummaryResponse:
    """
    Dashboard summary of a student's latest clearance.

    Raises NotFoundError if the student profile does not exist.
    """
    if cache is None:
        cache = projection_cache
    student = db.query(Student).options(selectinload(Student.user)).filter(
        Student.student_id == student_id
    ).first()
    if not student:
        raise NotFoundError("Student profile not found", student_id=student_id)

    latest = _latest_clearance_token(db, student_id)
    last_notification_id = db.query(func.max(Notification.notification_id)).filter(
        Notification.recipient_id == student.user_id
    ).scalar()
    key = ("student", student_id, tuple(latest) if latest else None, last_notification_id)

    def build() -> StudentSummaryResponse:
        limit = settings.RECENT_ACTIVITY_LIMIT
        status_summary = None
        recent_activity: List[RecentActivityItem] = []
        if latest:
            clearance = get_clearance(db, latest[0])
            status_summary = ClearanceStatusSummary(
                clearance_id=clearance.clearance_id,
                application_number=clearance.application_number,
                clearance_type=clearance.clearance_type,
                overall_status=clearance.overall_status,
                status_label=get_status_label(clearance.overall_status),
                total_departments=clearance.total_departments,
                approved_departments=clearance.approved_departments,
                pending_departments=clearance.pending_departments,
                rejected_departments=clearance.rejected_departments,
                completion_percentage=clearance.completion_percentage,
                submitted_at=clearance.submitted_at,
                completed_at=clearance.completed_at,
            )
            recent_activity = build_recent_activity(clearance, limit)

        notifications = db.query(Notification).filter(
            Notification.recipient_id == student.user_id
        ).order_by(Notification.created_at.desc(), Notification.notification_id.desc()).limit(limit).all()

        return StudentSummaryResponse(
            student_id=student.student_id,
            matric_number=student.matric_number,
            full_name=student.user.full_name if student.user else None,
            clearance_status=status_summary,
            recent_activity=recent_activity,
            notifications=[NotificationItem.model_validate(n) for n in notifications],
        )

    return cache.get_or_build(key, build)


# --- Department pending queue ---

def get_department_pending(
    db: Session,
    department_id: int,
    cache: Optional[ProjectionCache] = None,
) -> List[PendingDepartmentRecord]:
    """
    Pending records of one department across all clearances, oldest first.

    Raises NotFoundError if the department is not in the catalog.
    """
    if cache is None:
        cache = projection_cache
    exists = db.query(Department.department_id).filter(
        Department.department_id == department_id
    ).first()
    if not exists:
        raise NotFoundError("Department not found", department_id=department_id)

    pending_filter = (
        ClearanceDepartment.department_id == department_id,
        ClearanceDepartment.status == DepartmentStatus.PENDING.value,
    )
    count, max_id = db.query(
        func.count(ClearanceDepartment.clearance_department_id),
        func.max(ClearanceDepartment.clearance_department_id),
    ).filter(*pending_filter).one()
    key = ("department_pending", department_id, count, max_id)

    def build() -> List[PendingDepartmentRecord]:
        rows = db.query(ClearanceDepartment).join(
            Clearance, Clearance.clearance_id == ClearanceDepartment.clearance_id
        ).options(
            selectinload(ClearanceDepartment.requirements),
            selectinload(ClearanceDepartment.clearance)
            .selectinload(Clearance.student)
            .selectinload(Student.user),
        ).filter(*pending_filter).order_by(
            Clearance.submitted_at.asc(), ClearanceDepartment.clearance_department_id.asc()
        ).all()

        result = []
        for record in rows:
            clearance = record.clearance
            student = clearance.student
            result.append(PendingDepartmentRecord(
                clearance_department_id=record.clearance_department_id,
                clearance_id=clearance.clearance_id,
                application_number=clearance.application_number,
                clearance_type=clearance.clearance_type,
                student_id=clearance.student_id,
                matric_number=student.matric_number if student else None,
                student_name=student.user.full_name if student and student.user else None,
                department_id=record.department_id,
                department_name=record.department_name,
                status=record.status,
                submitted_at=clearance.submitted_at,
                requirements=[PendingRequirementItem.model_validate(r) for r in record.requirements],
            ))
        return result

    return cache.get_or_build(key, build)


# --- Admin view ---

def get_admin_view(db: Session, clearance_id: int) -> ClearanceAdminView:
    """Full aggregate with timeline; not cached. Raises NotFoundError."""
    clearance = get_clearance(db, clearance_id)

    department_ids = [d.department_id for d in clearance.departments]
    catalog_names = dict(
        db.query(Department.department_id, Department.name).filter(
            Department.department_id.in_(department_ids)
        ).all()
    ) if department_ids else {}

    departments = []
    for record in clearance.departments:
        view = AdminDepartmentView.model_validate(record)
        view.current_catalog_name = catalog_names.get(record.department_id)
        departments.append(view)

    student = clearance.student
    return ClearanceAdminView(
        clearance=ClearanceResponse.model_validate(clearance),
        student_name=student.user.full_name if student and student.user else None,
        matric_number=student.matric_number if student else None,
        departments=departments,
        timeline=[TimelineEventResponse.from_event(e) for e in clearance.timeline],
    )
