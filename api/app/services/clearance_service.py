"""
Clearance application lifecycle: submission, department decisions, lookup.

Every mutation follows the same shape: validate without touching state,
mutate the loaded aggregate, recompute the derived fields from the full
department list, append to the timeline, and write the whole aggregate in
one transaction guarded by the clearance's version column.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from app.core.clearance_status import (
    ClearanceStatus,
    ClearanceType,
    Decision,
    DepartmentStatus,
    DECISION_TO_STATUS,
    recompute_clearance,
)
from app.core.config import settings
from app.core.exceptions import (
    ConcurrencyError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.core.time import utc_now
from app.models.clearance import Clearance, ClearanceDepartment, ClearanceRequirement
from app.models.student import Student
from app.services.department_catalog import DepartmentCatalog
from app.services.notifications import (
    NotificationDispatcher,
    STATUS_TO_NOTIFICATION_TYPE,
    notify_safely,
)
from app.services.timeline import TimelineAction, append_timeline_event

logger = logging.getLogger(__name__)

PRIORITIES = ("low", "normal", "high", "urgent")


@dataclass(frozen=True)
class DepartmentSelector:
    """Identifies one department record by catalog id, record id, or both."""
    department_id: Optional[int] = None
    clearance_department_id: Optional[int] = None

    def describe(self) -> str:
        parts = []
        if self.clearance_department_id is not None:
            parts.append(f"record {self.clearance_department_id}")
        if self.department_id is not None:
            parts.append(f"department {self.department_id}")
        return " / ".join(parts) or "no department"


# --- Helpers ---

def generate_application_number(now: Optional[datetime] = None) -> str:
    """Globally unique application number, e.g. ``CLR20253F9A0C12B7D4``."""
    year = (now or utc_now()).year
    return f"{settings.APPLICATION_NUMBER_PREFIX}{year}{uuid.uuid4().hex[:12].upper()}"


def _load_clearance(db: Session, clearance_id: int) -> Optional[Clearance]:
    return db.query(Clearance).options(
        selectinload(Clearance.departments).selectinload(ClearanceDepartment.requirements),
        selectinload(Clearance.timeline),
    ).filter(Clearance.clearance_id == clearance_id).first()


def find_department_record(
    clearance: Clearance, selector: DepartmentSelector
) -> Optional[ClearanceDepartment]:
    """Locate the record named by ``selector``; both ids must agree when given."""
    for record in clearance.departments:
        if (
            selector.clearance_department_id is not None
            and record.clearance_department_id != selector.clearance_department_id
        ):
            continue
        if selector.department_id is not None and record.department_id != selector.department_id:
            continue
        return record
    return None


def _validate_clearance_type(clearance_type: str) -> str:
    try:
        return ClearanceType(clearance_type).value
    except ValueError:
        allowed = ", ".join(t.value for t in ClearanceType)
        raise ValidationError(
            f"Invalid clearance type '{clearance_type}'. Must be one of: {allowed}",
            clearance_type=clearance_type
        )


def _validate_decision(decision: str) -> Decision:
    try:
        return Decision(decision)
    except ValueError:
        raise ValidationError(
            f"Invalid decision '{decision}'. Must be 'approve' or 'reject'",
            decision=decision
        )


def _validate_remarks(decision: Decision, remarks: Optional[str]) -> Optional[str]:
    cleaned = remarks.strip() if remarks else None
    if decision == Decision.REJECT:
        minimum = settings.REJECTION_REMARKS_MIN_LENGTH
        if not cleaned or len(cleaned) < minimum:
            raise ValidationError(
                f"Rejection remarks must be at least {minimum} characters",
                min_length=minimum
            )
    return cleaned or None


def _is_timeline_sequence_collision(exc: IntegrityError) -> bool:
    """True when ``exc`` is another writer claiming the same timeline sequence."""
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint is not None:
        return constraint == "uq_timeline_sequence"
    # sqlite names the columns instead of the constraint
    message = str(exc.orig)
    return "uq_timeline_sequence" in message or "clearance_timeline_events.sequence" in message


def _commit(db: Session, operation: str) -> None:
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise ConcurrencyError() from exc
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"{operation} conflicts with existing data") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("%s failed to persist", operation, exc_info=True)
        raise PersistenceError(f"{operation} could not be persisted") from exc


# --- Operations ---

def submit_clearance(
    db: Session,
    student_id: int,
    clearance_type: str,
    department_ids: Sequence[int],
    documents: Optional[Sequence[str]] = None,
    priority: str = "normal",
    deadline: Optional[datetime] = None,
    performed_by_id: Optional[int] = None,
    catalog: Optional[DepartmentCatalog] = None,
    notifier: Optional[NotificationDispatcher] = None,
) -> Clearance:
    """
    Create a clearance application for a student.

    Each selected department's name and requirement checklist is snapshotted
    into a pending department record. No decisions are made here.

    Raises:
        ValidationError: bad type/priority, empty or duplicate selection,
            unknown or inactive department
        NotFoundError: the student profile does not exist
    """
    clearance_type = _validate_clearance_type(clearance_type)
    if priority not in PRIORITIES:
        raise ValidationError(f"Invalid priority '{priority}'", priority=priority)

    department_ids = list(department_ids or [])
    if not department_ids:
        raise ValidationError("At least one department must be selected")
    if len(set(department_ids)) != len(department_ids):
        raise ValidationError("Each department may only be selected once", department_ids=department_ids)

    student = db.query(Student).filter(Student.student_id == student_id).first()
    if not student:
        raise NotFoundError("Student profile not found", student_id=student_id)

    catalog = catalog or DepartmentCatalog(db)
    resolved = catalog.get_departments(department_ids)
    unknown = [d for d in department_ids if d not in resolved]
    if unknown:
        raise ValidationError("Unknown department selected", department_ids=unknown)
    inactive = [d for d in department_ids if not resolved[d].is_active]
    if inactive:
        raise ValidationError("Inactive department selected", department_ids=inactive)

    now = utc_now()
    clearance = Clearance(
        application_number=generate_application_number(now),
        student_id=student.student_id,
        user_id=student.user_id,
        clearance_type=clearance_type,
        academic_session=student.academic_session,
        semester=student.current_semester,
        priority=priority,
        deadline=deadline,
        documents=list(documents or []),
        submitted_at=now,
        created_at=now,
        updated_at=now,
    )
    for position, department_id in enumerate(department_ids):
        entry = resolved[department_id]
        clearance.departments.append(ClearanceDepartment(
            department_id=entry.department_id,
            department_name=entry.name,
            position=position,
            status=DepartmentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
            requirements=[
                ClearanceRequirement(name=req.name, sort_order=req.sort_order)
                for req in entry.requirements
            ],
        ))

    recompute_clearance(clearance, now, default_status=ClearanceStatus.SUBMITTED)
    append_timeline_event(
        clearance,
        TimelineAction.SUBMITTED,
        f"{clearance_type.capitalize()} clearance submitted to {len(department_ids)} department(s)",
        performed_by_id if performed_by_id is not None else student.user_id,
        {
            "clearance_type": clearance_type,
            "department_ids": department_ids,
        },
        now=now,
    )

    db.add(clearance)
    _commit(db, "Clearance submission")
    db.refresh(clearance)

    logger.info(
        "Clearance %s submitted by student %s for %d department(s)",
        clearance.application_number, student.student_id, len(department_ids)
    )
    notify_safely(
        db, notifier,
        recipient_id=clearance.user_id,
        type=STATUS_TO_NOTIFICATION_TYPE["submitted"],
        department_name=None,
        new_status=ClearanceStatus.SUBMITTED.value,
        clearance_id=clearance.clearance_id,
    )
    return clearance


def decide(
    db: Session,
    clearance_id: int,
    selector: DepartmentSelector,
    decision: str,
    actor_id: int,
    remarks: Optional[str] = None,
    expected_version: Optional[int] = None,
    notifier: Optional[NotificationDispatcher] = None,
) -> Clearance:
    """
    Apply an approve/reject decision to one department record.

    Decided records are terminal. The whole aggregate is recomputed and
    written in a single versioned update.

    Raises:
        ValidationError: unknown decision, missing/short rejection remarks,
            empty selector
        NotFoundError: unknown clearance or department record
        ConflictError: the record is no longer pending
        ConcurrencyError: the clearance changed since it was read
    """
    decision_value = _validate_decision(decision)
    cleaned_remarks = _validate_remarks(decision_value, remarks)
    if selector.department_id is None and selector.clearance_department_id is None:
        raise ValidationError("department_id or clearance_department_id is required")

    clearance = _load_clearance(db, clearance_id)
    if not clearance:
        raise NotFoundError("Clearance not found", clearance_id=clearance_id)

    record = find_department_record(clearance, selector)
    if not record:
        raise NotFoundError(
            f"Department not found in clearance ({selector.describe()})",
            clearance_id=clearance_id
        )

    if expected_version is not None and expected_version != clearance.version:
        raise ConcurrencyError(
            expected_version=expected_version,
            actual_version=clearance.version,
            clearance_id=clearance_id
        )

    if record.status != DepartmentStatus.PENDING.value:
        logger.info(
            "Rejected re-decision on clearance %s department %s (status %s)",
            clearance.application_number, record.department_id, record.status
        )
        raise ConflictError(
            f"{record.department_name} has already been {record.status}",
            clearance_id=clearance_id,
            department_id=record.department_id,
            status=record.status
        )

    now = utc_now()
    new_status = DECISION_TO_STATUS[decision_value].value
    record.status = new_status
    record.decided_by_id = actor_id
    record.decided_at = now
    record.remarks = cleaned_remarks
    record.updated_at = now

    newly_completed = recompute_clearance(clearance, now)
    clearance.updated_at = now

    append_timeline_event(
        clearance,
        f"department_{new_status}",
        f"{record.department_name} {new_status}",
        actor_id,
        {
            "department_id": record.department_id,
            "clearance_department_id": record.clearance_department_id,
            "status": new_status,
            "remarks": cleaned_remarks,
        },
        now=now,
    )
    if newly_completed:
        append_timeline_event(
            clearance,
            TimelineAction.CLEARANCE_COMPLETED,
            "All departments approved",
            actor_id,
            {"approved_departments": clearance.approved_departments},
            now=now,
        )

    try:
        db.flush()
    except StaleDataError as exc:
        db.rollback()
        logger.warning(
            "Concurrent modification of clearance %s while deciding %s",
            clearance_id, selector.describe()
        )
        raise ConcurrencyError(clearance_id=clearance_id) from exc
    except IntegrityError as exc:
        db.rollback()
        if _is_timeline_sequence_collision(exc):
            logger.warning(
                "Timeline sequence collision on clearance %s while deciding %s",
                clearance_id, selector.describe()
            )
            raise ConcurrencyError(clearance_id=clearance_id) from exc
        logger.error("Decision on clearance %s violated a constraint", clearance_id, exc_info=True)
        raise PersistenceError(
            "Decision could not be persisted",
            clearance_id=clearance_id,
            actor_id=actor_id
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Decision on clearance %s failed to persist", clearance_id, exc_info=True)
        raise PersistenceError("Decision could not be persisted") from exc

    _commit(db, "Decision")

    logger.info(
        "Clearance %s: %s %s by user %s (overall %s, %d%%)",
        clearance.application_number, record.department_name, new_status,
        actor_id, clearance.overall_status, clearance.completion_percentage
    )

    notify_safely(
        db, notifier,
        recipient_id=clearance.user_id,
        type=STATUS_TO_NOTIFICATION_TYPE[new_status],
        department_name=record.department_name,
        new_status=new_status,
        clearance_id=clearance.clearance_id,
        department_id=record.department_id,
    )
    if newly_completed:
        notify_safely(
            db, notifier,
            recipient_id=clearance.user_id,
            type=STATUS_TO_NOTIFICATION_TYPE["completed"],
            department_name=None,
            new_status=ClearanceStatus.COMPLETED.value,
            clearance_id=clearance.clearance_id,
        )

    return clearance


def get_clearance(db: Session, clearance_id: int) -> Clearance:
    """Fetch a clearance aggregate. Raises NotFoundError."""
    clearance = _load_clearance(db, clearance_id)
    if not clearance:
        raise NotFoundError("Clearance not found", clearance_id=clearance_id)
    return clearance


def get_clearance_by_number(db: Session, application_number: str) -> Clearance:
    """Fetch a clearance by its application number. Raises NotFoundError."""
    row = db.query(Clearance.clearance_id).filter(
        Clearance.application_number == application_number
    ).first()
    if not row:
        raise NotFoundError("Clearance not found", application_number=application_number)
    return get_clearance(db, row[0])


def list_clearances(
    db: Session,
    overall_status: Optional[str] = None,
    clearance_type: Optional[str] = None,
    student_id: Optional[int] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[Clearance]:
    query = db.query(Clearance)
    if overall_status:
        query = query.filter(Clearance.overall_status == overall_status)
    if clearance_type:
        query = query.filter(Clearance.clearance_type == clearance_type)
    if student_id is not None:
        query = query.filter(Clearance.student_id == student_id)
    return query.order_by(Clearance.created_at.desc(), Clearance.clearance_id.desc()).offset(offset).limit(limit).all()
