"""
Clearance status vocabulary and the status aggregation engine.

The aggregate fields of a clearance (department counts, completion
percentage, overall status) are never edited directly. They are derived
from the full list of department records by ``aggregate_departments`` and
written back in one go by ``apply_aggregate`` after every mutation.

Overall status priority:
- COMPLETED: every department approved (and there is at least one)
- REJECTED: any department rejected and not all approved
- IN_PROGRESS: at least one department decided
- otherwise the caller-supplied default (SUBMITTED once submitted,
  DRAFT for an empty selection)
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.clearance import Clearance, ClearanceDepartment


class ClearanceType(str, enum.Enum):
    GRADUATION = "graduation"
    TRANSFER = "transfer"
    WITHDRAWAL = "withdrawal"
    SEMESTER = "semester"


class ClearanceStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"


class DepartmentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NOT_REQUIRED = "not_required"


class Decision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


DECISION_TO_STATUS = {
    Decision.APPROVE: DepartmentStatus.APPROVED,
    Decision.REJECT: DepartmentStatus.REJECTED,
}


# Status labels for display
STATUS_LABELS = {
    ClearanceStatus.DRAFT.value: "Draft",
    ClearanceStatus.SUBMITTED.value: "Submitted",
    ClearanceStatus.IN_PROGRESS.value: "In Progress",
    ClearanceStatus.COMPLETED.value: "Completed",
    ClearanceStatus.REJECTED.value: "Rejected",
}


@dataclass(frozen=True)
class AggregateFields:
    """Derived fields of a clearance, computed from its department records."""
    total_departments: int
    approved_departments: int
    pending_departments: int
    rejected_departments: int
    completion_percentage: int
    overall_status: str


def completion_percentage(approved: int, total: int) -> int:
    """Percentage of approved departments, rounded half-up; 0 when total is 0."""
    if total <= 0:
        return 0
    # floor(100 * approved / total + 0.5) in integer arithmetic
    return (200 * approved + total) // (2 * total)


def _status_of(record: Union[str, "ClearanceDepartment"]) -> str:
    if isinstance(record, str):
        return record
    status = record.status
    return status.value if isinstance(status, enum.Enum) else status


def aggregate_departments(
    departments: Iterable[Union[str, "ClearanceDepartment"]],
    default_status: Union[str, ClearanceStatus] = ClearanceStatus.DRAFT,
) -> AggregateFields:
    """
    Derive the aggregate fields from a clearance's department records.

    Accepts department records or bare status strings. Pure: performs no
    I/O, never raises for an empty sequence.
    """
    statuses = [_status_of(d) for d in departments]
    total = len(statuses)
    approved = statuses.count(DepartmentStatus.APPROVED.value)
    pending = statuses.count(DepartmentStatus.PENDING.value)
    rejected = statuses.count(DepartmentStatus.REJECTED.value)

    if total > 0 and approved == total:
        overall = ClearanceStatus.COMPLETED.value
    elif rejected > 0:
        overall = ClearanceStatus.REJECTED.value
    elif approved > 0:
        overall = ClearanceStatus.IN_PROGRESS.value
    else:
        overall = ClearanceStatus(default_status).value

    return AggregateFields(
        total_departments=total,
        approved_departments=approved,
        pending_departments=pending,
        rejected_departments=rejected,
        completion_percentage=completion_percentage(approved, total),
        overall_status=overall,
    )


def apply_aggregate(clearance: "Clearance", fields: AggregateFields, now: datetime) -> bool:
    """
    Replace every derived field on ``clearance`` with ``fields``.

    Sets ``completed_at`` the first time the clearance completes and never
    clears it afterwards. Returns True when this call completed the clearance.
    """
    clearance.total_departments = fields.total_departments
    clearance.approved_departments = fields.approved_departments
    clearance.pending_departments = fields.pending_departments
    clearance.rejected_departments = fields.rejected_departments
    clearance.completion_percentage = fields.completion_percentage
    clearance.overall_status = fields.overall_status

    newly_completed = False
    if fields.overall_status == ClearanceStatus.COMPLETED.value and clearance.completed_at is None:
        clearance.completed_at = now
        newly_completed = True
    return newly_completed


def recompute_clearance(
    clearance: "Clearance",
    now: datetime,
    default_status: Optional[Union[str, ClearanceStatus]] = None,
) -> bool:
    """Recompute and apply the aggregate of ``clearance`` from its departments."""
    if default_status is None:
        default_status = (
            ClearanceStatus.SUBMITTED if clearance.submitted_at is not None
            else ClearanceStatus.DRAFT
        )
    fields = aggregate_departments(clearance.departments, default_status)
    return apply_aggregate(clearance, fields, now)


def get_status_label(status: Optional[str]) -> Optional[str]:
    if not status:
        return None
    return STATUS_LABELS.get(status, status)
