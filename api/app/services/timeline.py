"""Timeline ledger: the append-only audit trail of a clearance.

Only the submission and decision services append here.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from app.core.time import strictly_after, utc_now
from app.models.clearance import Clearance, ClearanceTimelineEvent


class TimelineAction:
    """Enum-like class for timeline action labels."""
    SUBMITTED = "submitted"
    DEPARTMENT_APPROVED = "department_approved"
    DEPARTMENT_REJECTED = "department_rejected"
    CLEARANCE_COMPLETED = "clearance_completed"


def append_timeline_event(
    clearance: Clearance,
    action: str,
    description: str,
    performed_by_id: Optional[int],
    metadata: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> ClearanceTimelineEvent:
    """
    Append one event to the clearance's timeline.

    The sequence number continues from the last event and the timestamp is
    forced strictly past the previous event's.
    """
    existing = clearance.timeline
    last = existing[-1] if existing else None
    timestamp = strictly_after(now or utc_now(), last.timestamp if last else None)

    entry = ClearanceTimelineEvent(
        sequence=(last.sequence + 1) if last else 1,
        action=action,
        description=description,
        performed_by_id=performed_by_id,
        timestamp=timestamp,
        event_metadata=dict(metadata or {}),
    )
    existing.append(entry)
    return entry
