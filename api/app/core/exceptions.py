"""
Typed errors raised by the clearance workflow.

The HTTP layer translates these into responses (see ``app.api.errors``);
services never raise ``HTTPException`` themselves.

    ClearanceError
    +-- ValidationError          malformed input, nothing applied
    +-- NotFoundError            unknown clearance, department or student
    +-- ConflictError            decision on a non-pending department record
    |   +-- ConcurrencyError     aggregate changed between read and write
    +-- PersistenceError         store unavailable or rejected the write
    +-- TimelineImmutableError   attempt to edit or remove a timeline event
"""
from typing import Any, Dict, Optional


class ClearanceError(Exception):
    """Base class for clearance workflow errors."""

    code: str = "CLEARANCE_ERROR"

    def __init__(self, detail: str, **context: Any):
        super().__init__(detail)
        self.detail = detail
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.detail, "code": self.code}
        if self.context:
            payload["context"] = self.context
        return payload


class ValidationError(ClearanceError):
    code = "VALIDATION_ERROR"


class NotFoundError(ClearanceError):
    code = "NOT_FOUND"


class ConflictError(ClearanceError):
    code = "CONFLICT"


class ConcurrencyError(ConflictError):
    """The clearance was modified by another writer; re-fetch and retry."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(
        self,
        detail: str = "Clearance was modified concurrently; re-fetch and retry",
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
        **context: Any
    ):
        if expected_version is not None:
            context["expected_version"] = expected_version
        if actual_version is not None:
            context["actual_version"] = actual_version
        super().__init__(detail, **context)


class PersistenceError(ClearanceError):
    code = "PERSISTENCE_ERROR"


class TimelineImmutableError(ClearanceError):
    code = "TIMELINE_IMMUTABLE"
