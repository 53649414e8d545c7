"""Pydantic schemas for clearance applications."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from app.core.clearance_status import ClearanceType, Decision
from app.schemas.user import UserSummary


# --- Request/Input Schemas ---

class ClearanceSubmitRequest(BaseModel):
    """Schema for submitting a clearance application."""
    clearance_type: ClearanceType
    department_ids: List[int]
    documents: List[str] = []
    priority: str = "normal"
    deadline: Optional[datetime] = None
    student_id: Optional[int] = None  # Admin submitting on behalf of a student

    @field_validator('documents')
    @classmethod
    def validate_documents(cls, v):
        cleaned = [d.strip() for d in v if d and d.strip()]
        return cleaned


class DecisionRequest(BaseModel):
    """
    Schema for approving or rejecting one department of a clearance.

    The department may be named by catalog id, by the record's own id, or
    both (they must then refer to the same record).
    """
    department_id: Optional[int] = None
    clearance_department_id: Optional[int] = None
    decision: Decision
    remarks: Optional[str] = None
    expected_version: Optional[int] = None

    @model_validator(mode='after')
    def require_selector(self):
        if self.department_id is None and self.clearance_department_id is None:
            raise ValueError('department_id or clearance_department_id is required')
        return self


# --- Response Schemas ---

class ClearanceRequirementResponse(BaseModel):
    requirement_id: int
    name: str
    is_completed: bool
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ClearanceDepartmentResponse(BaseModel):
    clearance_department_id: int
    department_id: int
    department_name: str
    status: str
    decided_by_id: Optional[int] = None
    decided_at: Optional[datetime] = None
    remarks: Optional[str] = None
    requirements: List[ClearanceRequirementResponse] = []

    model_config = ConfigDict(from_attributes=True)


class TimelineEventResponse(BaseModel):
    event_id: int
    sequence: int
    action: str
    description: Optional[str] = None
    performed_by_id: Optional[int] = None
    timestamp: datetime
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_event(cls, event) -> "TimelineEventResponse":
        return cls(
            event_id=event.event_id,
            sequence=event.sequence,
            action=event.action,
            description=event.description,
            performed_by_id=event.performed_by_id,
            timestamp=event.timestamp,
            metadata=event.event_metadata,
        )


class ClearanceResponse(BaseModel):
    clearance_id: int
    application_number: str
    student_id: int
    user_id: int
    clearance_type: str
    academic_session: str
    semester: str
    priority: str
    deadline: Optional[datetime] = None
    documents: List[str] = []
    overall_status: str
    total_departments: int
    approved_departments: int
    pending_departments: int
    rejected_departments: int
    completion_percentage: int
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updated_at: datetime
    version: int
    departments: List[ClearanceDepartmentResponse] = []

    model_config = ConfigDict(from_attributes=True)


class ClearanceListItem(BaseModel):
    clearance_id: int
    application_number: str
    student_id: int
    clearance_type: str
    overall_status: str
    completion_percentage: int
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdminDepartmentView(ClearanceDepartmentResponse):
    """Department record plus the catalog's current name for comparison."""
    current_catalog_name: Optional[str] = None
    decided_by: Optional[UserSummary] = None


class ClearanceAdminView(BaseModel):
    """Raw aggregate for administrators, including the full timeline."""
    clearance: ClearanceResponse
    student_name: Optional[str] = None
    matric_number: Optional[str] = None
    departments: List[AdminDepartmentView] = []
    timeline: List[TimelineEventResponse] = []
