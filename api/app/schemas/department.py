"""Department catalog schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class DepartmentRequirementResponse(BaseModel):
    requirement_id: int
    name: str
    description: Optional[str] = None
    is_required: bool
    document_required: bool
    sort_order: int

    model_config = ConfigDict(from_attributes=True)


class DepartmentResponse(BaseModel):
    department_id: int
    code: str
    name: str
    faculty: str
    description: Optional[str] = None
    is_active: bool
    requirements: List[DepartmentRequirementResponse] = []

    model_config = ConfigDict(from_attributes=True)


class PendingRequirementItem(BaseModel):
    name: str
    is_completed: bool

    model_config = ConfigDict(from_attributes=True)


class PendingDepartmentRecord(BaseModel):
    """A department's still-pending portion of one clearance."""
    clearance_department_id: int
    clearance_id: int
    application_number: str
    clearance_type: str
    student_id: int
    matric_number: Optional[str] = None
    student_name: Optional[str] = None
    department_id: int
    department_name: str
    status: str
    submitted_at: Optional[datetime] = None
    requirements: List[PendingRequirementItem] = []
