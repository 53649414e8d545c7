"""Student dashboard schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class ClearanceStatusSummary(BaseModel):
    clearance_id: int
    application_number: str
    clearance_type: str
    overall_status: str
    status_label: Optional[str] = None
    total_departments: int
    approved_departments: int
    pending_departments: int
    rejected_departments: int
    completion_percentage: int
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class RecentActivityItem(BaseModel):
    clearance_department_id: int
    department_id: int
    department: str
    status: str
    date: Optional[datetime] = None
    remarks: str = ""


class NotificationItem(BaseModel):
    notification_id: int
    type: str
    title: str
    message: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StudentSummaryResponse(BaseModel):
    student_id: int
    matric_number: str
    full_name: Optional[str] = None
    clearance_status: Optional[ClearanceStatusSummary] = None
    recent_activity: List[RecentActivityItem] = []
    notifications: List[NotificationItem] = []
