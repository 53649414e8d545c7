"""Models package."""
from app.models.base import Base
from app.models.user import User
from app.models.department import Department, DepartmentRequirement
from app.models.student import Student
from app.models.clearance import (
    Clearance,
    ClearanceDepartment,
    ClearanceRequirement,
    ClearanceTimelineEvent,
)
from app.models.notification import Notification, NotificationType

__all__ = [
    "Base",
    "User",
    "Department", "DepartmentRequirement",
    "Student",
    "Clearance", "ClearanceDepartment", "ClearanceRequirement", "ClearanceTimelineEvent",
    "Notification", "NotificationType",
]
