"""Role normalization helpers and canonical mappings."""
from __future__ import annotations

import enum
from typing import Optional, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.user import User


class RoleCode(str, enum.Enum):
    ADMIN = "ADMIN"
    STUDENT = "STUDENT"
    DEPARTMENT_OFFICER = "DEPARTMENT_OFFICER"


ROLE_DISPLAY_TO_CODE: Dict[str, str] = {
    "admin": RoleCode.ADMIN.value,
    "administrator": RoleCode.ADMIN.value,
    "student": RoleCode.STUDENT.value,
    "department officer": RoleCode.DEPARTMENT_OFFICER.value,
    "department_officer": RoleCode.DEPARTMENT_OFFICER.value,
    "department": RoleCode.DEPARTMENT_OFFICER.value,
    "officer": RoleCode.DEPARTMENT_OFFICER.value,
}


def normalize_role_code(value: str | None) -> Optional[str]:
    if not value:
        return None
    normalized = value.strip()
    if not normalized:
        return None
    upper = normalized.upper().replace(" ", "_")
    if upper in RoleCode.__members__:
        return RoleCode[upper].value
    return ROLE_DISPLAY_TO_CODE.get(normalized.lower())


def get_user_role_code(user: "User") -> Optional[str]:
    return normalize_role_code(user.role)


def is_admin(user: "User") -> bool:
    return get_user_role_code(user) == RoleCode.ADMIN.value


def is_student(user: "User") -> bool:
    return get_user_role_code(user) == RoleCode.STUDENT.value


def is_department_officer(user: "User") -> bool:
    return get_user_role_code(user) == RoleCode.DEPARTMENT_OFFICER.value


def can_decide_for_department(user: "User", department_id: int) -> bool:
    """Admins may decide for any department; officers only for their own."""
    if is_admin(user):
        return True
    return is_department_officer(user) and user.department_id == department_id
