"""API endpoints for clearance applications and department decisions."""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_user, require_admin
from app.core.roles import can_decide_for_department, is_admin, is_student
from app.models import Clearance, Student, User
from app.schemas.clearance import (
    ClearanceAdminView,
    ClearanceListItem,
    ClearanceResponse,
    ClearanceSubmitRequest,
    DecisionRequest,
    TimelineEventResponse,
)
from app.services import clearance_service
from app.services.clearance_service import DepartmentSelector, find_department_record
from app.services.notifications import InAppNotificationDispatcher
from app.services.projections import get_admin_view

router = APIRouter(prefix="/clearances", tags=["clearances"])


# --- Helper Functions ---

def _student_for_user(db: Session, user: User) -> Student:
    student = db.query(Student).filter(Student.user_id == user.user_id).first()
    if not student:
        raise HTTPException(status_code=404, detail="Student profile not found")
    return student


def _ensure_can_view(clearance: Clearance, user: User) -> None:
    """Students see their own applications; officers and admins see all."""
    if is_student(user) and clearance.user_id != user.user_id:
        raise HTTPException(status_code=403, detail="You do not have access to this clearance")


# --- Endpoints ---

@router.post("/", response_model=ClearanceResponse, status_code=status.HTTP_201_CREATED)
def submit_clearance(
    payload: ClearanceSubmitRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Submit a clearance application.

    - Students apply for themselves
    - Admins may apply on behalf of a student by passing ``student_id``
    """
    if is_admin(current_user) and payload.student_id is not None:
        student_id = payload.student_id
    elif is_student(current_user):
        student_id = _student_for_user(db, current_user).student_id
    else:
        raise HTTPException(status_code=403, detail="Only students or admins can submit clearances")

    return clearance_service.submit_clearance(
        db,
        student_id=student_id,
        clearance_type=payload.clearance_type.value,
        department_ids=payload.department_ids,
        documents=payload.documents,
        priority=payload.priority,
        deadline=payload.deadline,
        performed_by_id=current_user.user_id,
        notifier=InAppNotificationDispatcher(db),
    )


@router.get("/", response_model=List[ClearanceListItem])
def list_clearances(
    overall_status: Optional[str] = Query(None, description="Filter by overall status"),
    clearance_type: Optional[str] = Query(None, description="Filter by clearance type"),
    student_id: Optional[int] = Query(None, description="Filter by student"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """List clearance applications (admin)."""
    return clearance_service.list_clearances(
        db,
        overall_status=overall_status,
        clearance_type=clearance_type,
        student_id=student_id,
        limit=limit,
        offset=offset,
    )


@router.get("/by-number/{application_number}", response_model=ClearanceResponse)
def get_clearance_by_number(
    application_number: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Look up a clearance by its application number."""
    clearance = clearance_service.get_clearance_by_number(db, application_number)
    _ensure_can_view(clearance, current_user)
    return clearance


@router.get("/{clearance_id}", response_model=ClearanceResponse)
def get_clearance(
    clearance_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a clearance with its department records and derived status."""
    clearance = clearance_service.get_clearance(db, clearance_id)
    _ensure_can_view(clearance, current_user)
    return clearance


@router.get("/{clearance_id}/timeline", response_model=List[TimelineEventResponse])
def get_clearance_timeline(
    clearance_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Full ordered audit trail of a clearance."""
    clearance = clearance_service.get_clearance(db, clearance_id)
    _ensure_can_view(clearance, current_user)
    return [TimelineEventResponse.from_event(e) for e in clearance.timeline]


@router.get("/{clearance_id}/admin-view", response_model=ClearanceAdminView)
def get_clearance_admin_view(
    clearance_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Raw aggregate including timeline and catalog names (admin)."""
    return get_admin_view(db, clearance_id)


@router.post("/{clearance_id}/decisions", response_model=ClearanceResponse)
def decide_department(
    clearance_id: int,
    payload: DecisionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Approve or reject one department's portion of a clearance.

    - Admins can decide for any department
    - Department officers can decide only for their own department
    """
    selector = DepartmentSelector(
        department_id=payload.department_id,
        clearance_department_id=payload.clearance_department_id,
    )

    clearance = clearance_service.get_clearance(db, clearance_id)
    record = find_department_record(clearance, selector)
    if record and not can_decide_for_department(current_user, record.department_id):
        raise HTTPException(
            status_code=403,
            detail="You do not have permission to decide for this department"
        )

    return clearance_service.decide(
        db,
        clearance_id=clearance_id,
        selector=selector,
        decision=payload.decision.value,
        actor_id=current_user.user_id,
        remarks=payload.remarks,
        expected_version=payload.expected_version,
        notifier=InAppNotificationDispatcher(db),
    )
