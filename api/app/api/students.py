"""Student dashboard routes."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.roles import is_student
from app.models import Student, User
from app.schemas.student import StudentSummaryResponse
from app.services.projections import get_student_summary

router = APIRouter(prefix="/students", tags=["students"])


@router.get("/me/summary", response_model=StudentSummaryResponse)
def get_my_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Dashboard summary for the logged-in student."""
    student = db.query(Student).filter(Student.user_id == current_user.user_id).first()
    if not student:
        raise HTTPException(status_code=404, detail="Student profile not found")
    return get_student_summary(db, student.student_id)


@router.get("/{student_id}/summary", response_model=StudentSummaryResponse)
def get_summary(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Dashboard summary for a student (the student themself, officers and admins)."""
    if is_student(current_user):
        own = db.query(Student.student_id).filter(Student.user_id == current_user.user_id).first()
        if not own or own[0] != student_id:
            raise HTTPException(status_code=403, detail="You can only view your own summary")
    return get_student_summary(db, student_id)
