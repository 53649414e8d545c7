"""Department catalog routes and the department pending queue."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.roles import can_decide_for_department
from app.models import User
from app.schemas.department import DepartmentResponse, PendingDepartmentRecord
from app.services.department_catalog import DepartmentCatalog
from app.services.projections import get_department_pending

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("/", response_model=List[DepartmentResponse])
def list_departments(
    include_inactive: bool = Query(False, description="Include inactive departments"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List departments a student may select, with their checklists."""
    return DepartmentCatalog(db).list_departments(include_inactive=include_inactive)


@router.get("/{department_id}", response_model=DepartmentResponse)
def get_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    department = DepartmentCatalog(db).get_department(department_id)
    if not department:
        raise HTTPException(status_code=404, detail="Department not found")
    return department


@router.get("/{department_id}/pending", response_model=List[PendingDepartmentRecord])
def list_pending_for_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Clearances still waiting on this department (its officers and admins only)."""
    if not can_decide_for_department(current_user, department_id):
        raise HTTPException(status_code=403, detail="You do not have access to this department's queue")
    return get_department_pending(db, department_id)
