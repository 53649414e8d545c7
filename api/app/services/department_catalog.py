"""Department catalog read interface.

Submission and the department routes only see departments through
``CatalogDepartment``; a catalog row that does not fit the schema fails
loudly instead of being guessed at.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session, selectinload

from app.models.department import Department


class CatalogRequirement(BaseModel):
    requirement_id: int
    name: str = Field(min_length=1)
    description: Optional[str] = None
    is_required: bool = True
    document_required: bool = False
    sort_order: int = 0

    model_config = ConfigDict(from_attributes=True)


class CatalogDepartment(BaseModel):
    department_id: int
    code: str
    name: str = Field(min_length=1)
    faculty: str
    description: Optional[str] = None
    is_active: bool
    requirements: List[CatalogRequirement] = []

    model_config = ConfigDict(from_attributes=True)


class DepartmentCatalog:
    """Catalog backed by the ``departments`` table."""

    def __init__(self, db: Session):
        self.db = db

    def get_department(self, department_id: int) -> Optional[CatalogDepartment]:
        department = self.db.query(Department).options(
            selectinload(Department.requirements)
        ).filter(Department.department_id == department_id).first()
        if not department:
            return None
        return CatalogDepartment.model_validate(department)

    def get_departments(self, department_ids: List[int]) -> dict[int, CatalogDepartment]:
        """Fetch several departments at once, keyed by id. Unknown ids are absent."""
        if not department_ids:
            return {}
        rows = self.db.query(Department).options(
            selectinload(Department.requirements)
        ).filter(Department.department_id.in_(department_ids)).all()
        return {row.department_id: CatalogDepartment.model_validate(row) for row in rows}

    def list_departments(self, include_inactive: bool = False) -> List[CatalogDepartment]:
        query = self.db.query(Department).options(selectinload(Department.requirements))
        if not include_inactive:
            query = query.filter(Department.is_active == True)
        return [
            CatalogDepartment.model_validate(row)
            for row in query.order_by(Department.name).all()
        ]
