"""Postgres-backed concurrency tests for department decisions."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import ClearanceError, ConcurrencyError
from app.core.roles import RoleCode
from app.models.clearance import Clearance
from app.models.department import Department
from app.models.student import Student
from app.models.user import User
from app.services.clearance_service import DepartmentSelector, decide, submit_clearance


def _seed(db) -> tuple[Clearance, list[int], User]:
    admin = User(email="pg.admin@example.com", full_name="PG Admin", role=RoleCode.ADMIN.value)
    student_user = User(email="pg.student@example.com", full_name="PG Student", role=RoleCode.STUDENT.value)
    departments = [
        Department(code=f"D{i}", name=f"Department {i}", faculty="General", is_active=True)
        for i in range(4)
    ]
    db.add_all([admin, student_user, *departments])
    db.flush()

    student = Student(
        user_id=student_user.user_id,
        matric_number="PG0000001",
        programme="Physics",
        faculty="Science",
        level="400",
        academic_session="2024/2025",
        current_semester="first"
    )
    db.add(student)
    db.commit()

    department_ids = [d.department_id for d in departments]
    clearance = submit_clearance(db, student.student_id, "graduation", department_ids)
    return clearance, department_ids, admin


@pytest.mark.postgres
def test_parallel_decisions_never_lose_updates(postgres_db_session, postgres_engine):
    """Every decision either lands in the aggregate or is refused with a concurrency error."""
    clearance, department_ids, admin = _seed(postgres_db_session)
    clearance_id = clearance.clearance_id
    admin_id = admin.user_id

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=postgres_engine)
    barrier = Barrier(len(department_ids))

    def worker(department_id):
        session = SessionLocal()
        try:
            # Read the aggregate before the barrier so every writer starts from the same version
            session.query(Clearance).filter(Clearance.clearance_id == clearance_id).one()
            barrier.wait()
            decide(
                session, clearance_id,
                DepartmentSelector(department_id=department_id),
                "approve", actor_id=admin_id
            )
            return ("success", department_id)
        except ConcurrencyError:
            return ("conflict", department_id)
        except ClearanceError as exc:
            return ("error", exc.detail)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(department_ids)) as executor:
        results = list(executor.map(worker, department_ids))

    assert not [r for r in results if r[0] == "error"]
    successes = {r[1] for r in results if r[0] == "success"}
    assert successes

    postgres_db_session.expire_all()
    stored = postgres_db_session.query(Clearance).filter(Clearance.clearance_id == clearance_id).one()
    approved = {d.department_id for d in stored.departments if d.status == "approved"}

    assert approved == successes
    assert stored.approved_departments == len(successes)
    assert stored.pending_departments == len(department_ids) - len(successes)
    assert stored.version == 1 + len(successes)
    assert len(stored.timeline) == 1 + len(successes) + (1 if stored.overall_status == "completed" else 0)
