"""Pytest fixtures for API testing."""
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.database import get_db
from app.core.roles import RoleCode
from app.models.base import Base
from app.models.department import Department, DepartmentRequirement
from app.models.student import Student
from app.models.user import User
from app.services.projections import projection_cache

# In-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clear_projection_cache():
    """Projections are memoized process-wide; start every test cold."""
    projection_cache.clear()
    yield
    projection_cache.clear()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client with database override.

    Note: db_session already created tables, so we don't need to create them again.
    """
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def departments(db_session):
    """Library and Bursary with checklists, plus a retired department."""
    library = Department(
        code="LIB",
        name="Library",
        faculty="General",
        description="Library clearance",
        is_active=True
    )
    library.requirements = [
        DepartmentRequirement(name="Returned all library books loaned", sort_order=1),
        DepartmentRequirement(name="No outstanding fines", sort_order=2),
    ]
    bursary = Department(
        code="BUR",
        name="Bursary",
        faculty="General",
        description="Bursary clearance",
        is_active=True
    )
    bursary.requirements = [
        DepartmentRequirement(name="No outstanding fees", sort_order=1),
    ]
    retired = Department(
        code="OLD",
        name="Retired Unit",
        faculty="General",
        is_active=False
    )
    db_session.add_all([library, bursary, retired])
    db_session.commit()
    return {"library": library, "bursary": bursary, "retired": retired}


@pytest.fixture
def admin_user(db_session):
    """Create an admin user."""
    user = User(
        email="admin@example.com",
        full_name="Admin User",
        role=RoleCode.ADMIN.value
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def student_user(db_session):
    """Create a student login."""
    user = User(
        email="student@example.com",
        full_name="Ada Student",
        role=RoleCode.STUDENT.value
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def student(db_session, student_user):
    """Create the academic profile for ``student_user``."""
    profile = Student(
        user_id=student_user.user_id,
        matric_number="UCS2020001",
        programme="Computer Science",
        faculty="Science",
        level="400",
        academic_session="2024/2025",
        current_semester="second"
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def other_student(db_session):
    """A second student with their own login."""
    user = User(
        email="other.student@example.com",
        full_name="Other Student",
        role=RoleCode.STUDENT.value
    )
    db_session.add(user)
    db_session.flush()
    profile = Student(
        user_id=user.user_id,
        matric_number="UCS2020002",
        programme="Mathematics",
        faculty="Science",
        level="300",
        academic_session="2024/2025",
        current_semester="first"
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def library_officer(db_session, departments):
    """Officer who decides for the Library."""
    user = User(
        email="lib.officer@example.com",
        full_name="Library Officer",
        role=RoleCode.DEPARTMENT_OFFICER.value,
        department_id=departments["library"].department_id
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def bursary_officer(db_session, departments):
    """Officer who decides for the Bursary."""
    user = User(
        email="bur.officer@example.com",
        full_name="Bursary Officer",
        role=RoleCode.DEPARTMENT_OFFICER.value,
        department_id=departments["bursary"].department_id
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def headers_for(user: User) -> dict:
    """Identity headers as forwarded by the upstream gateway."""
    return {"X-User-Id": str(user.user_id)}


@pytest.fixture
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture
def student_headers(student_user, student):
    return headers_for(student_user)


@pytest.fixture
def library_headers(library_officer):
    return headers_for(library_officer)


@pytest.fixture
def bursary_headers(bursary_officer):
    return headers_for(bursary_officer)


@pytest.fixture
def submitted_clearance(db_session, student, departments):
    """A graduation clearance submitted to Library then Bursary."""
    from app.services.clearance_service import submit_clearance

    return submit_clearance(
        db_session,
        student_id=student.student_id,
        clearance_type="graduation",
        department_ids=[
            departments["library"].department_id,
            departments["bursary"].department_id,
        ],
    )


# --- PostgreSQL-backed fixtures (marker: postgres) ---

@pytest.fixture(scope="module")
def postgres_engine():
    url = os.getenv("TEST_POSTGRES_URL")
    if not url:
        pytest.skip("TEST_POSTGRES_URL not set")
    pg_engine = create_engine(url, pool_pre_ping=True)
    Base.metadata.drop_all(bind=pg_engine)
    Base.metadata.create_all(bind=pg_engine)
    yield pg_engine
    Base.metadata.drop_all(bind=pg_engine)
    pg_engine.dispose()


@pytest.fixture
def postgres_db_session(postgres_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=postgres_engine)
    db = SessionLocal()
    yield db
    db.close()


@pytest.fixture
def reload_clearance():
    """Re-read a clearance from the database, discarding the session's cached state."""
    from app.services.clearance_service import get_clearance

    def _reload(db, clearance_id):
        db.expire_all()
        return get_clearance(db, clearance_id)
    return _reload


@pytest.fixture
def second_session(db_session):
    """An independent session on the same test database."""
    db = TestingSessionLocal()
    yield db
    db.close()


@pytest.fixture
def sqlite_foreign_keys(db_session):
    """Enforce foreign keys on the in-memory database for one test."""
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")
    yield
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
