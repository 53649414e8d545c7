"""Seed the department catalog and default accounts."""
import os
import sys
from typing import Dict, List
from sqlalchemy.orm import Session
from app.core.database import SessionLocal
from app.core.roles import RoleCode
from app.models import Department, DepartmentRequirement, Student, User


DEPARTMENT_CATALOG: List[Dict] = [
    {"code": "HOD", "name": "Head of Department", "faculty": "Science",
     "description": "Clearance by HOD",
     "requirements": [
         "Registered all courses as specified for graduation",
         "No references or outstanding courses",
     ]},
    {"code": "FAC", "name": "Faculty", "faculty": "Science",
     "description": "Faculty clearance",
     "requirements": ["Satisfied Faculty requirements for clearance"]},
    {"code": "LIB", "name": "University Library", "faculty": "General",
     "description": "Library clearance",
     "requirements": ["Returned all library books loaned"]},
    {"code": "CLD", "name": "Campus Life Division", "faculty": "General",
     "description": "Campus Life clearance",
     "requirements": ["Met all requirements for Campus Life Division"]},
    {"code": "SAF", "name": "Student Affairs", "faculty": "General",
     "description": "Student Affairs clearance",
     "requirements": ["No disciplinary case", "Academic outfit returned for NYSC"]},
    {"code": "SUM", "name": "Summer School", "faculty": "General",
     "description": "Summer School clearance",
     "requirements": ["Cleared from Summer School, no outstanding"]},
    {"code": "BUR", "name": "Bursary", "faculty": "General",
     "description": "Bursary clearance",
     "requirements": [
         "Paid all required fees from admission to graduation",
         "No outstanding fees",
     ]},
    {"code": "ALU", "name": "Office of Alumni Relations", "faculty": "General",
     "description": "Alumni Relations clearance",
     "requirements": ["Met all requirements for Alumni Relations"]},
    {"code": "CSC", "name": "Certificate Screening Committee", "faculty": "General",
     "description": "Certificate Screening clearance",
     "requirements": ["Credentials screened and not found wanting"]},
]


def is_production_env() -> bool:
    return os.getenv("ENVIRONMENT", "development").lower() == "production"


def seed_departments(db: Session) -> Dict[str, Department]:
    """Create or update catalog departments; requirements are only added when missing."""
    by_code: Dict[str, Department] = {}
    created = 0
    for entry in DEPARTMENT_CATALOG:
        department = db.query(Department).filter(Department.code == entry["code"]).first()
        if not department:
            department = Department(
                code=entry["code"],
                name=entry["name"],
                faculty=entry["faculty"],
                description=entry["description"],
                is_active=True,
            )
            for order, name in enumerate(entry["requirements"], start=1):
                department.requirements.append(
                    DepartmentRequirement(name=name, sort_order=order)
                )
            db.add(department)
            created += 1
        by_code[entry["code"]] = department
    db.commit()
    print(f"✓ Department catalog ready ({created} created, {len(by_code) - created} existing)")
    return by_code


def seed_users(db: Session, departments: Dict[str, Department]) -> None:
    admin = db.query(User).filter(User.email == "admin@example.com").first()
    if not admin:
        db.add(User(
            email="admin@example.com",
            full_name="Admin User",
            role=RoleCode.ADMIN.value,
        ))
        print("✓ Created admin user (admin@example.com)")
    else:
        print("✓ Admin user already exists")

    for code, department in departments.items():
        email = f"{code.lower()}.officer@example.com"
        if db.query(User).filter(User.email == email).first():
            continue
        db.add(User(
            email=email,
            full_name=f"{department.name} Officer",
            role=RoleCode.DEPARTMENT_OFFICER.value,
            department_id=department.department_id,
        ))
    db.commit()
    print(f"✓ Department officers ready ({len(departments)})")


def seed_demo_student(db: Session) -> None:
    user = db.query(User).filter(User.email == "sample.student@example.com").first()
    if user:
        print("✓ Demo student already exists")
        return
    user = User(
        email="sample.student@example.com",
        full_name="Sample Student",
        role=RoleCode.STUDENT.value,
    )
    db.add(user)
    db.flush()
    db.add(Student(
        user_id=user.user_id,
        matric_number="UCS9999999",
        programme="Computer Science",
        faculty="Science",
        level="400",
        academic_session="2023/2024",
        current_semester="second",
    ))
    db.commit()
    print("✓ Created demo student (sample.student@example.com)")


def seed_database():
    """Seed essential data."""
    db = SessionLocal()

    try:
        print("Starting database seeding...")
        departments = seed_departments(db)
        seed_users(db, departments)
        if not is_production_env():
            seed_demo_student(db)
        print("Seeding complete.")
    except Exception as exc:
        db.rollback()
        print(f"Seeding failed: {exc}", file=sys.stderr)
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
