"""Tests for the student, department and admin read projections."""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from threading import Barrier

import pytest

from app.core.exceptions import NotFoundError
from app.services.clearance_service import DepartmentSelector, decide, submit_clearance
from app.services.projections import (
    ProjectionCache,
    get_admin_view,
    get_department_pending,
    get_student_summary,
)


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 1, 1, 8, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class TestProjectionCache:

    def test_entries_expire(self):
        clock = FakeClock()
        cache = ProjectionCache(ttl_seconds=30, max_entries=10, clock=clock)
        cache.set("a", 1)

        clock.advance(29)
        assert cache.get("a") == 1
        clock.advance(1)
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_least_recently_used_is_evicted(self):
        cache = ProjectionCache(ttl_seconds=60, max_entries=2, clock=FakeClock())
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3

    def test_get_or_build_builds_once(self):
        cache = ProjectionCache(clock=FakeClock())
        calls = []

        def build():
            calls.append(1)
            return []

        assert cache.get_or_build("k", build) == []
        assert cache.get_or_build("k", build) == []
        assert len(calls) == 1

    def test_shared_across_threads(self):
        cache = ProjectionCache(ttl_seconds=60, max_entries=8, clock=FakeClock())
        barrier = Barrier(8)

        def worker(offset):
            barrier.wait()
            for i in range(500):
                key = (offset + i) % 20
                cache.set(key, i)
                cache.get((key + 1) % 20)
                if i % 50 == 0:
                    len(cache)
            return True

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(worker, range(8)))

        assert all(results)
        assert len(cache) <= 8

    def test_expired_entries_dropped_across_threads(self):
        cache = ProjectionCache(ttl_seconds=0, max_entries=8, clock=FakeClock())
        barrier = Barrier(8)

        def worker(offset):
            barrier.wait()
            misses = 0
            for i in range(500):
                cache.set(i % 4, offset)
                if cache.get(i % 4) is None:
                    misses += 1
            return misses

        with ThreadPoolExecutor(max_workers=8) as executor:
            misses = list(executor.map(worker, range(8)))

        assert misses == [500] * 8
        assert len(cache) <= 4


class TestStudentSummary:

    def test_without_clearance(self, db_session, student):
        summary = get_student_summary(db_session, student.student_id)
        assert summary.matric_number == "UCS2020001"
        assert summary.full_name == "Ada Student"
        assert summary.clearance_status is None
        assert summary.recent_activity == []

    def test_reflects_latest_decision(self, db_session, submitted_clearance, student, departments, admin_user):
        cache = ProjectionCache(clock=FakeClock())
        before = get_student_summary(db_session, student.student_id, cache=cache)
        assert before.clearance_status.overall_status == "submitted"
        assert before.clearance_status.completion_percentage == 0
        assert get_student_summary(db_session, student.student_id, cache=cache) is before

        decide(
            db_session, submitted_clearance.clearance_id,
            DepartmentSelector(department_id=departments["library"].department_id),
            "approve", actor_id=admin_user.user_id
        )

        after = get_student_summary(db_session, student.student_id, cache=cache)
        status = after.clearance_status
        assert status.overall_status == "in_progress"
        assert status.status_label == "In Progress"
        assert status.completion_percentage == 50
        assert status.approved_departments == 1
        assert status.pending_departments == 1
        assert [a.department for a in after.recent_activity] == ["Library"]
        assert after.recent_activity[0].status == "approved"
        assert after.recent_activity[0].remarks == ""

    def test_recent_activity_most_recent_first(self, db_session, submitted_clearance, student, departments, admin_user):
        decide(
            db_session, submitted_clearance.clearance_id,
            DepartmentSelector(department_id=departments["bursary"].department_id),
            "reject", actor_id=admin_user.user_id, remarks="Outstanding fees"
        )
        decide(
            db_session, submitted_clearance.clearance_id,
            DepartmentSelector(department_id=departments["library"].department_id),
            "approve", actor_id=admin_user.user_id
        )

        summary = get_student_summary(db_session, student.student_id)
        assert [a.department for a in summary.recent_activity] == ["Library", "Bursary"]
        assert summary.recent_activity[1].remarks == "Outstanding fees"
        assert summary.clearance_status.overall_status == "rejected"

    def test_uses_latest_clearance(self, db_session, submitted_clearance, student, departments):
        newer = submit_clearance(
            db_session, student.student_id, "semester", [departments["bursary"].department_id]
        )
        summary = get_student_summary(db_session, student.student_id)
        assert summary.clearance_status.clearance_id == newer.clearance_id
        assert summary.clearance_status.total_departments == 1

    def test_unknown_student(self, db_session):
        with pytest.raises(NotFoundError):
            get_student_summary(db_session, 99999)


class TestDepartmentPending:

    def test_lists_pending_oldest_first(self, db_session, student, other_student, departments):
        library_id = departments["library"].department_id
        first = submit_clearance(db_session, student.student_id, "graduation", [library_id])
        second = submit_clearance(db_session, other_student.student_id, "transfer", [library_id])

        pending = get_department_pending(db_session, library_id, cache=ProjectionCache(clock=FakeClock()))
        assert [p.clearance_id for p in pending] == [first.clearance_id, second.clearance_id]
        assert pending[0].matric_number == "UCS2020001"
        assert pending[0].student_name == "Ada Student"
        assert pending[0].department_name == "Library"
        assert [r.name for r in pending[0].requirements] == [
            "Returned all library books loaned",
            "No outstanding fines",
        ]

    def test_decided_records_leave_the_queue(self, db_session, submitted_clearance, departments, admin_user):
        library_id = departments["library"].department_id
        cache = ProjectionCache(clock=FakeClock())
        assert len(get_department_pending(db_session, library_id, cache=cache)) == 1

        decide(
            db_session, submitted_clearance.clearance_id,
            DepartmentSelector(department_id=library_id),
            "approve", actor_id=admin_user.user_id
        )

        assert get_department_pending(db_session, library_id, cache=cache) == []
        bursary_pending = get_department_pending(db_session, departments["bursary"].department_id, cache=cache)
        assert len(bursary_pending) == 1

    def test_unknown_department(self, db_session):
        with pytest.raises(NotFoundError):
            get_department_pending(db_session, 99999)


class TestAdminView:

    def test_shows_snapshot_and_current_catalog_name(
        self, db_session, submitted_clearance, departments, library_officer
    ):
        decide(
            db_session, submitted_clearance.clearance_id,
            DepartmentSelector(department_id=departments["library"].department_id),
            "approve", actor_id=library_officer.user_id
        )
        departments["library"].name = "Main Library"
        db_session.commit()

        view = get_admin_view(db_session, submitted_clearance.clearance_id)
        library = view.departments[0]
        assert library.department_name == "Library"
        assert library.current_catalog_name == "Main Library"
        assert library.decided_by.full_name == "Library Officer"
        assert view.departments[1].decided_by is None
        assert view.student_name == "Ada Student"
        assert view.clearance.completion_percentage == 50
        assert [e.action for e in view.timeline] == ["submitted", "department_approved"]

    def test_unknown_clearance(self, db_session):
        with pytest.raises(NotFoundError):
            get_admin_view(db_session, 99999)


class TestProjectionAPI:

    def test_my_summary(self, client, student_headers, submitted_clearance):
        response = client.get("/students/me/summary", headers=student_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["clearance_status"]["application_number"] == submitted_clearance.application_number
        assert data["clearance_status"]["overall_status"] == "submitted"

    def test_student_cannot_read_other_summary(self, client, student_headers, other_student):
        response = client.get(f"/students/{other_student.student_id}/summary", headers=student_headers)
        assert response.status_code == 403

    def test_officer_reads_student_summary(self, client, library_headers, student):
        response = client.get(f"/students/{student.student_id}/summary", headers=library_headers)
        assert response.status_code == 200

    def test_summary_includes_notifications(self, client, student_headers, admin_headers, departments, student):
        client.post("/clearances/", headers=admin_headers, json={
            "clearance_type": "graduation",
            "department_ids": [departments["library"].department_id],
            "student_id": student.student_id,
        })
        response = client.get("/students/me/summary", headers=student_headers)
        assert [n["type"] for n in response.json()["notifications"]] == ["clearance_submitted"]

    def test_department_queue(self, client, library_headers, bursary_headers, submitted_clearance, departments):
        library_id = departments["library"].department_id
        response = client.get(f"/departments/{library_id}/pending", headers=library_headers)
        assert response.status_code == 200
        assert [p["clearance_id"] for p in response.json()] == [submitted_clearance.clearance_id]

        response = client.get(f"/departments/{library_id}/pending", headers=bursary_headers)
        assert response.status_code == 403

    def test_admin_view_requires_admin(self, client, admin_headers, student_headers, submitted_clearance):
        url = f"/clearances/{submitted_clearance.clearance_id}/admin-view"
        assert client.get(url, headers=student_headers).status_code == 403

        response = client.get(url, headers=admin_headers)
        assert response.status_code == 200
        assert len(response.json()["timeline"]) == 1
