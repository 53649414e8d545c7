"""Tests for the clearance status aggregation engine."""
from datetime import datetime
from types import SimpleNamespace

import pytest

from app.core.clearance_status import (
    AggregateFields,
    ClearanceStatus,
    DepartmentStatus,
    aggregate_departments,
    apply_aggregate,
    completion_percentage,
    get_status_label,
    recompute_clearance,
)


APPROVED = DepartmentStatus.APPROVED.value
PENDING = DepartmentStatus.PENDING.value
REJECTED = DepartmentStatus.REJECTED.value
NOT_REQUIRED = DepartmentStatus.NOT_REQUIRED.value


def _clearance(statuses, submitted=True, completed_at=None):
    return SimpleNamespace(
        departments=[SimpleNamespace(status=s) for s in statuses],
        submitted_at=datetime(2025, 1, 1) if submitted else None,
        completed_at=completed_at,
        total_departments=0,
        approved_departments=0,
        pending_departments=0,
        rejected_departments=0,
        completion_percentage=0,
        overall_status=ClearanceStatus.DRAFT.value,
    )


class TestCompletionPercentage:

    @pytest.mark.parametrize("approved,total,expected", [
        (0, 0, 0),
        (0, 3, 0),
        (1, 2, 50),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),   # 12.5 rounds up
        (3, 8, 38),   # 37.5 rounds up
        (5, 5, 100),
    ])
    def test_rounds_half_up(self, approved, total, expected):
        assert completion_percentage(approved, total) == expected


class TestAggregateDepartments:

    def test_empty_selection_is_draft(self):
        fields = aggregate_departments([])
        assert fields == AggregateFields(
            total_departments=0,
            approved_departments=0,
            pending_departments=0,
            rejected_departments=0,
            completion_percentage=0,
            overall_status=ClearanceStatus.DRAFT.value,
        )

    def test_empty_selection_never_completed(self):
        fields = aggregate_departments([], ClearanceStatus.SUBMITTED)
        assert fields.overall_status == ClearanceStatus.SUBMITTED.value

    def test_all_pending_uses_default(self):
        fields = aggregate_departments([PENDING, PENDING], ClearanceStatus.SUBMITTED)
        assert fields.overall_status == "submitted"
        assert fields.pending_departments == 2
        assert fields.completion_percentage == 0

    def test_one_approved_is_in_progress(self):
        fields = aggregate_departments([APPROVED, PENDING], ClearanceStatus.SUBMITTED)
        assert fields.overall_status == "in_progress"
        assert fields.completion_percentage == 50

    def test_all_approved_is_completed(self):
        fields = aggregate_departments([APPROVED, APPROVED, APPROVED])
        assert fields.overall_status == "completed"
        assert fields.completion_percentage == 100

    def test_any_rejection_is_rejected(self):
        fields = aggregate_departments([APPROVED, REJECTED, PENDING])
        assert fields.overall_status == "rejected"
        assert fields.rejected_departments == 1
        assert fields.approved_departments == 1
        assert fields.pending_departments == 1

    def test_not_required_blocks_completion(self):
        fields = aggregate_departments([APPROVED, NOT_REQUIRED])
        assert fields.total_departments == 2
        assert fields.pending_departments == 0
        assert fields.overall_status == "in_progress"
        assert fields.completion_percentage == 50

    def test_counts_never_exceed_total(self):
        statuses = [APPROVED, REJECTED, PENDING, NOT_REQUIRED, APPROVED]
        fields = aggregate_departments(statuses)
        assert (
            fields.approved_departments + fields.pending_departments + fields.rejected_departments
            <= fields.total_departments
        )

    def test_accepts_records(self):
        records = [SimpleNamespace(status=APPROVED), SimpleNamespace(status=DepartmentStatus.PENDING)]
        fields = aggregate_departments(records)
        assert fields.approved_departments == 1
        assert fields.pending_departments == 1

    def test_does_not_mutate_input(self):
        statuses = [APPROVED, PENDING]
        aggregate_departments(statuses)
        assert statuses == [APPROVED, PENDING]


class TestApplyAggregate:

    def test_sets_completed_at_once(self):
        first = datetime(2025, 3, 1, 12, 0)
        clearance = _clearance([APPROVED, APPROVED])

        assert recompute_clearance(clearance, first) is True
        assert clearance.completed_at == first
        assert clearance.overall_status == "completed"

        later = datetime(2025, 3, 2, 12, 0)
        assert recompute_clearance(clearance, later) is False
        assert clearance.completed_at == first

    def test_replaces_every_derived_field(self):
        clearance = _clearance([APPROVED, PENDING, REJECTED])
        clearance.total_departments = 99
        clearance.completion_percentage = 99

        recompute_clearance(clearance, datetime(2025, 3, 1))

        assert clearance.total_departments == 3
        assert clearance.approved_departments == 1
        assert clearance.pending_departments == 1
        assert clearance.rejected_departments == 1
        assert clearance.completion_percentage == 33
        assert clearance.overall_status == "rejected"

    def test_default_follows_submission(self):
        draft = _clearance([PENDING], submitted=False)
        recompute_clearance(draft, datetime(2025, 3, 1))
        assert draft.overall_status == "draft"

        submitted = _clearance([PENDING], submitted=True)
        recompute_clearance(submitted, datetime(2025, 3, 1))
        assert submitted.overall_status == "submitted"

    def test_apply_without_completion_leaves_timestamp(self):
        clearance = _clearance([])
        fields = aggregate_departments([APPROVED, PENDING])
        assert apply_aggregate(clearance, fields, datetime(2025, 3, 1)) is False
        assert clearance.completed_at is None


def test_status_labels():
    assert get_status_label("in_progress") == "In Progress"
    assert get_status_label("unknown") == "unknown"
    assert get_status_label(None) is None
