"""Unit tests for ProgressAggregator."""

import uuid
from datetime import datetime, timezone

import pytest

from lms.engines.progress.aggregator import CourseTotals, ProgressAggregator, ProgressUpdate
from lms.engines.progress.records import AssessmentProgress, CompletedContent, EnrollmentProgress
from lms.errors import AlreadyCompleted

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _progress(completed: int = 0, passed: int = 0, failed: int = 0) -> EnrollmentProgress:
    return EnrollmentProgress(
        completed_content=[
            CompletedContent(content_id=uuid.uuid4(), completed_at=NOW) for _ in range(completed)
        ],
        completed_assessments=(
            [AssessmentProgress(assessment_id=uuid.uuid4(), passed=True) for _ in range(passed)]
            + [AssessmentProgress(assessment_id=uuid.uuid4(), passed=False) for _ in range(failed)]
        ),
    )


class TestRecompute:
    """Weighted 70/30 overall progress."""

    def test_weighted_formula(self):
        """4 content (2 done), 2 assessments (1 passed): 35 + 15 = 50."""
        progress = _progress(completed=2, passed=1)
        value = ProgressAggregator.recompute(progress, CourseTotals(total_content=4, total_assessments=2))
        assert value == 50
        assert progress.overall_progress == 50

    def test_attempted_but_failed_does_not_count(self):
        progress = _progress(completed=2, failed=1)
        ProgressAggregator.recompute(progress, CourseTotals(total_content=2, total_assessments=1))
        assert progress.overall_progress == 70

    def test_everything_done_is_100(self):
        progress = _progress(completed=3, passed=1)
        ProgressAggregator.recompute(progress, CourseTotals(total_content=3, total_assessments=1))
        assert progress.overall_progress == 100

    def test_no_assessments_caps_at_70(self):
        progress = _progress(completed=2)
        ProgressAggregator.recompute(progress, CourseTotals(total_content=2, total_assessments=0))
        assert progress.overall_progress == 70

    def test_empty_course_leaves_value_untouched(self):
        progress = _progress(completed=1)
        progress.overall_progress = 42
        ProgressAggregator.recompute(progress, CourseTotals())
        ProgressAggregator.recompute(progress, None)
        assert progress.overall_progress == 42

    def test_rounding_half_up(self):
        """1/3 content: 33.33 * 0.7 = 23.33 -> 23; 1/2 assessment adds 15 -> 38."""
        progress = _progress(completed=1, passed=1)
        ProgressAggregator.recompute(progress, CourseTotals(total_content=3, total_assessments=2))
        assert progress.overall_progress == 38

    def test_breakdown(self):
        progress = _progress(completed=1, passed=1)
        b = ProgressAggregator.breakdown(progress, CourseTotals(total_content=4, total_assessments=1))
        assert b.content == 25
        assert b.assessments == 100
        assert b.overall == 48  # 17.5 + 30 = 47.5
        assert b.completed_content == 1
        assert b.passed_assessments == 1


class TestContentCompletion:
    def test_mark_complete(self):
        progress = EnrollmentProgress()
        cid = uuid.uuid4()
        ProgressAggregator.mark_content_complete(progress, cid, 12, NOW)
        assert progress.has_completed_content(cid)
        assert progress.time_spent == 12
        assert progress.last_activity == NOW

    def test_second_completion_rejected(self):
        progress = EnrollmentProgress()
        cid = uuid.uuid4()
        ProgressAggregator.mark_content_complete(progress, cid, 5, NOW)
        with pytest.raises(AlreadyCompleted):
            ProgressAggregator.mark_content_complete(progress, cid, 5, NOW)
        assert len(progress.completed_content) == 1
        assert progress.time_spent == 5


class TestApplyUpdate:
    """Trusted progress overwrite."""

    def test_explicit_value_wins(self):
        progress = _progress(completed=1)
        agg = ProgressAggregator()
        agg.apply_update(
            progress,
            ProgressUpdate(progress=90),
            CourseTotals(total_content=10, total_assessments=1),
            NOW,
        )
        assert progress.overall_progress == 90

    def test_recompute_from_new_lists(self):
        ids = [uuid.uuid4(), uuid.uuid4()]
        progress = EnrollmentProgress()
        ProgressAggregator().apply_update(
            progress,
            ProgressUpdate(completed_content=ids + [ids[0]]),
            CourseTotals(total_content=4, total_assessments=0),
            NOW,
        )
        assert [c.content_id for c in progress.completed_content] == ids
        assert progress.overall_progress == 35
        assert progress.last_activity == NOW

    def test_keeps_existing_completion_timestamps(self):
        earlier = datetime(2024, 1, 1, tzinfo=timezone.utc)
        cid = uuid.uuid4()
        progress = EnrollmentProgress(
            completed_content=[CompletedContent(content_id=cid, completed_at=earlier, time_spent=7)]
        )
        ProgressAggregator().apply_update(progress, ProgressUpdate(completed_content=[cid]), None, NOW)
        assert progress.completed_content[0].completed_at == earlier
        assert progress.completed_content[0].time_spent == 7

    def test_simple_fallback_without_structure(self):
        progress = _progress(completed=3)
        ProgressAggregator(estimated_total_content=10).apply_update(progress, ProgressUpdate(), None, NOW)
        assert progress.overall_progress == 30

    def test_simple_fallback_ignores_supplied_list_length(self):
        """A supplied content list is measured against the estimate, not its own length."""
        progress = EnrollmentProgress()
        update = ProgressUpdate(completed_content=[uuid.uuid4(), uuid.uuid4()])
        ProgressAggregator(estimated_total_content=10).apply_update(progress, update, None, NOW)
        assert progress.overall_progress == 20

    def test_simple_progress_capped(self):
        progress = _progress(completed=12)
        assert ProgressAggregator(estimated_total_content=10).simple_progress(progress) == 100

    def test_out_of_range_value_rejected(self):
        with pytest.raises(ValueError):
            ProgressUpdate(progress=120)
