"""Unit tests for AttemptTracker and assessment availability."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from lms.engines.grading.assessment import AssessmentDefinition
from lms.engines.grading.attempt_tracker import AttemptTracker
from lms.engines.grading.grader import SubmittedAnswer
from lms.engines.grading.questions import TrueFalseQuestion
from lms.engines.progress.records import EnrollmentProgress
from lms.errors import AssessmentUnavailable, AttemptLimitExceeded, ErrorKind

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _assessment(**overrides) -> AssessmentDefinition:
    q1 = TrueFalseQuestion(id=uuid.uuid4(), points=10, correct_answer=True)
    q2 = TrueFalseQuestion(id=uuid.uuid4(), points=10, correct_answer=False)
    fields = dict(
        id=uuid.uuid4(),
        course_id=uuid.uuid4(),
        title="Quiz",
        passing_score=70,
        max_attempts=2,
        is_published=True,
        questions=[q1, q2],
    )
    fields.update(overrides)
    return AssessmentDefinition(**fields)


def _answers(assessment: AssessmentDefinition, first: bool, second: bool):
    q1, q2 = assessment.questions
    return [
        SubmittedAnswer(question_id=q1.id, answer=first),
        SubmittedAnswer(question_id=q2.id, answer=second),
    ]


class TestAvailability:
    """Published flag and start/end window."""

    def test_draft_is_unavailable(self):
        a = _assessment(is_published=False)
        assert a.is_available(NOW) is False
        assert a.availability(NOW) == "draft"

    def test_before_start(self):
        a = _assessment(start_date=NOW + timedelta(hours=1))
        assert a.availability(NOW) == "scheduled"

    def test_after_end(self):
        a = _assessment(end_date=NOW - timedelta(seconds=1))
        assert a.availability(NOW) == "expired"

    def test_total_score(self):
        assert _assessment().total_score() == 20

    def test_window_bounds_inclusive(self):
        a = _assessment(start_date=NOW, end_date=NOW)
        assert a.is_available(NOW) is True

    def test_unavailable_blocks_attempt(self):
        tracker = AttemptTracker(_assessment(is_published=False), EnrollmentProgress())
        check = tracker.check(NOW)
        assert check.allowed is False
        assert check.reason == ErrorKind.ASSESSMENT_UNAVAILABLE
        with pytest.raises(AssessmentUnavailable):
            tracker.record_attempt([], 0, NOW)


class TestAttemptTracker:
    """Attempt limits and derived best/passed fields."""

    def test_first_attempt_creates_entry(self):
        a = _assessment()
        progress = EnrollmentProgress()
        attempt = AttemptTracker(a, progress).record_attempt(_answers(a, True, True), 5, NOW)

        assert attempt.attempt_number == 1
        assert attempt.score == 10
        assert attempt.max_score == 20
        assert attempt.percentage == 50
        assert attempt.passed is False
        entry = progress.find_assessment(a.id)
        assert entry.best_score == 10
        assert entry.passed is False
        assert progress.last_activity == NOW

    def test_attempt_limit(self):
        """max_attempts succeed; the next one is rejected."""
        a = _assessment(max_attempts=2)
        progress = EnrollmentProgress()
        tracker = AttemptTracker(a, progress)
        tracker.record_attempt(_answers(a, False, True), 0, NOW)
        assert tracker.can_attempt(NOW) is True
        tracker.record_attempt(_answers(a, False, True), 0, NOW)

        assert tracker.can_attempt(NOW) is False
        with pytest.raises(AttemptLimitExceeded):
            tracker.record_attempt(_answers(a, True, False), 0, NOW)
        assert len(progress.find_assessment(a.id).attempts) == 2

    def test_availability_checked_before_limit(self):
        a = _assessment(max_attempts=1)
        progress = EnrollmentProgress()
        AttemptTracker(a, progress).record_attempt(_answers(a, True, True), 0, NOW)

        closed = a.model_copy(update={"end_date": NOW - timedelta(days=1)})
        check = AttemptTracker(closed, progress).check(NOW)
        assert check.reason == ErrorKind.ASSESSMENT_UNAVAILABLE

    def test_best_score_never_decreases(self):
        a = _assessment(max_attempts=3)
        progress = EnrollmentProgress()
        tracker = AttemptTracker(a, progress)
        tracker.record_attempt(_answers(a, True, False), 0, NOW)  # 20
        tracker.record_attempt(_answers(a, False, True), 0, NOW)  # 0

        entry = progress.find_assessment(a.id)
        assert entry.best_score == 20
        assert entry.score == 0
        assert [att.attempt_number for att in entry.attempts] == [1, 2]

    def test_passed_is_monotonic(self):
        a = _assessment(max_attempts=3)
        progress = EnrollmentProgress()
        tracker = AttemptTracker(a, progress)
        first = tracker.record_attempt(_answers(a, True, False), 0, NOW)
        second = tracker.record_attempt(_answers(a, False, True), 0, NOW)

        assert first.passed is True
        assert second.passed is False
        assert progress.find_assessment(a.id).passed is True

    def test_passing_threshold_is_inclusive(self):
        a = _assessment(passing_score=50)
        attempt = AttemptTracker(a, EnrollmentProgress()).record_attempt(_answers(a, True, True), 0, NOW)
        assert attempt.percentage == 50
        assert attempt.passed is True
