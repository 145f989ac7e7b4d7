"""
Enrollment lifecycle: status transitions and letter grades.

Valid transitions and who may trigger them are defined here. ``completed``
is terminal. Entering it stamps completion_date and derives the grade.
"""

from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from lms.engines.progress.records import EnrollmentProgress, EnrollmentRecord
from lms.engines.rounding import ratio_percent
from lms.errors import InvalidTransition, Unauthorized
from lms.kernel.models.enrollment import EnrollmentStatus
from lms.kernel.models.user import UserRole
from lms.logging_config import get_logger

logger = get_logger(__name__)

ACTIVE = EnrollmentStatus.ACTIVE.value
COMPLETED = EnrollmentStatus.COMPLETED.value
DROPPED = EnrollmentStatus.DROPPED.value
SUSPENDED = EnrollmentStatus.SUSPENDED.value

# (from_status, to_status) -> roles that may trigger. Admins may trigger any.
_TRANSITIONS: Dict[Tuple[str, str], Set[UserRole]] = {
    (ACTIVE, COMPLETED): {UserRole.INSTRUCTOR},
    (ACTIVE, DROPPED): {UserRole.STUDENT, UserRole.INSTRUCTOR},
    (ACTIVE, SUSPENDED): {UserRole.INSTRUCTOR},
    (SUSPENDED, ACTIVE): {UserRole.INSTRUCTOR},
    (SUSPENDED, DROPPED): {UserRole.STUDENT, UserRole.INSTRUCTOR},
    (DROPPED, ACTIVE): {UserRole.INSTRUCTOR},
}

# Lower bound (inclusive) of each letter grade, highest first
GRADE_CUTOFFS: List[Tuple[float, str]] = [
    (97, "A+"),
    (93, "A"),
    (90, "A-"),
    (87, "B+"),
    (83, "B"),
    (80, "B-"),
    (77, "C+"),
    (73, "C"),
    (70, "C-"),
    (67, "D+"),
    (63, "D"),
]


def valid_transitions(from_status: str) -> List[str]:
    """Target statuses reachable from from_status."""
    return sorted({t for (f, t) in _TRANSITIONS if f == from_status})


def can_transition(actor_role: UserRole, from_status: str, to_status: str) -> bool:
    """Check if actor with given role may move from_status -> to_status."""
    key = (from_status, to_status)
    if key not in _TRANSITIONS:
        return False
    role = UserRole(actor_role)  # SQLite may return str
    return role == UserRole.ADMIN or role in _TRANSITIONS[key]


def letter_grade(percentage: float) -> str:
    for cutoff, grade in GRADE_CUTOFFS:
        if percentage >= cutoff:
            return grade
    return "F"


def compute_grade(progress: EnrollmentProgress) -> Optional[str]:
    """
    Grade from sum(best_score) / sum(max_score) over every attempted assessment,
    passed or not. None when nothing was attempted or nothing carried points.
    """
    entries = progress.completed_assessments
    if not entries:
        return None
    max_total = sum(entry.max_score for entry in entries)
    if max_total <= 0:
        return None
    best_total = sum(entry.best_score for entry in entries)
    return letter_grade(ratio_percent(best_total, max_total))


def _status_value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)


class EnrollmentLifecycle:
    """Performs status transitions on an EnrollmentRecord."""

    def __init__(self, auto_complete: bool = True):
        self.auto_complete = auto_complete

    def transition(
        self,
        record: EnrollmentRecord,
        to_status: EnrollmentStatus,
        actor_role: UserRole,
        now: datetime,
    ) -> EnrollmentRecord:
        from_status = _status_value(record.status)
        target = _status_value(to_status)
        if (from_status, target) not in _TRANSITIONS:
            raise InvalidTransition(
                f"Invalid transition: {from_status} -> {target}",
                details={"allowed": valid_transitions(from_status)},
            )
        if not can_transition(actor_role, from_status, target):
            raise Unauthorized(
                f"Role {_status_value(actor_role)} may not move an enrollment from {from_status} to {target}"
            )
        if target == COMPLETED:
            self._complete(record, now)
        else:
            record.status = EnrollmentStatus(target)
        logger.info(
            "Enrollment status changed",
            extra={"enrollment_id": str(record.id), "from_status": from_status, "to_status": target},
        )
        return record

    def apply_completion_policy(self, record: EnrollmentRecord, now: datetime) -> bool:
        """Auto-complete an active enrollment once progress reaches 100%."""
        if not self.auto_complete:
            return False
        if _status_value(record.status) != ACTIVE or not record.is_completed():
            return False
        self._complete(record, now)
        logger.info(
            "Enrollment auto-completed",
            extra={"enrollment_id": str(record.id), "grade": record.grade},
        )
        return True

    @staticmethod
    def _complete(record: EnrollmentRecord, now: datetime) -> None:
        record.status = EnrollmentStatus.COMPLETED
        record.completion_date = now
        grade = compute_grade(record.progress)
        if grade is not None:
            record.grade = grade
