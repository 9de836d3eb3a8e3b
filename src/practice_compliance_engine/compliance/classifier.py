"""Compliance classifier.

Assigns one ComplianceStatus to a service from its subscription state and
resolved due date. The same function backs the entity scorecard, the risk
reports and the notification triggers, so an alert can never disagree with
the status a dashboard shows.

Decision order:
1. Not subscribed -> not-subscribed (short-circuits everything else)
2. No computable deadline -> policy.missing_deadline_status (upcoming by default)
3. days_until_due < 0 -> overdue
4. days_until_due <= policy.upcoming_window_days -> upcoming
5. otherwise -> compliant
"""

import math
from dataclasses import dataclass
from datetime import datetime

from practice_compliance_engine.core.models import ComplianceStatus
from practice_compliance_engine.settings import Settings

_SECONDS_PER_DAY = 86400

# Default classifier constants
UPCOMING_WINDOW_DAYS = 30
MISSING_DEADLINE_STATUS = ComplianceStatus.UPCOMING


@dataclass(frozen=True)
class ClassifierPolicy:
    """Thresholds the classifier applies.

    Attributes:
        upcoming_window_days: Due dates at most this many days away are upcoming.
        missing_deadline_status: Status for an active subscription without a
            computable deadline. Never COMPLIANT: missing data needs attention.
    """

    upcoming_window_days: int = UPCOMING_WINDOW_DAYS
    missing_deadline_status: ComplianceStatus = MISSING_DEADLINE_STATUS

    def __post_init__(self) -> None:
        """Reject policies that would hide missing deadlines or invert the window.

        Raises:
            ValueError: If the window is negative or the missing-deadline status
                is not upcoming or overdue.
        """
        if self.upcoming_window_days < 0:
            raise ValueError("upcoming_window_days must be >= 0")
        if self.missing_deadline_status not in (ComplianceStatus.UPCOMING, ComplianceStatus.OVERDUE):
            raise ValueError("missing_deadline_status must be upcoming or overdue")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClassifierPolicy":
        """Build a policy from service settings.

        Args:
            settings: Loaded Settings.

        Returns:
            ClassifierPolicy with the configured thresholds.
        """
        return cls(
            upcoming_window_days=settings.upcoming_window_days,
            missing_deadline_status=ComplianceStatus(settings.missing_deadline_status),
        )


DEFAULT_POLICY = ClassifierPolicy()


def days_until(due_at: datetime, now: datetime) -> int:
    """Whole days from ``now`` until ``due_at``, rounded up.

    A deadline later today counts as 1 day away; one earlier today counts as 0.

    Args:
        due_at: The deadline.
        now: The evaluation instant.

    Returns:
        ceil((due_at - now) / 1 day). Negative when the deadline has passed.
    """
    return math.ceil((due_at - now).total_seconds() / _SECONDS_PER_DAY)


def classify(
    is_subscribed: bool,
    next_due_at: datetime | None,
    now: datetime,
    policy: ClassifierPolicy = DEFAULT_POLICY,
) -> ComplianceStatus:
    """Classify a service's compliance status.

    Args:
        is_subscribed: Whether the entity is enrolled for the service.
        next_due_at: Resolved next deadline, or None if none is computable.
        now: The evaluation instant shared by the whole report.
        policy: Classifier thresholds.

    Returns:
        The ComplianceStatus bucket.
    """
    if not is_subscribed:
        return ComplianceStatus.NOT_SUBSCRIBED
    if next_due_at is None:
        return policy.missing_deadline_status

    remaining = days_until(next_due_at, now)
    if remaining < 0:
        return ComplianceStatus.OVERDUE
    if remaining <= policy.upcoming_window_days:
        return ComplianceStatus.UPCOMING
    return ComplianceStatus.COMPLIANT
