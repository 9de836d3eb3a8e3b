"""Upcoming-deadline ranker.

Turns aggregated records into the prioritised "next 12 months" deadline list.
Overdue services are left out; they are counted by the scorecard instead.
"""

from collections.abc import Iterable
from datetime import datetime

from dateutil.relativedelta import relativedelta

from practice_compliance_engine.compliance.classifier import days_until
from practice_compliance_engine.core.models import (
    Priority,
    ServiceComplianceRecord,
    UpcomingDeadline,
)

DEFAULT_HORIZON_MONTHS = 12

# Priority tiers in days until due
HIGH_PRIORITY_DAYS = 7
MEDIUM_PRIORITY_DAYS = 30


def priority_for(days_until_due: int) -> Priority:
    """Map days until due to a priority tier.

    Args:
        days_until_due: Non-negative whole days until the deadline.

    Returns:
        HIGH within a week, MEDIUM within a month, LOW otherwise.
    """
    if days_until_due <= HIGH_PRIORITY_DAYS:
        return Priority.HIGH
    if days_until_due <= MEDIUM_PRIORITY_DAYS:
        return Priority.MEDIUM
    return Priority.LOW


def rank(
    records: Iterable[ServiceComplianceRecord],
    now: datetime,
    horizon_months: int = DEFAULT_HORIZON_MONTHS,
) -> list[UpcomingDeadline]:
    """Rank the upcoming deadlines of required, subscribed services.

    Args:
        records: Records produced by the aggregator.
        now: The evaluation instant shared by the whole report.
        horizon_months: Deadlines further away than this are ignored.

    Returns:
        Deadlines sorted soonest first, ties broken by service name.
    """
    horizon = now + relativedelta(months=horizon_months)
    deadlines: list[UpcomingDeadline] = []

    for record in records:
        if not (record.is_required and record.is_subscribed):
            continue
        if record.next_due_at is None or record.next_due_at > horizon:
            continue

        remaining = days_until(record.next_due_at, now)
        if remaining < 0:
            continue

        deadlines.append(
            UpcomingDeadline(
                service_id=record.service_id,
                service_name=record.service_name,
                due_date=record.next_due_at,
                frequency=record.frequency,
                priority=priority_for(remaining),
                days_until_due=remaining,
            )
        )

    deadlines.sort(key=lambda d: (d.days_until_due, d.service_name))
    return deadlines
