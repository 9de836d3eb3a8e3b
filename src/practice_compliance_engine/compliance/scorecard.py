"""Scorecard calculator.

Reduces ServiceComplianceRecords to an overall compliance percentage and
status counts.

Scoring:
    overall_score_pct = round((compliant + upcoming * UPCOMING_PARTIAL_CREDIT)
                              / subscribed * 100)

An upcoming service earns partial credit: it is not yet late but still needs
attention. With nothing subscribed the score is 0, never a division error.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from practice_compliance_engine.core.models import (
    ComplianceScorecard,
    ComplianceStatus,
    ServiceComplianceRecord,
)

UPCOMING_PARTIAL_CREDIT = 0.5


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Args:
        value: The value to round.

    Returns:
        Rounded integer (2.5 -> 3, unlike the built-in round()).
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: float, whole: float) -> int:
    """Return part / whole as a rounded 0-100 percentage, or 0 when whole is 0.

    Args:
        part: Numerator.
        whole: Denominator.

    Returns:
        Rounded percentage.
    """
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def summarize(
    records: Iterable[ServiceComplianceRecord],
    upcoming_credit: float = UPCOMING_PARTIAL_CREDIT,
) -> ComplianceScorecard:
    """Summarize per-service records into a compliance scorecard.

    Args:
        records: Records produced by the aggregator.
        upcoming_credit: Credit an upcoming service earns (0.0-1.0).

    Returns:
        ComplianceScorecard. Empty input yields all-zero counts and score.
    """
    breakdown = list(records)

    counts = {status: 0 for status in ComplianceStatus}
    for record in breakdown:
        counts[record.status] += 1

    subscribed = sum(1 for r in breakdown if r.is_subscribed)
    compliant = counts[ComplianceStatus.COMPLIANT]
    upcoming = counts[ComplianceStatus.UPCOMING]

    return ComplianceScorecard(
        overall_score_pct=percentage(compliant + upcoming * upcoming_credit, subscribed),
        total_services=len(breakdown),
        required_services=sum(1 for r in breakdown if r.is_required),
        subscribed_services=subscribed,
        compliant_services=compliant,
        overdue_services=counts[ComplianceStatus.OVERDUE],
        upcoming_count=upcoming,
        not_subscribed_count=counts[ComplianceStatus.NOT_SUBSCRIBED],
        breakdown=breakdown,
    )
