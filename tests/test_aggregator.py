"""Tests for the service compliance aggregator and compliance history.

Covers the reference scenarios for overdue, upcoming and task-less services,
deadline precedence, recurrence from completions, frequency labels, and
history grouping.
"""

from datetime import UTC, datetime

import pytest
from dateutil.relativedelta import relativedelta

from conftest import COMPLETED_ID, ENTITY_ID, NOW, days, make_subscription, make_task
from practice_compliance_engine.compliance.aggregator import (
    FREQUENCY_NOT_AVAILABLE,
    aggregate,
    build_compliance_history,
)
from practice_compliance_engine.compliance.deadlines import rank
from practice_compliance_engine.compliance.scorecard import summarize
from practice_compliance_engine.core.models import ComplianceStatus, Priority
from practice_compliance_engine.errors import InvalidFrequencyError


# ---------------------------------------------------------------------------
# Test 1: Reference scenarios
# ---------------------------------------------------------------------------


def test_scenario_a_overdue_deadline() -> None:
    """A pending task past its deadline is overdue, unranked, and counted."""
    records = aggregate(
        [make_subscription()],
        [make_task(compliance_deadline=NOW - days(5))],
        NOW,
        COMPLETED_ID,
    )

    assert records[0].status is ComplianceStatus.OVERDUE
    assert rank(records, NOW) == []
    assert summarize(records).overdue_services == 1


def test_scenario_b_upcoming_medium_priority() -> None:
    records = aggregate(
        [make_subscription()],
        [make_task(compliance_deadline=NOW + days(10))],
        NOW,
        COMPLETED_ID,
    )

    assert records[0].status is ComplianceStatus.UPCOMING
    deadlines = rank(records, NOW)
    assert len(deadlines) == 1
    assert deadlines[0].priority is Priority.MEDIUM
    assert deadlines[0].days_until_due == 10


def test_scenario_c_high_priority() -> None:
    records = aggregate(
        [make_subscription()],
        [make_task(compliance_deadline=NOW + days(3))],
        NOW,
        COMPLETED_ID,
    )
    assert rank(records, NOW)[0].priority is Priority.HIGH


def test_scenario_d_no_tasks() -> None:
    """A required, subscribed service without tasks has no deadline and needs attention."""
    records = aggregate([make_subscription()], [], NOW, COMPLETED_ID)

    record = records[0]
    assert record.next_due_at is None
    assert record.status is ComplianceStatus.UPCOMING
    assert record.completion_rate_pct == 0
    assert record.last_completed_at is None


# ---------------------------------------------------------------------------
# Test 2: Deadline resolution
# ---------------------------------------------------------------------------


def test_recurrence_from_last_completion() -> None:
    """Without an explicit deadline the next due date follows the last completion."""
    completed_at = NOW - days(100)
    tasks = [
        make_task(
            status_id=COMPLETED_ID,
            created_at=completed_at,
            compliance_frequency="Quarterly",
        )
    ]

    record = aggregate([make_subscription()], tasks, NOW, COMPLETED_ID)[0]

    assert record.last_completed_at == completed_at
    assert record.next_due_at == completed_at + relativedelta(months=3)
    assert record.status is ComplianceStatus.OVERDUE
    assert record.frequency == "Quarterly"
    assert record.completion_rate_pct == 100.0


def test_missing_frequency_defaults_to_yearly() -> None:
    completed_at = NOW - days(100)
    tasks = [make_task(status_id=COMPLETED_ID, created_at=completed_at)]

    record = aggregate([make_subscription()], tasks, NOW, COMPLETED_ID)[0]

    assert record.next_due_at == completed_at + relativedelta(years=1)
    assert record.frequency_defaulted is True
    assert record.status is ComplianceStatus.COMPLIANT


def test_latest_task_deadline_wins() -> None:
    """The most recently opened task's deadline overrides older history."""
    tasks = [
        make_task(task_id=1, status_id=COMPLETED_ID, created_at=NOW - days(400), compliance_deadline=NOW - days(300)),
        make_task(task_id=2, created_at=NOW - days(10), compliance_deadline=NOW + days(60)),
    ]

    record = aggregate([make_subscription()], tasks, NOW, COMPLETED_ID)[0]

    assert record.next_due_at == NOW + days(60)
    assert record.status is ComplianceStatus.COMPLIANT
    assert record.completion_rate_pct == 50.0


def test_created_at_tie_resolves_to_higher_id() -> None:
    opened = NOW - days(3)
    tasks = [
        make_task(task_id=8, created_at=opened, compliance_deadline=NOW - days(1)),
        make_task(task_id=5, created_at=opened, compliance_deadline=NOW + days(90)),
    ]

    record = aggregate([make_subscription()], tasks, NOW, COMPLETED_ID)[0]

    assert record.next_due_at == NOW - days(1)


def test_pending_tasks_without_completion_have_no_deadline() -> None:
    """Recurrence needs a completion to step from; pending work alone gives none."""
    tasks = [make_task(compliance_frequency="Monthly")]
    record = aggregate([make_subscription()], tasks, NOW, COMPLETED_ID)[0]
    assert record.next_due_at is None
    assert record.frequency == "Monthly"


def test_strict_frequency_raises() -> None:
    tasks = [make_task(status_id=COMPLETED_ID, compliance_frequency="Weekly")]
    with pytest.raises(InvalidFrequencyError):
        aggregate([make_subscription()], tasks, NOW, COMPLETED_ID, strict_frequency=True)


def test_lenient_frequency_flags_default() -> None:
    tasks = [make_task(status_id=COMPLETED_ID, compliance_frequency="Weekly")]
    record = aggregate([make_subscription()], tasks, NOW, COMPLETED_ID)[0]
    assert record.frequency_defaulted is True
    assert record.frequency == "Weekly"


# ---------------------------------------------------------------------------
# Test 3: Service selection and labels
# ---------------------------------------------------------------------------


def test_unconfigured_services_are_skipped() -> None:
    subscriptions = [
        make_subscription(service_type_id=1),
        make_subscription(service_type_id=2, service_name="Payroll", is_required=False, is_subscribed=False),
    ]
    records = aggregate(subscriptions, [], NOW, COMPLETED_ID)
    assert [r.service_id for r in records] == [1]


def test_required_but_unsubscribed_is_not_subscribed() -> None:
    subscriptions = [make_subscription(is_subscribed=False)]
    tasks = [make_task(compliance_deadline=NOW - days(30))]
    record = aggregate(subscriptions, tasks, NOW, COMPLETED_ID)[0]
    assert record.status is ComplianceStatus.NOT_SUBSCRIBED


def test_tasks_of_other_entities_are_ignored() -> None:
    tasks = [make_task(entity_id=ENTITY_ID + 1, compliance_deadline=NOW - days(5))]
    record = aggregate([make_subscription()], tasks, NOW, COMPLETED_ID)[0]
    assert record.next_due_at is None
    assert record.completion_rate_pct == 0


def test_frequency_label_falls_back_to_billing_basis() -> None:
    records = aggregate(
        [
            make_subscription(service_type_id=1, billing_basis="Monthly"),
            make_subscription(service_type_id=2, service_name="BAS"),
        ],
        [],
        NOW,
        COMPLETED_ID,
    )
    assert records[0].frequency == "Monthly"
    assert records[1].frequency == FREQUENCY_NOT_AVAILABLE


# ---------------------------------------------------------------------------
# Test 4: Compliance history
# ---------------------------------------------------------------------------


def test_history_groups_tasks_by_period() -> None:
    """Entries are per service per creation month, newest period first."""
    subscriptions = [
        make_subscription(service_type_id=1, service_name="GST Return"),
        make_subscription(service_type_id=2, service_name="BAS"),
    ]
    tasks = [
        make_task(
            task_id=1,
            status_id=COMPLETED_ID,
            created_at=datetime(2025, 5, 10, tzinfo=UTC),
            updated_at=datetime(2025, 5, 20, tzinfo=UTC),
        ),
        make_task(task_id=2, created_at=datetime(2025, 5, 25, tzinfo=UTC)),
        make_task(task_id=3, status_id=COMPLETED_ID, created_at=datetime(2025, 4, 2, tzinfo=UTC)),
        make_task(task_id=4, service_type_id=2, created_at=datetime(2025, 5, 3, tzinfo=UTC)),
    ]

    history = build_compliance_history(subscriptions, tasks, COMPLETED_ID)

    assert [(e.period, e.service_name) for e in history] == [
        ("2025-05", "BAS"),
        ("2025-05", "GST Return"),
        ("2025-04", "GST Return"),
    ]

    bas, gst_may, gst_april = history
    assert bas.has_completed is False
    assert bas.completion_date is None

    assert gst_may.total_tasks == 2
    assert gst_may.completed_tasks == 1
    assert gst_may.completion_date == datetime(2025, 5, 20, tzinfo=UTC)

    # Without an update timestamp the creation time stands in
    assert gst_april.completion_date == datetime(2025, 4, 2, tzinfo=UTC)


def test_history_empty_without_tasks() -> None:
    assert build_compliance_history([make_subscription()], [], COMPLETED_ID) == []
