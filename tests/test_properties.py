"""Property tests for the derivation invariants.

Covers idempotence, the status partition, monotonicity of status in ``now``,
the recurrence round trip, and score bounds on pathological input.
"""

from datetime import UTC, datetime, timedelta

from hypothesis import given, settings, strategies as st

from conftest import COMPLETED_ID, PENDING_ID
from practice_compliance_engine.compliance.aggregator import aggregate
from practice_compliance_engine.compliance.classifier import classify
from practice_compliance_engine.compliance.recurrence import next_occurrence, previous_occurrence
from practice_compliance_engine.compliance.scorecard import summarize
from practice_compliance_engine.core.models import (
    ComplianceStatus,
    ComplianceTask,
    Frequency,
    ServiceSubscription,
)
from practice_compliance_engine.performance.productivity import productivity_score
from practice_compliance_engine.performance.risk import risk_score

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)

utc_datetimes = st.datetimes(
    min_value=datetime(2000, 1, 1),
    max_value=datetime(2050, 12, 31),
    timezones=st.just(UTC),
)
frequencies = st.sampled_from([*Frequency, "annual", "Fortnightly", None])

subscriptions = st.builds(
    ServiceSubscription,
    entity_id=st.just(1),
    service_type_id=st.integers(min_value=1, max_value=5),
    service_name=st.sampled_from(["GST Return", "BAS", "PAYG"]),
    is_required=st.booleans(),
    is_subscribed=st.booleans(),
    billing_basis=st.sampled_from([None, "Monthly", "Yearly"]),
)
tasks = st.builds(
    ComplianceTask,
    id=st.integers(min_value=1, max_value=10_000),
    service_type_id=st.integers(min_value=1, max_value=5),
    entity_id=st.just(1),
    status_id=st.sampled_from([PENDING_ID, COMPLETED_ID]),
    created_at=utc_datetimes,
    compliance_deadline=st.none() | utc_datetimes,
    compliance_frequency=frequencies.map(lambda f: f.value if isinstance(f, Frequency) else f),
)

# Higher means worse; must never decrease as time passes
_SEVERITY = {
    ComplianceStatus.COMPLIANT: 0,
    ComplianceStatus.UPCOMING: 1,
    ComplianceStatus.OVERDUE: 2,
}


# ---------------------------------------------------------------------------
# Test 1: Idempotence
# ---------------------------------------------------------------------------


@given(st.lists(subscriptions, max_size=6), st.lists(tasks, max_size=15))
def test_aggregate_is_idempotent(subs: list[ServiceSubscription], task_list: list[ComplianceTask]) -> None:
    """The same input and now always produce the same records."""
    first = aggregate(subs, task_list, NOW, COMPLETED_ID)
    second = aggregate(subs, task_list, NOW, COMPLETED_ID)
    assert first == second


# ---------------------------------------------------------------------------
# Test 2: Partition and bounds of the scorecard
# ---------------------------------------------------------------------------


@given(st.lists(subscriptions, max_size=6), st.lists(tasks, max_size=15))
def test_scorecard_partitions_services(
    subs: list[ServiceSubscription], task_list: list[ComplianceTask]
) -> None:
    scorecard = summarize(aggregate(subs, task_list, NOW, COMPLETED_ID))
    assert (
        scorecard.compliant_services
        + scorecard.overdue_services
        + scorecard.upcoming_count
        + scorecard.not_subscribed_count
    ) == scorecard.total_services
    assert 0 <= scorecard.overall_score_pct <= 100


# ---------------------------------------------------------------------------
# Test 3: Monotonicity in now
# ---------------------------------------------------------------------------


@given(utc_datetimes, utc_datetimes, st.integers(min_value=0, max_value=4000))
def test_status_only_worsens_as_time_passes(due_at: datetime, now: datetime, hours: int) -> None:
    later = now + timedelta(hours=hours)
    before = classify(True, due_at, now)
    after = classify(True, due_at, later)
    assert _SEVERITY[after] >= _SEVERITY[before]


# ---------------------------------------------------------------------------
# Test 4: Recurrence round trip
# ---------------------------------------------------------------------------


@given(utc_datetimes, st.sampled_from(list(Frequency)))
def test_recurrence_round_trip(last_date: datetime, frequency: Frequency) -> None:
    """Stepping forward then back returns the date, up to month-end clamping."""
    restored = previous_occurrence(next_occurrence(last_date, frequency), frequency)
    if last_date.day <= 28:
        assert restored == last_date
    else:
        assert timedelta(0) <= last_date - restored <= timedelta(days=3)


@given(utc_datetimes, st.sampled_from(list(Frequency)))
def test_next_occurrence_is_later(last_date: datetime, frequency: Frequency) -> None:
    assert next_occurrence(last_date, frequency) > last_date


# ---------------------------------------------------------------------------
# Test 5: Score bounds on pathological input
# ---------------------------------------------------------------------------

pathological = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False)


@settings(max_examples=200)
@given(st.integers(min_value=0, max_value=10_000), pathological, pathological)
def test_risk_score_bounded(overdue: int, compliance: float, completion: float) -> None:
    assert 0 <= risk_score(overdue, compliance, completion).score <= 100


@settings(max_examples=200)
@given(pathological, pathological, pathological)
def test_productivity_score_bounded(completion: float, on_time: float, avg_days: float) -> None:
    assert 0 <= productivity_score(completion, on_time, avg_days) <= 100
