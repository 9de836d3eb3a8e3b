"""Tests for jurisdiction risk scoring."""

import pytest

from conftest import COMPLETED_ID, NOW, days, make_subscription, make_task
from practice_compliance_engine.performance.risk import (
    build_risk_profile,
    build_risk_profiles,
    count_overdue_tasks,
    risk_level_for,
    risk_score,
)
from practice_compliance_engine.core.models import RiskLevel
from practice_compliance_engine.errors import InvalidFrequencyError


# ---------------------------------------------------------------------------
# Test 1: Score formula
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("overdue", "compliance", "completion", "score", "level"),
    [
        (0, 100, 100, 0, RiskLevel.LOW),
        (0, 90, 86, 24, RiskLevel.LOW),
        (1, 90, 95, 25, RiskLevel.MEDIUM),
        (2, 80, 70, 70, RiskLevel.HIGH),
        (20, 0, 0, 100, RiskLevel.HIGH),
    ],
)
def test_risk_score(overdue: int, compliance: int, completion: int, score: int, level: RiskLevel) -> None:
    """Overdue work weighs 10 points each on top of both shortfalls, clamped to 100."""
    assessment = risk_score(overdue, compliance, completion)
    assert assessment.score == score
    assert assessment.level is level


def test_risk_score_never_negative() -> None:
    assert risk_score(0, 150, 150).score == 0


def test_risk_level_thresholds() -> None:
    assert risk_level_for(49) is RiskLevel.MEDIUM
    assert risk_level_for(50) is RiskLevel.HIGH


# ---------------------------------------------------------------------------
# Test 2: Overdue task counting
# ---------------------------------------------------------------------------


def test_count_overdue_tasks() -> None:
    tasks = [
        make_task(task_id=1, due_date=NOW - days(3)),
        make_task(task_id=2, status_id=COMPLETED_ID, compliance_deadline=NOW - days(3)),
        make_task(task_id=3),
        make_task(task_id=4, compliance_deadline=NOW + days(10), due_date=NOW - days(3)),
        make_task(task_id=5, compliance_deadline=NOW - days(1)),
    ]
    assert count_overdue_tasks(tasks, NOW, COMPLETED_ID) == 2


# ---------------------------------------------------------------------------
# Test 3: Profiles
# ---------------------------------------------------------------------------


def test_build_risk_profile_uses_real_scorecard() -> None:
    """The compliance rate is the group's scorecard score, not a placeholder."""
    subscriptions = [make_subscription(service_type_id=1), make_subscription(service_type_id=2, service_name="BAS")]
    tasks = [
        make_task(task_id=1, service_type_id=1, status_id=COMPLETED_ID, compliance_deadline=NOW + days(60)),
        make_task(task_id=2, service_type_id=2, compliance_deadline=NOW - days(5)),
    ]

    profile = build_risk_profile("New South Wales", subscriptions, tasks, NOW, COMPLETED_ID)

    assert profile.compliance_rate_pct == 50
    assert profile.compliance_gap_pct == 50
    assert profile.completion_rate_pct == 50
    assert profile.overdue_count == 1
    assert profile.total_tasks == 2
    assert profile.risk_score == 100
    assert profile.risk_level is RiskLevel.HIGH


def test_build_risk_profiles_groups_by_jurisdiction() -> None:
    jurisdictions = {100: "New South Wales", 101: "New South Wales", 200: "Victoria", 300: "Queensland"}
    subscriptions = [
        make_subscription(service_type_id=1, entity_id=100),
        make_subscription(service_type_id=2, service_name="BAS", entity_id=101),
        make_subscription(service_type_id=3, service_name="PAYG", entity_id=200),
        make_subscription(service_type_id=3, service_name="PAYG", entity_id=300, is_required=False, is_subscribed=False),
    ]
    tasks = [
        make_task(task_id=1, service_type_id=1, entity_id=100, status_id=COMPLETED_ID, compliance_deadline=NOW + days(60)),
        make_task(task_id=2, service_type_id=2, entity_id=101, compliance_deadline=NOW - days(5)),
        make_task(task_id=3, service_type_id=3, entity_id=200, status_id=COMPLETED_ID, compliance_deadline=NOW + days(90)),
        make_task(task_id=4, service_type_id=3, entity_id=999, compliance_deadline=NOW - days(50)),
    ]

    profiles = build_risk_profiles(jurisdictions, subscriptions, tasks, NOW, COMPLETED_ID)

    assert [p.name for p in profiles] == ["New South Wales", "Victoria"]
    nsw, vic = profiles
    assert (nsw.risk_score, nsw.overdue_count, nsw.total_tasks) == (100, 1, 2)
    assert (vic.risk_score, vic.risk_level) == (0, RiskLevel.LOW)
    assert vic.compliance_rate_pct == 100


def test_build_risk_profiles_empty() -> None:
    assert build_risk_profiles({}, [], [], NOW, COMPLETED_ID) == []


def test_build_risk_profiles_strict_frequency_matches_entity_report() -> None:
    """Strict mode rejects the same unknown frequency the entity report rejects."""
    jurisdictions = {100: "New South Wales"}
    subscriptions = [make_subscription()]
    tasks = [make_task(status_id=COMPLETED_ID, compliance_frequency="Fortnightly")]

    lenient = build_risk_profiles(jurisdictions, subscriptions, tasks, NOW, COMPLETED_ID)
    assert lenient[0].compliance_rate_pct == 100

    with pytest.raises(InvalidFrequencyError):
        build_risk_profiles(jurisdictions, subscriptions, tasks, NOW, COMPLETED_ID, strict_frequency=True)
