"""Jurisdiction and client risk scoring.

Risk formula:
    raw = overdue_count * OVERDUE_WEIGHT
          + (100 - compliance_rate_pct)
          + (100 - completion_rate_pct)
    score = clamp(raw, 0, 100)

Levels: score >= 50 is High, >= 25 is Medium, otherwise Low.

The compliance rate of a group is the real scorecard score of its services,
computed by the same aggregator and scorecard the entity view uses.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import datetime

from practice_compliance_engine.compliance.aggregator import aggregate
from practice_compliance_engine.compliance.classifier import (
    DEFAULT_POLICY,
    ClassifierPolicy,
    classify,
)
from practice_compliance_engine.compliance.scorecard import (
    UPCOMING_PARTIAL_CREDIT,
    percentage,
    summarize,
)
from practice_compliance_engine.core.models import (
    ComplianceStatus,
    ComplianceTask,
    RiskAssessment,
    RiskLevel,
    RiskProfile,
    ServiceSubscription,
)
from practice_compliance_engine.observability import get_logger

logger = get_logger(__name__)

OVERDUE_WEIGHT = 10
HIGH_RISK_THRESHOLD = 50
MEDIUM_RISK_THRESHOLD = 25


def _clamp(value: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, value)))


def risk_level_for(score: int) -> RiskLevel:
    """Map a 0-100 risk score to its level."""
    if score >= HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def risk_score(
    overdue_count: int,
    compliance_rate_pct: float,
    completion_rate_pct: float,
) -> RiskAssessment:
    """Compute a clamped risk score and level.

    Args:
        overdue_count: Pending tasks past their deadline.
        compliance_rate_pct: Scorecard compliance score, 0-100.
        completion_rate_pct: Completed over total tasks, 0-100.

    Returns:
        RiskAssessment with score in [0, 100] and its RiskLevel.
    """
    raw = (
        overdue_count * OVERDUE_WEIGHT
        + (100 - compliance_rate_pct)
        + (100 - completion_rate_pct)
    )
    score = _clamp(raw)
    return RiskAssessment(score=score, level=risk_level_for(score))


def task_deadline(task: ComplianceTask) -> datetime | None:
    """Return the deadline a pending task is measured against.

    The compliance deadline wins over the internal work due date.
    """
    return task.compliance_deadline or task.due_date


def count_overdue_tasks(
    tasks: Iterable[ComplianceTask],
    now: datetime,
    completed_status_id: int,
    policy: ClassifierPolicy = DEFAULT_POLICY,
) -> int:
    """Count pending tasks whose deadline classifies as overdue.

    Tasks without any deadline are not counted.

    Args:
        tasks: Tasks to inspect.
        now: The evaluation instant.
        completed_status_id: Id of the tenant's completed status.
        policy: Classifier thresholds.

    Returns:
        Number of overdue pending tasks.
    """
    overdue = 0
    for task in tasks:
        if task.status_id == completed_status_id:
            continue
        deadline = task_deadline(task)
        if deadline is None:
            continue
        if classify(True, deadline, now, policy) is ComplianceStatus.OVERDUE:
            overdue += 1
    return overdue


def build_risk_profile(
    name: str,
    subscriptions: Iterable[ServiceSubscription],
    tasks: Iterable[ComplianceTask],
    now: datetime,
    completed_status_id: int,
    policy: ClassifierPolicy = DEFAULT_POLICY,
    upcoming_credit: float = UPCOMING_PARTIAL_CREDIT,
    strict_frequency: bool = False,
) -> RiskProfile:
    """Build the risk profile of one jurisdiction or client.

    Args:
        name: Jurisdiction or client name.
        subscriptions: Subscriptions of every entity in the group.
        tasks: Tasks of every entity in the group.
        now: The evaluation instant.
        completed_status_id: Id of the tenant's completed status.
        policy: Classifier thresholds.
        upcoming_credit: Partial credit for upcoming services in the scorecard.
        strict_frequency: Reject unrecognised frequency labels, exactly as the
            entity report does.

    Returns:
        RiskProfile for the group.

    Raises:
        InvalidFrequencyError: If ``strict_frequency`` and a task carries an
            unrecognised frequency label.
    """
    task_list = list(tasks)
    records = aggregate(
        subscriptions,
        task_list,
        now,
        completed_status_id,
        policy=policy,
        strict_frequency=strict_frequency,
    )
    scorecard = summarize(records, upcoming_credit=upcoming_credit)

    completed = sum(1 for t in task_list if t.status_id == completed_status_id)
    completion_rate_pct = percentage(completed, len(task_list))
    overdue_count = count_overdue_tasks(task_list, now, completed_status_id, policy)

    assessment = risk_score(overdue_count, scorecard.overall_score_pct, completion_rate_pct)
    return RiskProfile(
        name=name,
        risk_score=assessment.score,
        risk_level=assessment.level,
        overdue_count=overdue_count,
        compliance_gap_pct=100 - scorecard.overall_score_pct,
        compliance_rate_pct=scorecard.overall_score_pct,
        completion_rate_pct=completion_rate_pct,
        total_tasks=len(task_list),
    )


def build_risk_profiles(
    entity_jurisdictions: Mapping[int, str],
    subscriptions: Iterable[ServiceSubscription],
    tasks: Iterable[ComplianceTask],
    now: datetime,
    completed_status_id: int,
    policy: ClassifierPolicy = DEFAULT_POLICY,
    upcoming_credit: float = UPCOMING_PARTIAL_CREDIT,
    strict_frequency: bool = False,
) -> list[RiskProfile]:
    """Build risk profiles for every jurisdiction with something to assess.

    Entities missing from ``entity_jurisdictions`` are ignored. Jurisdictions
    whose entities have no configured services and no tasks are skipped.

    Args:
        entity_jurisdictions: Entity id to jurisdiction name.
        subscriptions: Tenant subscriptions.
        tasks: Tenant tasks.
        now: The evaluation instant.
        completed_status_id: Id of the tenant's completed status.
        policy: Classifier thresholds.
        upcoming_credit: Partial credit for upcoming services in the scorecard.
        strict_frequency: Reject unrecognised frequency labels.

    Returns:
        Profiles ordered by risk score descending, then name.

    Raises:
        InvalidFrequencyError: If ``strict_frequency`` and a task carries an
            unrecognised frequency label.
    """
    subs_by_group: dict[str, list[ServiceSubscription]] = defaultdict(list)
    tasks_by_group: dict[str, list[ComplianceTask]] = defaultdict(list)

    for subscription in subscriptions:
        group = entity_jurisdictions.get(subscription.entity_id)
        if group is not None and (subscription.is_required or subscription.is_subscribed):
            subs_by_group[group].append(subscription)
    for task in tasks:
        group = entity_jurisdictions.get(task.entity_id)
        if group is not None:
            tasks_by_group[group].append(task)

    profiles = [
        build_risk_profile(
            name,
            subs_by_group[name],
            tasks_by_group[name],
            now,
            completed_status_id,
            policy=policy,
            upcoming_credit=upcoming_credit,
            strict_frequency=strict_frequency,
        )
        for name in sorted(set(subs_by_group) | set(tasks_by_group))
    ]
    profiles.sort(key=lambda p: (-p.risk_score, p.name))

    logger.info(
        "Jurisdiction risk profiles built",
        jurisdiction_count=len(profiles),
        high_risk=sum(1 for p in profiles if p.risk_level is RiskLevel.HIGH),
    )
    return profiles
