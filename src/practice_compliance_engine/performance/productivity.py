"""Team productivity scoring.

Productivity score (0-100), base 50:
- Completion rate: >= 80% +20, >= 60% +10
- On-time rate: >= 90% +20, >= 70% +10
- Average completion days: <= 3 +10, <= 5 +5, > 10 -10

The result is clamped to [0, 100]. This is the only productivity formula;
report pages must not carry their own weighting.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime

from practice_compliance_engine.compliance.classifier import (
    DEFAULT_POLICY,
    ClassifierPolicy,
    classify,
)
from practice_compliance_engine.compliance.scorecard import percentage, round_half_up
from practice_compliance_engine.core.models import (
    ComplianceStatus,
    ComplianceTask,
    TeamEfficiencyReport,
    TeamMemberPerformance,
)
from practice_compliance_engine.observability import get_logger

logger = get_logger(__name__)

BASE_PRODUCTIVITY = 50

# (minimum percentage, bonus) tiers, checked in order
COMPLETION_RATE_TIERS: tuple[tuple[int, int], ...] = ((80, 20), (60, 10))
ON_TIME_RATE_TIERS: tuple[tuple[int, int], ...] = ((90, 20), (70, 10))

FAST_COMPLETION_DAYS = 3
FAST_COMPLETION_BONUS = 10
QUICK_COMPLETION_DAYS = 5
QUICK_COMPLETION_BONUS = 5
SLOW_COMPLETION_DAYS = 10
SLOW_COMPLETION_PENALTY = 10

# Workload balance upper bounds (tasks)
LIGHT_WORKLOAD_MAX = 5
MODERATE_WORKLOAD_MAX = 10

_SECONDS_PER_DAY = 86400


def _tier_bonus(value: float, tiers: tuple[tuple[int, int], ...]) -> int:
    for minimum, bonus in tiers:
        if value >= minimum:
            return bonus
    return 0


def productivity_score(
    completion_rate_pct: float,
    on_time_rate_pct: float,
    avg_completion_days: float,
) -> int:
    """Compute the canonical productivity score.

    Args:
        completion_rate_pct: Completed over assigned tasks, 0-100.
        on_time_rate_pct: Completed on time over completed tasks, 0-100.
        avg_completion_days: Mean days from creation to completion.

    Returns:
        Score clamped to [0, 100].
    """
    score = BASE_PRODUCTIVITY
    score += _tier_bonus(completion_rate_pct, COMPLETION_RATE_TIERS)
    score += _tier_bonus(on_time_rate_pct, ON_TIME_RATE_TIERS)

    if avg_completion_days <= FAST_COMPLETION_DAYS:
        score += FAST_COMPLETION_BONUS
    elif avg_completion_days <= QUICK_COMPLETION_DAYS:
        score += QUICK_COMPLETION_BONUS
    elif avg_completion_days > SLOW_COMPLETION_DAYS:
        score -= SLOW_COMPLETION_PENALTY

    return max(0, min(100, score))


def performance_rating(on_time_rate_pct: float, avg_completion_days: float) -> str:
    """Rate a team member from punctuality and speed."""
    if on_time_rate_pct >= 90 and avg_completion_days <= 3:
        return "Excellent"
    if on_time_rate_pct >= 80 and avg_completion_days <= 5:
        return "Good"
    if on_time_rate_pct < 60 or avg_completion_days > 10:
        return "Needs Improvement"
    return "Average"


def workload_balance(total_tasks: int) -> str:
    """Bucket an assignee's task count into Light, Moderate or Heavy."""
    if total_tasks <= LIGHT_WORKLOAD_MAX:
        return "Light"
    if total_tasks <= MODERATE_WORKLOAD_MAX:
        return "Moderate"
    return "Heavy"


def completion_days(task: ComplianceTask) -> int | None:
    """Whole days between opening and the last update, rounded up.

    Args:
        task: A completed task.

    Returns:
        Days to completion, or None when the task has no update timestamp.
    """
    if task.updated_at is None:
        return None
    return math.ceil((task.updated_at - task.created_at).total_seconds() / _SECONDS_PER_DAY)


def build_member_performance(
    member_id: int,
    name: str,
    tasks: Iterable[ComplianceTask],
    now: datetime,
    completed_status_id: int,
    policy: ClassifierPolicy = DEFAULT_POLICY,
) -> TeamMemberPerformance:
    """Compute workload and productivity metrics for one assignee.

    Args:
        member_id: Assignee id.
        name: Display name.
        tasks: Tasks assigned to the member.
        now: The evaluation instant.
        completed_status_id: Id of the tenant's completed status.
        policy: Classifier thresholds used for overdue detection.

    Returns:
        TeamMemberPerformance for the member.
    """
    task_list = list(tasks)
    completed = [t for t in task_list if t.status_id == completed_status_id]
    pending = [t for t in task_list if t.status_id != completed_status_id]

    durations = [d for d in (completion_days(t) for t in completed) if d is not None]
    avg_days = round_half_up(sum(durations) / len(durations)) if durations else 0

    on_time = sum(
        1
        for t in completed
        if t.updated_at is not None and t.due_date is not None and t.updated_at <= t.due_date
    )
    on_time_rate_pct = percentage(on_time, len(completed))
    completion_rate_pct = percentage(len(completed), len(task_list))

    overdue = sum(
        1
        for t in pending
        if t.due_date is not None
        and classify(True, t.due_date, now, policy) is ComplianceStatus.OVERDUE
    )

    return TeamMemberPerformance(
        member_id=member_id,
        name=name,
        total_tasks=len(task_list),
        completed_tasks=len(completed),
        pending_tasks=len(pending),
        overdue_tasks=overdue,
        completion_rate_pct=completion_rate_pct,
        on_time_rate_pct=on_time_rate_pct,
        avg_completion_days=avg_days,
        productivity_score=productivity_score(completion_rate_pct, on_time_rate_pct, avg_days),
        performance_rating=performance_rating(on_time_rate_pct, avg_days),
        workload_balance=workload_balance(len(task_list)),
    )


def evaluate_team(
    members: Mapping[int, str],
    tasks: Iterable[ComplianceTask],
    now: datetime,
    completed_status_id: int,
    policy: ClassifierPolicy = DEFAULT_POLICY,
) -> TeamEfficiencyReport:
    """Build the team efficiency report.

    Members without assigned tasks are left out.

    Args:
        members: Member id to display name.
        tasks: Tenant tasks; unassigned tasks are ignored.
        now: The evaluation instant.
        completed_status_id: Id of the tenant's completed status.
        policy: Classifier thresholds used for overdue detection.

    Returns:
        TeamEfficiencyReport with members ordered by productivity descending,
        then name.
    """
    by_member: dict[int, list[ComplianceTask]] = {member_id: [] for member_id in members}
    for task in tasks:
        if task.assignee_id in by_member:
            by_member[task.assignee_id].append(task)

    performances = [
        build_member_performance(member_id, members[member_id], assigned, now, completed_status_id, policy)
        for member_id, assigned in by_member.items()
        if assigned
    ]
    performances.sort(key=lambda p: (-p.productivity_score, p.name))

    total_tasks = sum(p.total_tasks for p in performances)
    total_completed = sum(p.completed_tasks for p in performances)
    count = len(performances)

    report = TeamEfficiencyReport(
        members=performances,
        total_tasks=total_tasks,
        total_completed=total_completed,
        team_completion_rate_pct=percentage(total_completed, total_tasks),
        avg_on_time_rate_pct=(
            round_half_up(sum(p.on_time_rate_pct for p in performances) / count) if count else 0
        ),
        avg_productivity_score=(
            round_half_up(sum(p.productivity_score for p in performances) / count) if count else 0
        ),
        top_performer=performances[0] if performances else None,
    )

    logger.info(
        "Team efficiency evaluated",
        active_members=count,
        total_tasks=total_tasks,
        avg_productivity_score=report.avg_productivity_score,
    )
    return report
