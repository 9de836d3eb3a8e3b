"""Service compliance aggregator.

Joins an entity's service subscriptions with its task history and produces one
ServiceComplianceRecord per configured (required or subscribed) service.

Per service:
1. Select the service's tasks for the subscribing entity
2. Count completed tasks (status_id == completed_status_id)
3. completion_rate_pct = completed / total * 100, or 0 without tasks
4. last_completed_at = newest created_at among completed tasks
5. next_due_at = explicit deadline of the most recently opened task; else the
   recurrence after last_completed_at using that task's frequency; else None
6. status = classify(is_subscribed, next_due_at, now)
7. frequency label = most recent task's frequency, billing basis, or "N/A"

The aggregator is deterministic for identical inputs and ``now``.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import datetime

from practice_compliance_engine.compliance.classifier import (
    DEFAULT_POLICY,
    ClassifierPolicy,
    classify,
)
from practice_compliance_engine.compliance.recurrence import period_key, resolve_recurrence
from practice_compliance_engine.core.models import (
    ComplianceHistoryEntry,
    ComplianceTask,
    ServiceComplianceRecord,
    ServiceSubscription,
)
from practice_compliance_engine.observability import get_logger

logger = get_logger(__name__)

FREQUENCY_NOT_AVAILABLE = "N/A"


def is_configured(subscription: ServiceSubscription) -> bool:
    """Return whether a subscription should appear in compliance reporting.

    Args:
        subscription: The service subscription.

    Returns:
        True if the service is required or subscribed.
    """
    return subscription.is_required or subscription.is_subscribed


def _tasks_for(
    subscription: ServiceSubscription,
    tasks: Iterable[ComplianceTask],
) -> list[ComplianceTask]:
    return [
        task
        for task in tasks
        if task.service_type_id == subscription.service_type_id
        and task.entity_id == subscription.entity_id
    ]


def _most_recent(tasks: Sequence[ComplianceTask]) -> ComplianceTask | None:
    if not tasks:
        return None
    # Ties on created_at resolve to the higher task id
    return max(tasks, key=lambda task: (task.created_at, task.id))


def build_service_record(
    subscription: ServiceSubscription,
    service_tasks: Sequence[ComplianceTask],
    now: datetime,
    completed_status_id: int,
    policy: ClassifierPolicy = DEFAULT_POLICY,
    strict_frequency: bool = False,
) -> ServiceComplianceRecord:
    """Derive the compliance record for one service.

    Args:
        subscription: The entity's subscription to the service.
        service_tasks: Tasks of this entity for this service.
        now: The evaluation instant shared by the whole report.
        completed_status_id: Id of the tenant's completed status.
        policy: Classifier thresholds.
        strict_frequency: Raise on unrecognised frequency labels instead of
            defaulting to Yearly.

    Returns:
        The ServiceComplianceRecord.

    Raises:
        InvalidFrequencyError: If ``strict_frequency`` and the most recent task
            carries an unrecognised frequency that is needed for the due date.
    """
    completed = [task for task in service_tasks if task.status_id == completed_status_id]
    completion_rate_pct = (
        len(completed) / len(service_tasks) * 100 if service_tasks else 0.0
    )
    last_completed_at = max((task.created_at for task in completed), default=None)

    latest = _most_recent(service_tasks)
    next_due_at: datetime | None = None
    frequency_defaulted = False

    if latest is not None and latest.compliance_deadline is not None:
        next_due_at = latest.compliance_deadline
    elif latest is not None and last_completed_at is not None:
        recurrence = resolve_recurrence(
            last_completed_at, latest.compliance_frequency, strict=strict_frequency
        )
        next_due_at = recurrence.due_at
        frequency_defaulted = recurrence.defaulted

    frequency_label = (
        (latest.compliance_frequency if latest is not None else None)
        or subscription.billing_basis
        or FREQUENCY_NOT_AVAILABLE
    )

    return ServiceComplianceRecord(
        service_id=subscription.service_type_id,
        service_name=subscription.service_name,
        is_required=subscription.is_required,
        is_subscribed=subscription.is_subscribed,
        frequency=frequency_label,
        last_completed_at=last_completed_at,
        next_due_at=next_due_at,
        status=classify(subscription.is_subscribed, next_due_at, now, policy),
        completion_rate_pct=completion_rate_pct,
        frequency_defaulted=frequency_defaulted,
    )


def aggregate(
    subscriptions: Iterable[ServiceSubscription],
    tasks: Iterable[ComplianceTask],
    now: datetime,
    completed_status_id: int,
    policy: ClassifierPolicy = DEFAULT_POLICY,
    strict_frequency: bool = False,
) -> list[ServiceComplianceRecord]:
    """Build one compliance record per configured service.

    Args:
        subscriptions: Service subscriptions, already tenant/entity scoped.
        tasks: Compliance tasks, already tenant/entity scoped.
        now: The evaluation instant shared by the whole report.
        completed_status_id: Id of the tenant's completed status.
        policy: Classifier thresholds.
        strict_frequency: Raise on unrecognised frequency labels.

    Returns:
        Records in subscription order, skipping services that are neither
        required nor subscribed.
    """
    task_list = list(tasks)
    records = [
        build_service_record(
            subscription,
            _tasks_for(subscription, task_list),
            now,
            completed_status_id,
            policy=policy,
            strict_frequency=strict_frequency,
        )
        for subscription in subscriptions
        if is_configured(subscription)
    ]

    logger.debug(
        "Service compliance records aggregated",
        service_count=len(records),
        task_count=len(task_list),
        defaulted_frequencies=sum(1 for r in records if r.frequency_defaulted),
    )
    return records


def build_compliance_history(
    subscriptions: Iterable[ServiceSubscription],
    tasks: Iterable[ComplianceTask],
    completed_status_id: int,
) -> list[ComplianceHistoryEntry]:
    """Group each configured service's tasks by creation period.

    Args:
        subscriptions: Service subscriptions, already tenant/entity scoped.
        tasks: Compliance tasks, already tenant/entity scoped.
        completed_status_id: Id of the tenant's completed status.

    Returns:
        History entries, newest period first, then by service name.
    """
    task_list = list(tasks)
    entries: list[ComplianceHistoryEntry] = []

    for subscription in subscriptions:
        if not is_configured(subscription):
            continue

        by_period: dict[str, list[ComplianceTask]] = defaultdict(list)
        for task in _tasks_for(subscription, task_list):
            by_period[period_key(task.created_at)].append(task)

        for period, period_tasks in by_period.items():
            completed = [t for t in period_tasks if t.status_id == completed_status_id]
            completion_date = max(
                (t.updated_at or t.created_at for t in completed),
                default=None,
            )
            entries.append(
                ComplianceHistoryEntry(
                    period=period,
                    service_id=subscription.service_type_id,
                    service_name=subscription.service_name,
                    is_required=subscription.is_required,
                    is_subscribed=subscription.is_subscribed,
                    has_completed=bool(completed),
                    completion_date=completion_date,
                    total_tasks=len(period_tasks),
                    completed_tasks=len(completed),
                )
            )

    entries.sort(key=lambda entry: entry.service_name)
    entries.sort(key=lambda entry: entry.period, reverse=True)
    return entries
