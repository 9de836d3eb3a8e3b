"""Deadline alerts and trigger-condition matching for the notification system.

The notification trigger system decides whether to fire "task overdue" or
"deadline approaching" alerts. It calls into this module rather than
re-deriving dates, so an alert always agrees with the status reported on the
dashboards: both come from ``classify``.

Trigger conditions are stored as JSON records:
    {"field": "task.priority", "operator": "equals", "value": "High"}
or a list of such records, all of which must match.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from practice_compliance_engine.compliance.classifier import (
    DEFAULT_POLICY,
    ClassifierPolicy,
    classify,
    days_until,
)
from practice_compliance_engine.core.models import (
    AlertType,
    ComplianceStatus,
    DeadlineAlert,
    ServiceComplianceRecord,
)
from practice_compliance_engine.observability import get_logger

logger = get_logger(__name__)

DEFAULT_APPROACHING_DAYS = 7

SUPPORTED_OPERATORS = frozenset(
    {
        "equals",
        "not_equals",
        "contains",
        "starts_with",
        "ends_with",
        "greater_than",
        "less_than",
    }
)


def alert_for(
    is_subscribed: bool,
    next_due_at: datetime | None,
    now: datetime,
    policy: ClassifierPolicy = DEFAULT_POLICY,
    approaching_days: int = DEFAULT_APPROACHING_DAYS,
) -> AlertType | None:
    """Decide which alert, if any, a service deadline warrants.

    Args:
        is_subscribed: Whether the entity is enrolled for the service.
        next_due_at: Resolved next deadline, or None.
        now: The evaluation instant.
        policy: Classifier thresholds, identical to the reporting side.
        approaching_days: Upcoming deadlines within this many days alert.

    Returns:
        TASK_OVERDUE, DEADLINE_APPROACHING, or None.
    """
    status = classify(is_subscribed, next_due_at, now, policy)
    if status is ComplianceStatus.OVERDUE:
        return AlertType.TASK_OVERDUE
    if (
        status is ComplianceStatus.UPCOMING
        and next_due_at is not None
        and days_until(next_due_at, now) <= approaching_days
    ):
        return AlertType.DEADLINE_APPROACHING
    return None


def build_deadline_alerts(
    records: Iterable[ServiceComplianceRecord],
    now: datetime,
    policy: ClassifierPolicy = DEFAULT_POLICY,
    approaching_days: int = DEFAULT_APPROACHING_DAYS,
) -> list[DeadlineAlert]:
    """Build the alerts for a set of aggregated service records.

    Args:
        records: Records produced by the aggregator with the same ``now``.
        now: The evaluation instant.
        policy: Classifier thresholds.
        approaching_days: Upcoming deadlines within this many days alert.

    Returns:
        Overdue alerts first, then approaching ones, each ordered by due date
        and service name.
    """
    alerts: list[DeadlineAlert] = []
    for record in records:
        alert_type = alert_for(
            record.is_subscribed, record.next_due_at, now, policy, approaching_days
        )
        if alert_type is None:
            continue

        remaining = days_until(record.next_due_at, now) if record.next_due_at else None
        if alert_type is AlertType.TASK_OVERDUE:
            if remaining is None:
                message = f"{record.service_name} has no deadline on record"
            else:
                message = f"{record.service_name} is overdue by {-remaining} day(s)"
        else:
            message = f"{record.service_name} is due in {remaining} day(s)"

        alerts.append(
            DeadlineAlert(
                alert_type=alert_type,
                service_id=record.service_id,
                service_name=record.service_name,
                due_at=record.next_due_at,
                days_until_due=remaining,
                message=message,
            )
        )

    alerts.sort(
        key=lambda a: (
            a.alert_type is not AlertType.TASK_OVERDUE,
            a.days_until_due if a.days_until_due is not None else float("-inf"),
            a.service_name,
        )
    )
    return alerts


def get_nested_value(data: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted path such as "client.status" inside nested mappings.

    Args:
        data: Event payload.
        path: Dot-separated key path.

    Returns:
        The value, or None if any segment is missing.
    """
    current: Any = data
    for key in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _as_number(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _matches_condition(condition: Mapping[str, Any], event_data: Mapping[str, Any]) -> bool:
    field_path = condition.get("field")
    operator = condition.get("operator")
    if not field_path or not operator or "value" not in condition:
        return True
    if operator not in SUPPORTED_OPERATORS:
        logger.warning("Unsupported trigger condition operator", operator=operator, field=field_path)
        return False

    expected = condition["value"]
    actual = get_nested_value(event_data, field_path)

    if operator == "equals":
        return actual == expected
    if operator == "not_equals":
        return actual != expected
    if operator in ("contains", "starts_with", "ends_with"):
        if actual is None:
            return False
        text, needle = str(actual), str(expected)
        if operator == "contains":
            return needle in text
        if operator == "starts_with":
            return text.startswith(needle)
        return text.endswith(needle)
    left, right = _as_number(actual), _as_number(expected)
    if left is None or right is None:
        return False
    return left > right if operator == "greater_than" else left < right


def matches_conditions(
    conditions: Mapping[str, Any] | list[Mapping[str, Any]] | None,
    event_data: Mapping[str, Any],
) -> bool:
    """Evaluate stored trigger conditions against an event payload.

    Args:
        conditions: A single condition record, a list of records (all must
            match), or None for an unconditional trigger.
        event_data: The event payload the trigger fired for.

    Returns:
        True if the trigger should fire.
    """
    if conditions is None:
        return True
    if isinstance(conditions, list):
        return all(matches_conditions(condition, event_data) for condition in conditions)
    return _matches_condition(conditions, event_data)
