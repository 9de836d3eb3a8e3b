"""Test fixtures for practice-compliance-engine.

Provides:
- NOW: A fixed evaluation instant shared by every test
- COMPLETED_ID / PENDING_ID: Status ids of the test taxonomy
- make_subscription / make_task: Record factories with sensible defaults
- statuses: A consistent task status taxonomy
- settings: Settings with default policy constants
- mock_data_provider: An AsyncMock IComplianceDataProvider
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest

from practice_compliance_engine.core.models import (
    ComplianceTask,
    ServiceSubscription,
    TaskStatus,
)
from practice_compliance_engine.settings import Settings

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)

PENDING_ID = 1
IN_PROGRESS_ID = 2
COMPLETED_ID = 3

ENTITY_ID = 100


def days(n: float) -> timedelta:
    """Shorthand for a day-based timedelta."""
    return timedelta(days=n)


def make_subscription(
    service_type_id: int = 1,
    service_name: str = "GST Return",
    entity_id: int = ENTITY_ID,
    is_required: bool = True,
    is_subscribed: bool = True,
    billing_basis: str | None = None,
) -> ServiceSubscription:
    """Build a ServiceSubscription for tests."""
    return ServiceSubscription(
        entity_id=entity_id,
        service_type_id=service_type_id,
        service_name=service_name,
        is_required=is_required,
        is_subscribed=is_subscribed,
        billing_basis=billing_basis,
    )


def make_task(
    task_id: int = 1,
    service_type_id: int = 1,
    entity_id: int = ENTITY_ID,
    status_id: int = PENDING_ID,
    created_at: datetime | None = None,
    **overrides: Any,
) -> ComplianceTask:
    """Build a ComplianceTask for tests; extra fields go through ``overrides``."""
    return ComplianceTask(
        id=task_id,
        service_type_id=service_type_id,
        entity_id=entity_id,
        status_id=status_id,
        created_at=created_at or NOW - days(30),
        **overrides,
    )


@pytest.fixture()
def now() -> datetime:
    """Return the fixed evaluation instant.

    Returns:
        2025-06-15 12:00 UTC.
    """
    return NOW


@pytest.fixture()
def statuses() -> list[TaskStatus]:
    """Return a consistent status taxonomy with one Completed status.

    Returns:
        Pending, In Progress and Completed statuses.
    """
    return [
        TaskStatus(id=PENDING_ID, name="Pending", rank=1),
        TaskStatus(id=IN_PROGRESS_ID, name="In Progress", rank=2),
        TaskStatus(id=COMPLETED_ID, name="Completed", rank=3),
    ]


@pytest.fixture()
def settings() -> Settings:
    """Return Settings with the default policy constants.

    Returns:
        A fresh Settings instance.
    """
    return Settings()


@pytest.fixture()
def mock_data_provider(statuses: list[TaskStatus]) -> AsyncMock:
    """Create a mock IComplianceDataProvider with one overdue service.

    Args:
        statuses: Injected status taxonomy fixture.

    Returns:
        AsyncMock whose list_* methods return a small tenant snapshot.
    """
    provider = AsyncMock()
    provider.list_task_statuses.return_value = statuses
    provider.list_subscriptions.return_value = [make_subscription()]
    provider.list_tasks.return_value = [
        make_task(compliance_deadline=NOW - days(5), due_date=NOW - days(5), assignee_id=7)
    ]
    provider.list_entity_jurisdictions.return_value = {ENTITY_ID: "New South Wales"}
    provider.list_team_members.return_value = {7: "Priya Raman"}
    return provider
