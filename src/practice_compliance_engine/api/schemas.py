"""Pydantic request and response schemas for the compliance engine API.

All API inputs and outputs use Pydantic models, never raw dicts. Requests
carry the materialised, tenant-scoped snapshot the engine computes over;
response models are validated straight from the engine's dataclasses.

Resources:
- Snapshot records: task statuses, subscriptions, tasks
- Entity compliance report
- Classification and next-occurrence helpers
- Jurisdiction risk report
- Team efficiency report
"""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from practice_compliance_engine.core.models import (
    AlertType,
    ComplianceStatus,
    ComplianceTask,
    Frequency,
    Priority,
    RiskLevel,
    ServiceSubscription,
    TaskStatus,
)


def _ensure_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]


# ---------------------------------------------------------------------------
# Snapshot records
# ---------------------------------------------------------------------------


class TaskStatusSchema(BaseModel):
    """One row of the tenant's task status taxonomy."""

    id: int = Field(description="Status id")
    name: str = Field(description="Status name, e.g. Completed", min_length=1)
    rank: int | None = Field(default=None, description="Display order")

    def to_model(self) -> TaskStatus:
        return TaskStatus(id=self.id, name=self.name, rank=self.rank)


class ServiceSubscriptionSchema(BaseModel):
    """An entity's configuration for one compliance service."""

    entity_id: int = Field(description="Entity the subscription belongs to")
    service_type_id: int = Field(description="Compliance service id")
    service_name: str = Field(description="Compliance service display name")
    is_required: bool = Field(description="Whether the entity must perform the service")
    is_subscribed: bool = Field(description="Whether the entity is enrolled for the service")
    billing_basis: str | None = Field(
        default=None,
        description="Billing frequency, used as a frequency label fallback",
    )

    def to_model(self) -> ServiceSubscription:
        return ServiceSubscription(**self.model_dump())


class ComplianceTaskSchema(BaseModel):
    """A unit of work performed for a service and entity."""

    id: int = Field(description="Task id")
    service_type_id: int = Field(description="Compliance service id")
    entity_id: int = Field(description="Entity id")
    status_id: int = Field(description="Task status id")
    created_at: UtcDatetime = Field(description="When the task was opened")
    updated_at: UtcDatetime | None = Field(default=None, description="Last update")
    compliance_deadline: UtcDatetime | None = Field(
        default=None,
        description="Explicit compliance deadline",
    )
    compliance_frequency: str | None = Field(
        default=None,
        description="Raw recurrence label: Monthly | Quarterly | Semi-Annually | Yearly",
    )
    compliance_start_date: UtcDatetime | None = Field(default=None, description="Period start")
    compliance_end_date: UtcDatetime | None = Field(default=None, description="Period end")
    due_date: UtcDatetime | None = Field(default=None, description="Internal work due date")
    assignee_id: int | None = Field(default=None, description="Assigned team member id")

    def to_model(self) -> ComplianceTask:
        return ComplianceTask(**self.model_dump())


class SnapshotRequest(BaseModel):
    """Common part of every report request."""

    statuses: list[TaskStatusSchema] = Field(
        description="The tenant's task status taxonomy; exactly one must be named Completed",
        min_length=1,
    )
    tasks: list[ComplianceTaskSchema] = Field(default_factory=list, description="Task snapshot")
    now: UtcDatetime | None = Field(
        default=None,
        description="Evaluation instant; the server clock (UTC) when omitted",
    )


# ---------------------------------------------------------------------------
# Entity compliance report
# ---------------------------------------------------------------------------


class EntityReportRequest(SnapshotRequest):
    """Request body for POST /compliance/entity-report."""

    entity_id: int = Field(description="Entity to report on")
    subscriptions: list[ServiceSubscriptionSchema] = Field(
        default_factory=list,
        description="Subscription snapshot",
    )


class ServiceComplianceRecordSchema(BaseModel):
    """Derived compliance view of one configured service."""

    model_config = ConfigDict(from_attributes=True)

    service_id: int
    service_name: str
    is_required: bool
    is_subscribed: bool
    frequency: str
    last_completed_at: datetime | None
    next_due_at: datetime | None
    status: ComplianceStatus
    completion_rate_pct: float
    frequency_defaulted: bool


class ComplianceScorecardSchema(BaseModel):
    """Overall compliance score and status counts."""

    model_config = ConfigDict(from_attributes=True)

    overall_score_pct: int
    total_services: int
    required_services: int
    subscribed_services: int
    compliant_services: int
    overdue_services: int
    upcoming_count: int
    not_subscribed_count: int
    breakdown: list[ServiceComplianceRecordSchema]


class UpcomingDeadlineSchema(BaseModel):
    """A ranked upcoming deadline."""

    model_config = ConfigDict(from_attributes=True)

    service_id: int
    service_name: str
    due_date: datetime
    frequency: str
    priority: Priority
    days_until_due: int


class ComplianceHistoryEntrySchema(BaseModel):
    """Tasks of one service opened in one YYYY-MM period."""

    model_config = ConfigDict(from_attributes=True)

    period: str
    service_id: int
    service_name: str
    is_required: bool
    is_subscribed: bool
    has_completed: bool
    completion_date: datetime | None
    total_tasks: int
    completed_tasks: int


class DeadlineAlertSchema(BaseModel):
    """An overdue or approaching-deadline alert."""

    model_config = ConfigDict(from_attributes=True)

    alert_type: AlertType
    service_id: int
    service_name: str
    due_at: datetime | None
    days_until_due: int | None
    message: str


class EntityReportResponse(BaseModel):
    """Response schema for POST /compliance/entity-report."""

    model_config = ConfigDict(from_attributes=True)

    entity_id: int = Field(description="Entity reported on")
    generated_at: datetime = Field(description="Evaluation instant shared by the whole report")
    scorecard: ComplianceScorecardSchema
    upcoming_deadlines: list[UpcomingDeadlineSchema]
    history: list[ComplianceHistoryEntrySchema]
    alerts: list[DeadlineAlertSchema]


# ---------------------------------------------------------------------------
# Classification helpers
# ---------------------------------------------------------------------------


class ClassifyRequest(BaseModel):
    """Request body for POST /compliance/classify."""

    is_subscribed: bool = Field(description="Whether the entity is enrolled for the service")
    next_due_at: UtcDatetime | None = Field(
        default=None,
        description="Resolved next deadline; omit when none is computable",
    )
    now: UtcDatetime | None = Field(default=None, description="Evaluation instant")


class ClassifyResponse(BaseModel):
    """Response schema for POST /compliance/classify."""

    status: ComplianceStatus = Field(description="Compliance status bucket")
    days_until_due: int | None = Field(description="Whole days until due, negative when overdue")


class NextOccurrenceRequest(BaseModel):
    """Request body for POST /compliance/next-occurrence."""

    last_date: UtcDatetime = Field(description="Last completion date")
    frequency: str | None = Field(
        default=None,
        description="Recurrence label; unknown or missing values default to Yearly",
    )


class NextOccurrenceResponse(BaseModel):
    """Response schema for POST /compliance/next-occurrence."""

    due_at: datetime = Field(description="Next due date, month-end clamped")
    frequency: Frequency = Field(description="Frequency that was applied")
    defaulted: bool = Field(description="True when the input frequency was missing or unknown")


class NextPeriodRequest(BaseModel):
    """Request body for POST /compliance/next-period."""

    frequency: str | None = Field(
        default=None,
        description="Recurrence label; unknown or missing values default to Yearly",
    )
    reference: UtcDatetime | None = Field(
        default=None,
        description="The period after the one containing this instant is generated",
    )
    fiscal: bool = Field(default=False, description="Use fiscal years for Yearly periods")


class CompliancePeriodSchema(BaseModel):
    """Response schema for POST /compliance/next-period."""

    model_config = ConfigDict(from_attributes=True)

    frequency: Frequency
    start: datetime = Field(description="First instant of the period")
    end: datetime = Field(description="Last day of the period")
    due_at: datetime = Field(description="When work for the period is due")


# ---------------------------------------------------------------------------
# Jurisdiction risk report
# ---------------------------------------------------------------------------


class JurisdictionRiskRequest(SnapshotRequest):
    """Request body for POST /risk/jurisdictions."""

    entity_jurisdictions: dict[int, str] = Field(
        description="Entity id to jurisdiction name",
    )
    subscriptions: list[ServiceSubscriptionSchema] = Field(
        default_factory=list,
        description="Subscription snapshot",
    )


class RiskProfileSchema(BaseModel):
    """Risk profile of one jurisdiction."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    risk_score: int
    risk_level: RiskLevel
    overdue_count: int
    compliance_gap_pct: int
    compliance_rate_pct: int
    completion_rate_pct: int
    total_tasks: int


class JurisdictionRiskResponse(BaseModel):
    """Response schema for POST /risk/jurisdictions."""

    generated_at: datetime = Field(description="Evaluation instant")
    profiles: list[RiskProfileSchema] = Field(description="Ordered by risk score descending")


# ---------------------------------------------------------------------------
# Team efficiency report
# ---------------------------------------------------------------------------


class TeamEfficiencyRequest(SnapshotRequest):
    """Request body for POST /performance/team."""

    members: dict[int, str] = Field(description="Team member id to display name")


class TeamMemberPerformanceSchema(BaseModel):
    """Workload and productivity of one team member."""

    model_config = ConfigDict(from_attributes=True)

    member_id: int
    name: str
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    overdue_tasks: int
    completion_rate_pct: int
    on_time_rate_pct: int
    avg_completion_days: int
    productivity_score: int
    performance_rating: str
    workload_balance: str


class TeamEfficiencyResponse(BaseModel):
    """Response schema for POST /performance/team."""

    model_config = ConfigDict(from_attributes=True)

    members: list[TeamMemberPerformanceSchema]
    total_tasks: int
    total_completed: int
    team_completion_rate_pct: int
    avg_on_time_rate_pct: int
    avg_productivity_score: int
    top_performer: TeamMemberPerformanceSchema | None


class HealthResponse(BaseModel):
    """Response schema for GET /health."""

    status: str = Field(description="ok when the service is serving requests")
    service: str = Field(description="Service name")
