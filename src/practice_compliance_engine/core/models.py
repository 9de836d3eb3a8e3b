"""Value objects for the practice compliance engine.

Inputs (ServiceSubscription, ComplianceTask, TaskStatus) are immutable
snapshots handed over by the data provider. Everything else is derived,
rebuilt on every request, and owned by nobody across requests.

Enums subclass ``str`` so derived records serialise to plain JSON without a
presentation-layer mapping.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Frequency(str, Enum):
    """How often a compliance obligation recurs."""

    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    SEMI_ANNUALLY = "Semi-Annually"
    YEARLY = "Yearly"


class ComplianceStatus(str, Enum):
    """Classifier output bucket for one configured service."""

    COMPLIANT = "compliant"
    OVERDUE = "overdue"
    UPCOMING = "upcoming"
    NOT_SUBSCRIBED = "not-subscribed"


class Priority(str, Enum):
    """Urgency of an upcoming deadline."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RiskLevel(str, Enum):
    """Risk bucket for a jurisdiction or client."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class AlertType(str, Enum):
    """Notification trigger types decided by the engine."""

    TASK_OVERDUE = "TASK_OVERDUE"
    DEADLINE_APPROACHING = "DEADLINE_APPROACHING"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaskStatus:
    """One entry of a tenant's task status taxonomy.

    Attributes:
        id: Status identifier referenced by ComplianceTask.status_id.
        name: Display name, e.g. "New", "In Progress", "Completed".
        rank: Optional workflow ordering.
    """

    id: int
    name: str
    rank: int | None = None


@dataclass(frozen=True)
class ServiceSubscription:
    """Whether an entity is required and/or enrolled for a recurring service.

    Attributes:
        entity_id: The entity the subscription belongs to.
        service_type_id: The recurring compliance service.
        service_name: Display name of the service.
        is_required: The entity is contractually required to have the service.
        is_subscribed: The entity is enrolled for the service.
        billing_basis: Generic billing cadence label used when tasks carry no frequency.
    """

    entity_id: int
    service_type_id: int
    service_name: str
    is_required: bool
    is_subscribed: bool
    billing_basis: str | None = None


@dataclass(frozen=True)
class ComplianceTask:
    """A unit of work tied to one compliance period.

    Attributes:
        id: Task identifier.
        service_type_id: The service this task fulfils.
        entity_id: The entity the task is for.
        status_id: Id in the tenant's status taxonomy.
        created_at: When the task was opened.
        updated_at: Last status transition; used as completion time for completed tasks.
        compliance_deadline: Authoritative human-entered deadline, if any.
        compliance_frequency: Raw recurrence label as stored (may be unrecognised).
        compliance_start_date: Start of the covered compliance period.
        compliance_end_date: End of the covered compliance period.
        due_date: Internal work due date (distinct from the compliance deadline).
        assignee_id: Team member responsible for the task.
    """

    id: int
    service_type_id: int
    entity_id: int
    status_id: int
    created_at: datetime
    updated_at: datetime | None = None
    compliance_deadline: datetime | None = None
    compliance_frequency: str | None = None
    compliance_start_date: datetime | None = None
    compliance_end_date: datetime | None = None
    due_date: datetime | None = None
    assignee_id: int | None = None


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Recurrence:
    """Result of resolving the next occurrence of a recurring obligation.

    Attributes:
        due_at: The computed next occurrence.
        frequency: The frequency actually applied.
        defaulted: True when the frequency was absent or unrecognised and Yearly was assumed.
    """

    due_at: datetime
    frequency: Frequency
    defaulted: bool


@dataclass(frozen=True)
class CompliancePeriod:
    """A generated compliance period for a recurring service.

    Attributes:
        frequency: The recurrence the period was generated for.
        start: First instant of the period.
        end: Last day of the period.
        due_at: When work for the period is due.
    """

    frequency: Frequency
    start: datetime
    end: datetime
    due_at: datetime


@dataclass
class ServiceComplianceRecord:
    """Compliance state of one configured service for one entity.

    Attributes:
        service_id: The service type id.
        service_name: Display name of the service.
        is_required: Copied from the subscription.
        is_subscribed: Copied from the subscription.
        frequency: Recurrence label shown to users (or "N/A").
        last_completed_at: Creation time of the newest completed task.
        next_due_at: Predicted or explicit next deadline.
        status: Classifier output.
        completion_rate_pct: Completed tasks over all tasks, 0-100 (0 when no tasks).
        frequency_defaulted: True when next_due_at came from a defaulted Yearly recurrence.
    """

    service_id: int
    service_name: str
    is_required: bool
    is_subscribed: bool
    frequency: str
    last_completed_at: datetime | None
    next_due_at: datetime | None
    status: ComplianceStatus
    completion_rate_pct: float
    frequency_defaulted: bool = False


@dataclass
class ComplianceScorecard:
    """Aggregated compliance summary across an entity's configured services.

    Attributes:
        overall_score_pct: Weighted score over subscribed services, 0-100.
        total_services: Number of configured services.
        required_services: Services marked required.
        subscribed_services: Services the entity is enrolled in.
        compliant_services: Services classified compliant.
        overdue_services: Services classified overdue.
        upcoming_count: Services classified upcoming.
        not_subscribed_count: Services classified not-subscribed.
        breakdown: The per-service records the counts were taken from.
    """

    overall_score_pct: int
    total_services: int
    required_services: int
    subscribed_services: int
    compliant_services: int
    overdue_services: int
    upcoming_count: int
    not_subscribed_count: int
    breakdown: list[ServiceComplianceRecord] = field(default_factory=list)


@dataclass(frozen=True)
class UpcomingDeadline:
    """A forward-looking deadline for a required, subscribed service."""

    service_id: int
    service_name: str
    due_date: datetime
    frequency: str
    priority: Priority
    days_until_due: int


@dataclass(frozen=True)
class ComplianceHistoryEntry:
    """Task activity for one service within one creation period (YYYY-MM).

    Attributes:
        period: Period key, "YYYY-MM".
        service_id: The service type id.
        service_name: Display name of the service.
        is_required: Copied from the subscription.
        is_subscribed: Copied from the subscription.
        has_completed: At least one task in the period is completed.
        completion_date: Latest completion time among completed tasks.
        total_tasks: Tasks opened in the period.
        completed_tasks: Completed tasks opened in the period.
    """

    period: str
    service_id: int
    service_name: str
    is_required: bool
    is_subscribed: bool
    has_completed: bool
    completion_date: datetime | None
    total_tasks: int
    completed_tasks: int


@dataclass(frozen=True)
class DeadlineAlert:
    """A notification the trigger system should fire for a service."""

    alert_type: AlertType
    service_id: int
    service_name: str
    due_at: datetime | None
    days_until_due: int | None
    message: str


@dataclass(frozen=True)
class RiskAssessment:
    """Clamped risk score and its level."""

    score: int
    level: RiskLevel


@dataclass(frozen=True)
class RiskProfile:
    """Risk summary for a jurisdiction or client.

    Attributes:
        name: Jurisdiction or client name.
        risk_score: 0-100.
        risk_level: Bucket derived from risk_score.
        overdue_count: Pending tasks past their deadline.
        compliance_gap_pct: 100 minus the compliance rate.
        compliance_rate_pct: Scorecard overall score across the group's services.
        completion_rate_pct: Completed tasks over all tasks.
        total_tasks: Tasks considered for the group.
    """

    name: str
    risk_score: int
    risk_level: RiskLevel
    overdue_count: int
    compliance_gap_pct: int
    compliance_rate_pct: int
    completion_rate_pct: int
    total_tasks: int


@dataclass(frozen=True)
class TeamMemberPerformance:
    """Workload and productivity metrics for one team member.

    Attributes:
        member_id: Assignee id.
        name: Display name.
        total_tasks: Tasks assigned.
        completed_tasks: Assigned tasks in the completed status.
        pending_tasks: Assigned tasks not yet completed.
        overdue_tasks: Pending tasks past their due date.
        completion_rate_pct: completed / total, 0-100.
        on_time_rate_pct: Completed on or before the due date, 0-100.
        avg_completion_days: Mean days from creation to completion.
        productivity_score: Canonical productivity score, 0-100.
        performance_rating: Excellent | Good | Average | Needs Improvement.
        workload_balance: Light | Moderate | Heavy.
    """

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


@dataclass
class TeamEfficiencyReport:
    """Team-wide productivity summary, members ordered best first."""

    members: list[TeamMemberPerformance]
    total_tasks: int
    total_completed: int
    team_completion_rate_pct: int
    avg_on_time_rate_pct: int
    avg_productivity_score: int
    top_performer: TeamMemberPerformance | None


@dataclass
class EntityComplianceReport:
    """Everything the entity detail view shows, derived from one ``now``."""

    entity_id: int
    generated_at: datetime
    scorecard: ComplianceScorecard
    upcoming_deadlines: list[UpcomingDeadline]
    history: list[ComplianceHistoryEntry]
    alerts: list[DeadlineAlert]
