"""Compliance engine facade.

Binds one tenant's resolved completed-status id and the configured policy
constants to the pure compliance functions, so callers never pass thresholds
around by hand.

Building an entity report:
1. Aggregate configured services into ServiceComplianceRecords
2. Summarize the records into a scorecard
3. Rank upcoming deadlines within the configured horizon
4. Group the task history per service and period
5. Derive deadline alerts with the same classifier

Every step shares the single ``now`` the caller passes in.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime

from practice_compliance_engine.compliance.aggregator import aggregate, build_compliance_history
from practice_compliance_engine.compliance.alerts import build_deadline_alerts
from practice_compliance_engine.compliance.classifier import ClassifierPolicy
from practice_compliance_engine.compliance.deadlines import rank
from practice_compliance_engine.compliance.scorecard import summarize
from practice_compliance_engine.compliance.status_taxonomy import resolve_completed_status_id
from practice_compliance_engine.core.models import (
    ComplianceHistoryEntry,
    ComplianceScorecard,
    ComplianceTask,
    DeadlineAlert,
    EntityComplianceReport,
    ServiceComplianceRecord,
    ServiceSubscription,
    TaskStatus,
    UpcomingDeadline,
)
from practice_compliance_engine.observability import get_logger
from practice_compliance_engine.settings import Settings, get_settings

logger = get_logger(__name__)


class ComplianceEngine:
    """Tenant-bound entry point to the compliance derivation rules.

    Args:
        completed_status_id: Id of the tenant's "Completed" task status.
        settings: Policy constants. Defaults to the process settings.
    """

    def __init__(self, completed_status_id: int, settings: Settings | None = None) -> None:
        """Initialize ComplianceEngine.

        Args:
            completed_status_id: Id of the tenant's "Completed" task status.
            settings: Policy constants. Defaults to the process settings.
        """
        self._settings = settings or get_settings()
        self._completed_status_id = completed_status_id
        self._policy = ClassifierPolicy.from_settings(self._settings)

    @classmethod
    def from_status_taxonomy(
        cls,
        statuses: Iterable[TaskStatus],
        settings: Settings | None = None,
    ) -> "ComplianceEngine":
        """Create an engine after resolving the completed status id.

        Args:
            statuses: The tenant's task status taxonomy.
            settings: Policy constants. Defaults to the process settings.

        Returns:
            ComplianceEngine bound to the resolved id.

        Raises:
            InconsistentStatusTaxonomyError: If zero or several statuses carry
                the configured completed name.
        """
        resolved_settings = settings or get_settings()
        completed_status_id = resolve_completed_status_id(
            statuses, completed_name=resolved_settings.completed_status_name
        )
        return cls(completed_status_id, resolved_settings)

    @property
    def completed_status_id(self) -> int:
        return self._completed_status_id

    @property
    def policy(self) -> ClassifierPolicy:
        return self._policy

    @property
    def settings(self) -> Settings:
        return self._settings

    def aggregate(
        self,
        subscriptions: Iterable[ServiceSubscription],
        tasks: Iterable[ComplianceTask],
        now: datetime,
    ) -> list[ServiceComplianceRecord]:
        """Build per-service compliance records.

        Raises:
            InvalidFrequencyError: In strict frequency mode, for an
                unrecognised frequency label.
        """
        return aggregate(
            subscriptions,
            tasks,
            now,
            self._completed_status_id,
            policy=self._policy,
            strict_frequency=self._settings.strict_frequency,
        )

    def scorecard(self, records: Iterable[ServiceComplianceRecord]) -> ComplianceScorecard:
        return summarize(records, upcoming_credit=self._settings.upcoming_partial_credit)

    def upcoming_deadlines(
        self,
        records: Iterable[ServiceComplianceRecord],
        now: datetime,
    ) -> list[UpcomingDeadline]:
        return rank(records, now, horizon_months=self._settings.deadline_horizon_months)

    def history(
        self,
        subscriptions: Iterable[ServiceSubscription],
        tasks: Iterable[ComplianceTask],
    ) -> list[ComplianceHistoryEntry]:
        return build_compliance_history(subscriptions, tasks, self._completed_status_id)

    def alerts(
        self,
        records: Iterable[ServiceComplianceRecord],
        now: datetime,
    ) -> list[DeadlineAlert]:
        return build_deadline_alerts(
            records,
            now,
            policy=self._policy,
            approaching_days=self._settings.alert_approaching_days,
        )

    def entity_report(
        self,
        entity_id: int,
        subscriptions: Sequence[ServiceSubscription],
        tasks: Sequence[ComplianceTask],
        now: datetime,
    ) -> EntityComplianceReport:
        """Build the full compliance report of one entity.

        Subscriptions and tasks belonging to other entities are ignored.

        Args:
            entity_id: The entity being reported on.
            subscriptions: Subscriptions, possibly for several entities.
            tasks: Tasks, possibly for several entities.
            now: The single evaluation instant for the whole report.

        Returns:
            EntityComplianceReport.

        Raises:
            InvalidFrequencyError: In strict frequency mode, for an
                unrecognised frequency label.
        """
        entity_subscriptions = [s for s in subscriptions if s.entity_id == entity_id]
        entity_tasks = [t for t in tasks if t.entity_id == entity_id]

        records = self.aggregate(entity_subscriptions, entity_tasks, now)
        scorecard = self.scorecard(records)
        report = EntityComplianceReport(
            entity_id=entity_id,
            generated_at=now,
            scorecard=scorecard,
            upcoming_deadlines=self.upcoming_deadlines(records, now),
            history=self.history(entity_subscriptions, entity_tasks),
            alerts=self.alerts(records, now),
        )

        logger.info(
            "Entity compliance report built",
            entity_id=entity_id,
            service_count=scorecard.total_services,
            overall_score_pct=scorecard.overall_score_pct,
            overdue_services=scorecard.overdue_services,
            alert_count=len(report.alerts),
        )
        return report
