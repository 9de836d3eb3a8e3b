"""Report service: fetch tenant records, then derive reports.

ComplianceReportService is async-first. It accepts an injected data provider
through its constructor and contains no framework code. Each report:
1. Fetches its records concurrently, every call bounded by the fetch timeout
2. Captures a single ``now`` shared by every derived value
3. Runs the synchronous engine functions over the fetched snapshot

Provider errors propagate unchanged and nothing is computed from a partial
snapshot.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TypeVar

from practice_compliance_engine.compliance.engine import ComplianceEngine
from practice_compliance_engine.core.interfaces import IComplianceDataProvider
from practice_compliance_engine.core.models import (
    EntityComplianceReport,
    RiskProfile,
    TeamEfficiencyReport,
)
from practice_compliance_engine.errors import DataFetchTimeoutError
from practice_compliance_engine.observability import get_logger
from practice_compliance_engine.performance.productivity import evaluate_team
from practice_compliance_engine.performance.risk import build_risk_profiles
from practice_compliance_engine.settings import Settings, get_settings

logger = get_logger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ComplianceReportService:
    """Tenant report orchestration over an IComplianceDataProvider.

    The completed status id is resolved once per tenant and memoised for the
    lifetime of the service instance, one entry per tenant served. Call
    invalidate_engine after a tenant edits its status taxonomy.

    Args:
        data_provider: Source of tenant-scoped records.
        settings: Policy constants and the fetch timeout.
        clock: Returns the evaluation instant; UTC wall clock by default.
    """

    def __init__(
        self,
        data_provider: IComplianceDataProvider,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize ComplianceReportService with injected dependencies.

        Args:
            data_provider: Provider implementing IComplianceDataProvider.
            settings: Policy constants and the fetch timeout.
            clock: Returns the evaluation instant; UTC wall clock by default.
        """
        self._provider = data_provider
        self._settings = settings or get_settings()
        self._clock = clock or _utc_now
        self._engines: dict[str, ComplianceEngine] = {}

    async def _fetch(self, operation: str, call: Awaitable[T]) -> T:
        """Await a provider call under the configured fetch timeout.

        Args:
            operation: Provider method name, used in errors and logs.
            call: The pending provider call.

        Returns:
            The provider's result.

        Raises:
            DataFetchTimeoutError: If the call exceeds the fetch timeout.
        """
        timeout = self._settings.data_fetch_timeout_seconds
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except TimeoutError as exc:
            logger.error("Data provider call timed out", operation=operation, timeout_seconds=timeout)
            raise DataFetchTimeoutError(operation, timeout) from exc

    async def get_engine(self, tenant_id: str) -> ComplianceEngine:
        """Return the tenant's engine, resolving its status taxonomy on first use.

        Args:
            tenant_id: The tenant.

        Returns:
            ComplianceEngine bound to the tenant's completed status id.

        Raises:
            InconsistentStatusTaxonomyError: If the taxonomy has no single
                completed status.
            DataFetchTimeoutError: If fetching the taxonomy times out.
        """
        engine = self._engines.get(tenant_id)
        if engine is None:
            statuses = await self._fetch(
                "list_task_statuses", self._provider.list_task_statuses(tenant_id)
            )
            engine = ComplianceEngine.from_status_taxonomy(statuses, self._settings)
            self._engines[tenant_id] = engine
            logger.info(
                "Resolved completed status for tenant",
                tenant_id=tenant_id,
                completed_status_id=engine.completed_status_id,
            )
        return engine

    def invalidate_engine(self, tenant_id: str | None = None) -> None:
        """Drop memoised engines so the next report re-resolves the taxonomy.

        Args:
            tenant_id: The tenant whose engine to drop; every tenant when None.
        """
        if tenant_id is None:
            self._engines.clear()
        else:
            self._engines.pop(tenant_id, None)
        logger.info("Invalidated compliance engine cache", tenant_id=tenant_id)

    async def get_entity_report(
        self,
        tenant_id: str,
        entity_id: int,
        now: datetime | None = None,
    ) -> EntityComplianceReport:
        """Build the compliance report of one entity.

        Args:
            tenant_id: The tenant.
            entity_id: The entity being reported on.
            now: Evaluation instant; the service clock when None.

        Returns:
            EntityComplianceReport.
        """
        engine = await self.get_engine(tenant_id)
        subscriptions, tasks = await asyncio.gather(
            self._fetch("list_subscriptions", self._provider.list_subscriptions(tenant_id, [entity_id])),
            self._fetch("list_tasks", self._provider.list_tasks(tenant_id, [entity_id])),
        )
        report_now = now or self._clock()
        return engine.entity_report(entity_id, subscriptions, tasks, report_now)

    async def get_jurisdiction_risk_report(
        self,
        tenant_id: str,
        now: datetime | None = None,
    ) -> list[RiskProfile]:
        """Build risk profiles for every jurisdiction of the tenant.

        Args:
            tenant_id: The tenant.
            now: Evaluation instant; the service clock when None.

        Returns:
            RiskProfiles ordered by risk score descending.
        """
        engine = await self.get_engine(tenant_id)
        jurisdictions, subscriptions, tasks = await asyncio.gather(
            self._fetch("list_entity_jurisdictions", self._provider.list_entity_jurisdictions(tenant_id)),
            self._fetch("list_subscriptions", self._provider.list_subscriptions(tenant_id)),
            self._fetch("list_tasks", self._provider.list_tasks(tenant_id)),
        )
        report_now = now or self._clock()

        logger.info(
            "Building jurisdiction risk report",
            tenant_id=tenant_id,
            entity_count=len(jurisdictions),
            task_count=len(tasks),
        )
        return build_risk_profiles(
            jurisdictions,
            subscriptions,
            tasks,
            report_now,
            engine.completed_status_id,
            policy=engine.policy,
            upcoming_credit=self._settings.upcoming_partial_credit,
            strict_frequency=engine.settings.strict_frequency,
        )

    async def get_team_efficiency_report(
        self,
        tenant_id: str,
        now: datetime | None = None,
    ) -> TeamEfficiencyReport:
        """Build the team efficiency report of the tenant.

        Args:
            tenant_id: The tenant.
            now: Evaluation instant; the service clock when None.

        Returns:
            TeamEfficiencyReport.
        """
        engine = await self.get_engine(tenant_id)
        members, tasks = await asyncio.gather(
            self._fetch("list_team_members", self._provider.list_team_members(tenant_id)),
            self._fetch("list_tasks", self._provider.list_tasks(tenant_id)),
        )
        report_now = now or self._clock()
        return evaluate_team(
            members,
            tasks,
            report_now,
            engine.completed_status_id,
            policy=engine.policy,
        )
