"""Abstract interfaces (Protocol classes) for the compliance engine.

The report service depends on these protocols, never on a concrete data
source. Persistence, tenant isolation and authentication belong to the
implementation behind the protocol.

Protocols defined:
- IComplianceDataProvider
"""

from typing import Protocol

from practice_compliance_engine.core.models import (
    ComplianceTask,
    ServiceSubscription,
    TaskStatus,
)


class IComplianceDataProvider(Protocol):
    """Source of already-materialised, tenant-scoped compliance records."""

    async def list_subscriptions(
        self,
        tenant_id: str,
        entity_ids: list[int] | None = None,
    ) -> list[ServiceSubscription]:
        """List service subscriptions.

        Args:
            tenant_id: The tenant whose records are read.
            entity_ids: Restrict to these entities; all entities when None.

        Returns:
            ServiceSubscription records.
        """
        ...

    async def list_tasks(
        self,
        tenant_id: str,
        entity_ids: list[int] | None = None,
    ) -> list[ComplianceTask]:
        """List compliance tasks.

        Args:
            tenant_id: The tenant whose records are read.
            entity_ids: Restrict to these entities; all entities when None.

        Returns:
            ComplianceTask records.
        """
        ...

    async def list_task_statuses(self, tenant_id: str) -> list[TaskStatus]:
        """List the tenant's task status taxonomy.

        Args:
            tenant_id: The tenant whose taxonomy is read.

        Returns:
            Every TaskStatus configured for the tenant.
        """
        ...

    async def list_entity_jurisdictions(self, tenant_id: str) -> dict[int, str]:
        """Map each entity id to the name of its jurisdiction.

        Args:
            tenant_id: The tenant whose entities are read.

        Returns:
            Entity id to jurisdiction name.
        """
        ...

    async def list_team_members(self, tenant_id: str) -> dict[int, str]:
        """Map each team member id to a display name.

        Args:
            tenant_id: The tenant whose staff are read.

        Returns:
            Member id to display name.
        """
        ...
