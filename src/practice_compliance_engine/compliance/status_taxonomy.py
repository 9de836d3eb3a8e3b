"""Resolution of the tenant's "Completed" task status.

Every component that counts completed tasks takes a single ``completed_status_id``
resolved here once, at configuration time. Report screens that each hard-coded
their own id disagreed about which tasks were done.
"""

from collections.abc import Iterable

from practice_compliance_engine.core.models import TaskStatus
from practice_compliance_engine.errors import InconsistentStatusTaxonomyError
from practice_compliance_engine.observability import get_logger

logger = get_logger(__name__)

COMPLETED_STATUS_NAME = "Completed"


def resolve_completed_status_id(
    statuses: Iterable[TaskStatus],
    completed_name: str = COMPLETED_STATUS_NAME,
) -> int:
    """Find the id of the single status that means "Completed".

    Names are compared case-insensitively with surrounding whitespace ignored.

    Args:
        statuses: The tenant's full status taxonomy.
        completed_name: Name of the completed status.

    Returns:
        The completed status id.

    Raises:
        InconsistentStatusTaxonomyError: If no status, or more than one distinct
            status, carries the completed name.
    """
    wanted = completed_name.strip().casefold()
    matching_ids = sorted({s.id for s in statuses if s.name.strip().casefold() == wanted})

    if len(matching_ids) != 1:
        logger.error(
            "Completed status could not be resolved",
            completed_name=completed_name,
            matching_ids=matching_ids,
        )
        raise InconsistentStatusTaxonomyError(completed_name, matching_ids)

    return matching_ids[0]
