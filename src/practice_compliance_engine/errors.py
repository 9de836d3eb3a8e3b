"""Error taxonomy for the practice compliance engine.

Only configuration problems and caller mistakes are exceptions. Empty input is
not an error: it yields zero-valued scorecards so dashboards can render
"0% compliant" instead of failing.

Errors defined:
- ComplianceEngineError: Base class for everything raised by this package
- InvalidFrequencyError: Unrecognised recurrence frequency in strict mode
- InconsistentStatusTaxonomyError: Tenant status list has no unambiguous "Completed"
- DataFetchTimeoutError: The data provider did not answer within the fetch timeout
"""

from typing import Any


class ComplianceEngineError(Exception):
    """Base class for all practice compliance engine errors.

    Args:
        message: Human-readable description of the failure.
    """

    def __init__(self, message: str) -> None:
        """Initialize the error with a message.

        Args:
            message: Human-readable description of the failure.
        """
        super().__init__(message)
        self.message = message


class InvalidFrequencyError(ComplianceEngineError):
    """Raised when a frequency string cannot be mapped to a known Frequency.

    Only raised when the caller asked for strict parsing; the default policy
    falls back to Yearly and flags the recurrence as defaulted instead.

    Args:
        raw: The frequency value that could not be parsed.
    """

    def __init__(self, raw: Any) -> None:
        """Initialize with the offending raw value.

        Args:
            raw: The frequency value that could not be parsed.
        """
        super().__init__(f"Unrecognised compliance frequency: {raw!r}")
        self.raw = raw


class InconsistentStatusTaxonomyError(ComplianceEngineError):
    """Raised when a tenant's task statuses do not identify one "Completed" status.

    This is fatal at configuration time. Guessing the id per call site is what
    produced diverging completion counts between report screens.

    Args:
        completed_name: The status name that was searched for.
        matching_ids: Ids of every status whose name matched.
    """

    def __init__(self, completed_name: str, matching_ids: list[int]) -> None:
        """Initialize with the search term and the ids that matched it.

        Args:
            completed_name: The status name that was searched for.
            matching_ids: Ids of every status whose name matched.
        """
        if matching_ids:
            detail = f"{len(matching_ids)} statuses named {completed_name!r}: {sorted(matching_ids)}"
        else:
            detail = f"no status named {completed_name!r}"
        super().__init__(f"Task status taxonomy is ambiguous: {detail}")
        self.completed_name = completed_name
        self.matching_ids = matching_ids


class DataFetchTimeoutError(ComplianceEngineError):
    """Raised when the data provider exceeds the configured fetch timeout.

    Args:
        operation: Name of the provider call that timed out.
        timeout_seconds: The timeout that was exceeded.
    """

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        """Initialize with the timed-out operation and its budget.

        Args:
            operation: Name of the provider call that timed out.
            timeout_seconds: The timeout that was exceeded.
        """
        super().__init__(
            f"Data provider call '{operation}' exceeded {timeout_seconds:.1f}s fetch timeout"
        )
        self.operation = operation
        self.timeout_seconds = timeout_seconds
