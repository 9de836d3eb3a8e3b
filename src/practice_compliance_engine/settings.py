"""Service settings for practice-compliance-engine.

Settings use the PRACTICE_COMPLIANCE_ prefix and cover:
- Logging output
- Status taxonomy resolution (which status name means "Completed")
- Classifier and scorecard policy constants
- Deadline ranking horizon and alert windows
- Compliance period generation
- Data-fetch timeout for the report service
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for practice-compliance-engine.

    Every threshold that report screens used to hard-code lives here so that
    all consumers of the engine agree on the same numbers.

    Environment variable prefix: PRACTICE_COMPLIANCE_
    """

    service_name: str = "practice-compliance-engine"

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    log_level: str = Field(
        default="INFO",
        description="Minimum log level emitted by structlog (DEBUG, INFO, WARNING, ERROR).",
    )
    log_json: bool = Field(
        default=False,
        description="Render log events as JSON lines instead of the console renderer.",
    )

    # -------------------------------------------------------------------------
    # Status taxonomy
    # -------------------------------------------------------------------------

    completed_status_name: str = Field(
        default="Completed",
        description="Name of the tenant task status that marks a task as done. "
        "Exactly one status must carry this name (case-insensitive).",
    )

    # -------------------------------------------------------------------------
    # Classifier and scorecard policy
    # -------------------------------------------------------------------------

    upcoming_window_days: int = Field(
        default=30,
        ge=0,
        description="A due date at most this many days away classifies as upcoming.",
    )
    missing_deadline_status: str = Field(
        default="upcoming",
        description="Status for a subscribed service with no computable deadline: "
        "upcoming | overdue. Never compliant.",
        pattern="^(upcoming|overdue)$",
    )
    upcoming_partial_credit: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Credit an upcoming service earns towards the overall compliance score.",
    )
    strict_frequency: bool = Field(
        default=False,
        description="Raise InvalidFrequencyError for unrecognised frequencies instead of "
        "defaulting to Yearly.",
    )

    # -------------------------------------------------------------------------
    # Deadlines and alerts
    # -------------------------------------------------------------------------

    deadline_horizon_months: int = Field(
        default=12,
        ge=1,
        description="Only deadlines within this many months are ranked.",
    )
    alert_approaching_days: int = Field(
        default=7,
        ge=0,
        description="Upcoming services due within this many days raise DEADLINE_APPROACHING.",
    )

    # -------------------------------------------------------------------------
    # Compliance periods
    # -------------------------------------------------------------------------

    period_due_offset_days: int = Field(
        default=5,
        ge=0,
        description="A generated compliance period is due this many days before it ends.",
    )
    fiscal_year_start_month: int = Field(
        default=7,
        ge=1,
        le=12,
        description="First month of the fiscal year used for fiscal yearly periods.",
    )

    # -------------------------------------------------------------------------
    # Report service
    # -------------------------------------------------------------------------

    data_fetch_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound for fetching subscriptions, tasks and statuses. "
        "Engine computation itself is never time-bounded.",
    )

    model_config = SettingsConfigDict(env_prefix="PRACTICE_COMPLIANCE_")


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings instance.

    Returns:
        Cached Settings loaded from the environment.
    """
    return Settings()
