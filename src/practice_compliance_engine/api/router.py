"""API router for practice-compliance-engine.

All endpoints are registered here and included in main.py under the /api/v1
prefix. Routes are thin: all derivation logic lives in the engine modules.
Requests carry the tenant-scoped snapshot, so the router holds no state.

Endpoints:
- POST /compliance/entity-report     scorecard, deadlines, history and alerts
- POST /compliance/classify          classify one service deadline
- POST /compliance/next-occurrence   next recurrence after a completion date
- POST /compliance/next-period       next compliance period to generate
- POST /risk/jurisdictions           jurisdiction risk profiles
- POST /performance/team             team efficiency report
- GET  /health                       liveness probe

Error mapping:
- InvalidFrequencyError            -> 422
- InconsistentStatusTaxonomyError  -> 409
- DataFetchTimeoutError            -> 504
"""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from practice_compliance_engine.api.schemas import (
    ClassifyRequest,
    ClassifyResponse,
    CompliancePeriodSchema,
    EntityReportRequest,
    EntityReportResponse,
    HealthResponse,
    JurisdictionRiskRequest,
    JurisdictionRiskResponse,
    NextOccurrenceRequest,
    NextOccurrenceResponse,
    NextPeriodRequest,
    RiskProfileSchema,
    TaskStatusSchema,
    TeamEfficiencyRequest,
    TeamEfficiencyResponse,
)
from practice_compliance_engine.compliance.classifier import ClassifierPolicy, classify, days_until
from practice_compliance_engine.compliance.engine import ComplianceEngine
from practice_compliance_engine.compliance.recurrence import next_compliance_period, resolve_recurrence
from practice_compliance_engine.errors import (
    ComplianceEngineError,
    DataFetchTimeoutError,
    InconsistentStatusTaxonomyError,
    InvalidFrequencyError,
)
from practice_compliance_engine.observability import get_logger
from practice_compliance_engine.performance.productivity import evaluate_team
from practice_compliance_engine.performance.risk import build_risk_profiles
from practice_compliance_engine.settings import Settings, get_settings

logger = get_logger(__name__)

router = APIRouter(tags=["compliance"])

_ERROR_STATUS_CODES: dict[type[ComplianceEngineError], int] = {
    InvalidFrequencyError: 422,
    InconsistentStatusTaxonomyError: 409,
    DataFetchTimeoutError: 504,
}


# ---------------------------------------------------------------------------
# Dependency factories
# ---------------------------------------------------------------------------


def get_service_settings() -> Settings:
    """Return the process settings for request handling.

    Returns:
        Cached Settings instance.
    """
    return get_settings()


def _to_http_error(exc: ComplianceEngineError) -> HTTPException:
    status_code = _ERROR_STATUS_CODES.get(type(exc), 500)
    logger.warning("Compliance request rejected", error=exc.message, status_code=status_code)
    return HTTPException(status_code=status_code, detail=exc.message)


def _build_engine(statuses: list[TaskStatusSchema], settings: Settings) -> ComplianceEngine:
    """Resolve the snapshot's completed status and bind an engine to it.

    Raises:
        HTTPException 409: If the taxonomy has no single completed status.
    """
    try:
        return ComplianceEngine.from_status_taxonomy(
            [status.to_model() for status in statuses], settings
        )
    except InconsistentStatusTaxonomyError as exc:
        raise _to_http_error(exc) from exc


def _resolve_now(now: datetime | None) -> datetime:
    return now or datetime.now(UTC)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/compliance/entity-report",
    response_model=EntityReportResponse,
    summary="Entity compliance report",
)
async def entity_report(
    request: EntityReportRequest,
    settings: Annotated[Settings, Depends(get_service_settings)],
) -> EntityReportResponse:
    """Build the scorecard, ranked deadlines, history and alerts of one entity.

    Args:
        request: Entity id plus the subscription, task and status snapshot.
        settings: Injected service settings.

    Returns:
        The entity's compliance report.

    Raises:
        HTTPException 409: If the status taxonomy is inconsistent.
        HTTPException 422: If strict frequency parsing rejects a task.
    """
    logger.info(
        "POST /compliance/entity-report",
        entity_id=request.entity_id,
        subscription_count=len(request.subscriptions),
        task_count=len(request.tasks),
    )
    engine = _build_engine(request.statuses, settings)
    try:
        report = engine.entity_report(
            request.entity_id,
            [s.to_model() for s in request.subscriptions],
            [t.to_model() for t in request.tasks],
            _resolve_now(request.now),
        )
    except InvalidFrequencyError as exc:
        raise _to_http_error(exc) from exc
    return EntityReportResponse.model_validate(report)


@router.post(
    "/compliance/classify",
    response_model=ClassifyResponse,
    summary="Classify a service deadline",
)
async def classify_deadline(
    request: ClassifyRequest,
    settings: Annotated[Settings, Depends(get_service_settings)],
) -> ClassifyResponse:
    """Classify one service from its subscription state and due date.

    Args:
        request: Subscription flag, optional due date and optional now.
        settings: Injected service settings.

    Returns:
        The status bucket and whole days until due.
    """
    now = _resolve_now(request.now)
    status = classify(
        request.is_subscribed,
        request.next_due_at,
        now,
        ClassifierPolicy.from_settings(settings),
    )
    remaining = days_until(request.next_due_at, now) if request.next_due_at else None
    return ClassifyResponse(status=status, days_until_due=remaining)


@router.post(
    "/compliance/next-occurrence",
    response_model=NextOccurrenceResponse,
    summary="Next recurrence after a completion date",
)
async def next_occurrence(
    request: NextOccurrenceRequest,
    settings: Annotated[Settings, Depends(get_service_settings)],
) -> NextOccurrenceResponse:
    """Resolve the next due date for a frequency.

    Args:
        request: Last completion date and raw frequency label.
        settings: Injected service settings.

    Returns:
        The next due date, the applied frequency and whether it was defaulted.

    Raises:
        HTTPException 422: If strict frequency parsing rejects the label.
    """
    try:
        recurrence = resolve_recurrence(
            request.last_date, request.frequency, strict=settings.strict_frequency
        )
    except InvalidFrequencyError as exc:
        raise _to_http_error(exc) from exc
    return NextOccurrenceResponse(
        due_at=recurrence.due_at,
        frequency=recurrence.frequency,
        defaulted=recurrence.defaulted,
    )


@router.post(
    "/compliance/next-period",
    response_model=CompliancePeriodSchema,
    summary="Next compliance period to generate",
)
async def next_period(
    request: NextPeriodRequest,
    settings: Annotated[Settings, Depends(get_service_settings)],
) -> CompliancePeriodSchema:
    """Generate the period following the one containing the reference instant.

    The fiscal year start month and the due offset come from settings.

    Args:
        request: Frequency label, optional reference instant and fiscal flag.
        settings: Injected service settings.

    Returns:
        Period start, last day and due date.

    Raises:
        HTTPException 422: If strict frequency parsing rejects the label.
    """
    try:
        period = next_compliance_period(
            request.frequency,
            _resolve_now(request.reference),
            fiscal=request.fiscal,
            fiscal_year_start_month=settings.fiscal_year_start_month,
            due_offset_days=settings.period_due_offset_days,
            strict=settings.strict_frequency,
        )
    except InvalidFrequencyError as exc:
        raise _to_http_error(exc) from exc
    return CompliancePeriodSchema.model_validate(period)


@router.post(
    "/risk/jurisdictions",
    response_model=JurisdictionRiskResponse,
    summary="Jurisdiction risk report",
)
async def jurisdiction_risk(
    request: JurisdictionRiskRequest,
    settings: Annotated[Settings, Depends(get_service_settings)],
) -> JurisdictionRiskResponse:
    """Score every jurisdiction by overdue work, compliance and completion.

    Args:
        request: Entity-to-jurisdiction map plus the record snapshot.
        settings: Injected service settings.

    Returns:
        Risk profiles ordered by score descending.

    Raises:
        HTTPException 409: If the status taxonomy is inconsistent.
        HTTPException 422: If strict frequency parsing rejects a task.
    """
    engine = _build_engine(request.statuses, settings)
    now = _resolve_now(request.now)
    try:
        profiles = build_risk_profiles(
            request.entity_jurisdictions,
            [s.to_model() for s in request.subscriptions],
            [t.to_model() for t in request.tasks],
            now,
            engine.completed_status_id,
            policy=engine.policy,
            upcoming_credit=settings.upcoming_partial_credit,
            strict_frequency=settings.strict_frequency,
        )
    except InvalidFrequencyError as exc:
        raise _to_http_error(exc) from exc
    return JurisdictionRiskResponse(
        generated_at=now,
        profiles=[RiskProfileSchema.model_validate(p) for p in profiles],
    )


@router.post(
    "/performance/team",
    response_model=TeamEfficiencyResponse,
    summary="Team efficiency report",
)
async def team_efficiency(
    request: TeamEfficiencyRequest,
    settings: Annotated[Settings, Depends(get_service_settings)],
) -> TeamEfficiencyResponse:
    """Compute per-member productivity and team totals.

    Args:
        request: Member names plus the task and status snapshot.
        settings: Injected service settings.

    Returns:
        The team efficiency report.

    Raises:
        HTTPException 409: If the status taxonomy is inconsistent.
    """
    engine = _build_engine(request.statuses, settings)
    report = evaluate_team(
        request.members,
        [t.to_model() for t in request.tasks],
        _resolve_now(request.now),
        engine.completed_status_id,
        policy=engine.policy,
    )
    return TeamEfficiencyResponse.model_validate(report)


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health(
    settings: Annotated[Settings, Depends(get_service_settings)],
) -> HealthResponse:
    """Report that the service is up."""
    return HealthResponse(status="ok", service=settings.service_name)
