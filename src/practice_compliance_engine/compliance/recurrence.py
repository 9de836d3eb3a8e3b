"""Temporal recurrence resolver.

Turns a last-known date and a frequency into the next occurrence, and
generates the compliance period a recurring service should cover next.

Calendar-month arithmetic clamps the day of month: Jan 31 + 1 month is the
last day of February, never Mar 3. ``dateutil.relativedelta`` provides the
clamping.

Frequency policy: an absent or unrecognised frequency resolves to Yearly and
the result is flagged ``defaulted`` so callers can tell explicit recurrences
from assumed ones. In strict mode an unrecognised string raises
InvalidFrequencyError instead.
"""

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from practice_compliance_engine.core.models import CompliancePeriod, Frequency, Recurrence
from practice_compliance_engine.errors import InvalidFrequencyError
from practice_compliance_engine.observability import get_logger

logger = get_logger(__name__)

DEFAULT_FREQUENCY = Frequency.YEARLY

_FREQUENCY_MONTHS: dict[Frequency, int] = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.SEMI_ANNUALLY: 6,
    Frequency.YEARLY: 12,
}

# Keys are lower-cased with spaces, hyphens and underscores removed
_FREQUENCY_ALIASES: dict[str, Frequency] = {
    "monthly": Frequency.MONTHLY,
    "quarterly": Frequency.QUARTERLY,
    "semiannually": Frequency.SEMI_ANNUALLY,
    "semiannual": Frequency.SEMI_ANNUALLY,
    "biannual": Frequency.SEMI_ANNUALLY,
    "biannually": Frequency.SEMI_ANNUALLY,
    "halfyearly": Frequency.SEMI_ANNUALLY,
    "yearly": Frequency.YEARLY,
    "annual": Frequency.YEARLY,
    "annually": Frequency.YEARLY,
}


def _normalize(raw: str) -> str:
    return "".join(ch for ch in raw.strip().lower() if ch not in " -_")


def parse_frequency(raw: Frequency | str | None, strict: bool = False) -> tuple[Frequency, bool]:
    """Map a stored frequency label to a Frequency.

    Args:
        raw: A Frequency, a stored label such as "Semi-Annually" or "annual", or None.
        strict: Raise instead of defaulting when ``raw`` is a non-empty,
            unrecognised string.

    Returns:
        Tuple of (frequency, defaulted). ``defaulted`` is True when Yearly was assumed.

    Raises:
        InvalidFrequencyError: If ``strict`` and ``raw`` is not a known label.
    """
    if isinstance(raw, Frequency):
        return raw, False
    if raw is None or not str(raw).strip():
        return DEFAULT_FREQUENCY, True

    frequency = _FREQUENCY_ALIASES.get(_normalize(str(raw)))
    if frequency is not None:
        return frequency, False

    if strict:
        raise InvalidFrequencyError(raw)

    logger.warning(
        "Unrecognised compliance frequency, assuming default",
        raw_frequency=str(raw),
        default=DEFAULT_FREQUENCY.value,
    )
    return DEFAULT_FREQUENCY, True


def months_for(frequency: Frequency) -> int:
    """Return the number of calendar months one recurrence step spans.

    Args:
        frequency: The recurrence frequency.

    Returns:
        1, 3, 6 or 12.
    """
    return _FREQUENCY_MONTHS[frequency]


def resolve_recurrence(
    last_date: datetime,
    frequency: Frequency | str | None,
    strict: bool = False,
) -> Recurrence:
    """Compute the next occurrence after ``last_date`` with default metadata.

    Args:
        last_date: The last known occurrence.
        frequency: Frequency or stored label; None means "not recorded".
        strict: Raise on unrecognised labels instead of defaulting to Yearly.

    Returns:
        Recurrence carrying the due date, the applied frequency and whether
        that frequency was defaulted.

    Raises:
        InvalidFrequencyError: If ``strict`` and the label is not recognised.
    """
    resolved, defaulted = parse_frequency(frequency, strict=strict)
    due_at = last_date + relativedelta(months=months_for(resolved))
    return Recurrence(due_at=due_at, frequency=resolved, defaulted=defaulted)


def next_occurrence(last_date: datetime, frequency: Frequency | str | None) -> datetime:
    """Return the next occurrence after ``last_date``.

    Args:
        last_date: The last known occurrence.
        frequency: Frequency or stored label; absent or unknown labels mean Yearly.

    Returns:
        ``last_date`` advanced by the frequency's month span, day clamped to month end.
    """
    return resolve_recurrence(last_date, frequency).due_at


def previous_occurrence(date: datetime, frequency: Frequency | str | None) -> datetime:
    """Step one recurrence interval back from ``date``.

    Args:
        date: A known occurrence.
        frequency: Frequency or stored label.

    Returns:
        ``date`` moved back by the frequency's month span, day clamped to month end.
    """
    resolved, _ = parse_frequency(frequency)
    return date - relativedelta(months=months_for(resolved))


def period_key(moment: datetime) -> str:
    """Return the "YYYY-MM" creation-period key for a timestamp.

    Args:
        moment: Any datetime.

    Returns:
        Period key string.
    """
    return f"{moment.year:04d}-{moment.month:02d}"


def next_compliance_period(
    frequency: Frequency | str | None,
    reference: datetime,
    fiscal: bool = False,
    fiscal_year_start_month: int = 7,
    due_offset_days: int = 5,
    strict: bool = False,
) -> CompliancePeriod:
    """Compute the compliance period that follows the one containing ``reference``.

    Periods are aligned to calendar boundaries:
    - Monthly: the next calendar month
    - Quarterly: the next calendar quarter (Q4 rolls into Q1 of the next year)
    - Semi-Annually: the next half year (Jan-Jun or Jul-Dec)
    - Yearly: the next calendar year, or the next fiscal year when ``fiscal``

    Args:
        frequency: Frequency or stored label.
        reference: The moment the next period is computed from.
        fiscal: Use fiscal years for Yearly periods.
        fiscal_year_start_month: First month (1-12) of the fiscal year.
        due_offset_days: The period is due this many days before it ends.
        strict: Raise on unrecognised labels instead of defaulting to Yearly.

    Returns:
        CompliancePeriod with start, last day, and due date.

    Raises:
        InvalidFrequencyError: If ``strict`` and the label is not recognised.
    """
    resolved, _ = parse_frequency(frequency, strict=strict)
    month_start = reference.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    if resolved is Frequency.MONTHLY:
        start = month_start + relativedelta(months=1)
    elif resolved is Frequency.QUARTERLY:
        quarter_start_month = ((reference.month - 1) // 3) * 3 + 1
        start = month_start.replace(month=quarter_start_month) + relativedelta(months=3)
    elif resolved is Frequency.SEMI_ANNUALLY:
        half_start_month = 1 if reference.month <= 6 else 7
        start = month_start.replace(month=half_start_month) + relativedelta(months=6)
    elif fiscal:
        fiscal_year = reference.year if reference.month >= fiscal_year_start_month else reference.year - 1
        start = month_start.replace(year=fiscal_year + 1, month=fiscal_year_start_month)
    else:
        start = month_start.replace(year=reference.year + 1, month=1)

    end = start + relativedelta(months=months_for(resolved)) - timedelta(days=1)
    return CompliancePeriod(
        frequency=resolved,
        start=start,
        end=end,
        due_at=end - timedelta(days=due_offset_days),
    )
