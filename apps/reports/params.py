"""
Report Parameter Normalization

Turns optional query-string values into canonical report inputs. Every
helper is lenient: malformed values fall back to defaults instead of
raising, so a bad bookmark never turns a report into an error page.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from datetime import timezone as dt_timezone
from uuid import UUID

from django.conf import settings
from django.utils import timezone

from apps.core.constants import COVERAGE_STATUSES, ROSTER_STATUS_FILTERS

MIN_REPORT_YEAR = 2000
MAX_REPORT_YEAR = 2100


@dataclass(frozen=True)
class DateWindow:
    start_date: date
    end_date: date
    start_ts: datetime
    end_ts: datetime

    @property
    def start(self) -> str:
        return self.start_date.isoformat()

    @property
    def end(self) -> str:
        return self.end_date.isoformat()

    def contains_date(self, value: date) -> bool:
        return self.start_date <= value <= self.end_date


@dataclass(frozen=True)
class PageWindow:
    page: int
    offset: int
    limit: int


def _today(today: date | None) -> date:
    return today or timezone.localdate()


def parse_date(value) -> date | None:
    """Parse YYYY-MM-DD (a trailing time part is ignored), None if invalid."""
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return datetime.strptime(str(value).strip()[:10], '%Y-%m-%d').date()
    except ValueError:
        return None


def _window(start_date: date, end_date: date) -> DateWindow:
    return DateWindow(
        start_date=start_date,
        end_date=end_date,
        start_ts=datetime.combine(start_date, time(0, 0, 0), tzinfo=dt_timezone.utc),
        end_ts=datetime.combine(end_date, time(23, 59, 59), tzinfo=dt_timezone.utc),
    )


def normalize_date_range(start=None, end=None, today: date | None = None) -> DateWindow:
    """
    Build an inclusive date window.

    Defaults to the first day of the current month through today. Both
    boundary days are fully included (00:00:00 to 23:59:59 UTC). A start
    after the end is kept as given and simply matches nothing.
    """
    today = _today(today)
    start_date = parse_date(start) or today.replace(day=1)
    end_date = parse_date(end) or today
    return _window(start_date, end_date)


def renewal_window(start=None, end=None, today: date | None = None) -> DateWindow:
    """Window for upcoming renewals: today through RENEWAL_WINDOW_DAYS ahead."""
    today = _today(today)
    days = int(getattr(settings, 'RENEWAL_WINDOW_DAYS', 90))
    start_date = parse_date(start) or today
    end_date = parse_date(end) or today + timedelta(days=days)
    return _window(start_date, end_date)


def normalize_page(page=None, page_size: int | None = None) -> PageWindow:
    """
    Convert a 1-based page value into offset/limit.

    Missing, non-numeric and non-positive pages become page 1.
    """
    limit = page_size or int(getattr(settings, 'AUDIT_LOG_PAGE_SIZE', 25))
    try:
        number = int(str(page).strip())
    except (TypeError, ValueError):
        number = 1
    number = max(number, 1)
    return PageWindow(page=number, offset=(number - 1) * limit, limit=limit)


def normalize_year(year=None, today: date | None = None) -> int:
    default = _today(today).year
    try:
        value = int(str(year).strip())
    except (TypeError, ValueError):
        return default
    if not MIN_REPORT_YEAR <= value <= MAX_REPORT_YEAR:
        return default
    return value


def normalize_status_filter(status=None) -> str | None:
    """Roster status filter: 'active', 'inactive' or None for all."""
    if not status:
        return None
    value = str(status).strip().lower()
    return value if value in ROSTER_STATUS_FILTERS else None


def normalize_uuid(value=None) -> UUID | None:
    if not value:
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        return None


def normalize_plan_type(plan_type=None) -> str | None:
    """Plan type filter; empty or 'all' means no filter."""
    if not plan_type:
        return None
    value = str(plan_type).strip()
    if not value or value.lower() == 'all':
        return None
    return value


@dataclass(frozen=True)
class PolicySalesFilters:
    """
    Filters for the policy sales report. Empty tuples mean "any".

    Unlike the other reports there is no default date window: without
    bounds every non-excluded policy with an effective date is listed.
    """
    effective_from: date | None = None
    effective_to: date | None = None
    carriers: tuple[str, ...] = ()
    plan_names: tuple[str, ...] = ()
    statuses: tuple[str, ...] = ()
    sources: tuple[str, ...] = ()
    agency_ids: tuple[UUID, ...] = ()

    def as_dict(self) -> dict:
        return {
            'start': self.effective_from.isoformat() if self.effective_from else None,
            'end': self.effective_to.isoformat() if self.effective_to else None,
            'carrier': list(self.carriers),
            'plan_name': list(self.plan_names),
            'policy_status': list(self.statuses),
            'source': list(self.sources),
            'agency': list(self.agency_ids),
        }


def _clean_choices(values) -> tuple[str, ...]:
    """Strip, drop blanks and duplicates, keep first-seen order."""
    cleaned = []
    for value in values or ():
        text = str(value).strip()
        if text and text not in cleaned:
            cleaned.append(text)
    return tuple(cleaned)


def normalize_policy_sales_filters(
    start=None,
    end=None,
    carriers=(),
    plan_names=(),
    statuses=(),
    sources=(),
    agencies=(),
) -> PolicySalesFilters:
    """
    Build policy sales filters from multi-value query params.

    Unknown coverage statuses and malformed agency ids are dropped.
    """
    agency_ids = []
    for value in agencies or ():
        agency_id = normalize_uuid(value)
        if agency_id and agency_id not in agency_ids:
            agency_ids.append(agency_id)

    return PolicySalesFilters(
        effective_from=parse_date(start),
        effective_to=parse_date(end),
        carriers=_clean_choices(carriers),
        plan_names=_clean_choices(plan_names),
        statuses=tuple(status for status in _clean_choices(statuses) if status in COVERAGE_STATUSES),
        sources=_clean_choices(sources),
        agency_ids=tuple(agency_ids),
    )
