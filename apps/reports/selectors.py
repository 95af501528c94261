"""
Report Selectors

Agency report aggregation over an organization's downline: production by
month, agent roster, client status counts, upcoming renewals, policy
sales, the audit log and the agency overview.

Every function takes an organization id that has already passed the
effective-org gate (apps.organizations.selectors.resolve_effective_org_id).
An empty downline yields empty rows, never an error.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from datetime import timezone as dt_timezone
from uuid import UUID

from django.db.models import Count, Q
from django.db.models.functions import ExtractMonth

from apps.core.constants import (
    ACTIVE_CLIENT_LABEL,
    ACTIVE_COVERAGE_STATUSES,
    AUDIT_ACTION_LABELS,
    CLIENT_STATUS_LABELS,
    EXCLUDED_COVERAGE_STATUSES,
    MONTH_KEYS,
    UNKNOWN_DISPLAY_NAME,
)
from apps.core.hierarchy import (
    is_org_in_downline,
    resolve_downline_agent_ids,
    resolve_downline_org_ids,
)
from apps.core.models import (
    Client,
    ClientCoverage,
    Organization,
    OrganizationAuditLog,
    OrganizationMember,
    Profile,
)
from apps.core.utils import display_name_for, format_full_name

from .params import DateWindow, PageWindow, PolicySalesFilters

logger = logging.getLogger(__name__)


# =============================================================================
# Report Rows
# =============================================================================

@dataclass
class ProductionRow:
    agent_id: UUID
    agent_name: str
    jan: int = 0
    feb: int = 0
    mar: int = 0
    apr: int = 0
    may: int = 0
    jun: int = 0
    jul: int = 0
    aug: int = 0
    sep: int = 0
    oct: int = 0
    nov: int = 0
    dec: int = 0
    year_total: int = 0


@dataclass
class RosterRow:
    user_id: UUID
    display_name: str
    email: str
    phone: str
    role: str
    organization_id: UUID
    organization_name: str
    client_count: int
    policy_count: int
    accepted_at: datetime | None
    status: str
    npn: str


@dataclass
class ClientStatusRow:
    agent_id: UUID
    agent_name: str
    agency_name: str
    total: int = 0
    new: int = 0
    active: int = 0
    lead: int = 0
    inactive: int = 0


@dataclass
class RenewalRow:
    coverage_id: UUID
    client_id: UUID
    client_name: str
    agent_id: UUID | None
    agent_name: str
    agency_name: str
    plan_name: str
    carrier: str
    plan_type: str
    effective_date: date
    renewal_date: date


@dataclass
class PolicySalesRow:
    coverage_id: UUID
    client_id: UUID
    agent_id: UUID | None
    agent_first: str
    agent_last: str
    agency_name: str
    client_status: str
    source: str
    member_first: str
    member_last: str
    policy_type: str
    policy_status: str
    policy_company: str
    policy_plan_name: str
    policy_number: str
    policy_effective_date: date
    policy_application_date: date | None


@dataclass
class AuditLogEntry:
    id: UUID
    action: str
    action_label: str
    performed_by: UUID | None
    performed_by_name: str
    target_user_id: UUID | None
    target_user_name: str | None
    details: dict | None
    details_summary: str
    created_at: datetime


@dataclass
class AuditLogPage:
    entries: list[AuditLogEntry] = field(default_factory=list)
    page: int = 1
    page_size: int = 25
    total_pages: int = 0
    total_count: int = 0


# =============================================================================
# Scope Helpers
# =============================================================================

def _check_sub_org(org_id: UUID, sub_org_id: UUID) -> None:
    # Sub-org filters are not rejected; flag any that leave the root's tree.
    if not is_org_in_downline(org_id, sub_org_id):
        logger.warning(
            f'Sub-organization filter {sub_org_id} is outside the downline of {org_id}'
        )


def scope_org_ids(org_id: UUID, sub_org_id: UUID | None = None) -> list[UUID]:
    """Downline org ids for a report, re-rooted at the sub-org when given."""
    if sub_org_id and sub_org_id != org_id:
        _check_sub_org(org_id, sub_org_id)
        return resolve_downline_org_ids(sub_org_id)
    return resolve_downline_org_ids(org_id)


def scope_agent_ids(org_id: UUID, sub_org_id: UUID | None = None) -> list[UUID]:
    """Downline agent ids for a report, re-rooted at the sub-org when given."""
    if sub_org_id and sub_org_id != org_id:
        _check_sub_org(org_id, sub_org_id)
        return resolve_downline_agent_ids(sub_org_id)
    return resolve_downline_agent_ids(org_id)


def _profiles_by_id(user_ids) -> dict[UUID, dict]:
    ids = {user_id for user_id in user_ids if user_id}
    if not ids:
        return {}
    rows = Profile.objects.filter(id__in=ids).values(
        'id', 'display_name', 'first_name', 'last_name', 'email', 'phone', 'npn'
    )
    return {row['id']: row for row in rows}


def _agency_assignments(agent_ids, org_ids: list[UUID]) -> dict[UUID, tuple[UUID, str]]:
    """Map each agent to (id, name) of their shallowest active org in scope."""
    if not agent_ids or not org_ids:
        return {}
    depth = {org_id: index for index, org_id in enumerate(org_ids)}
    memberships = (
        OrganizationMember.objects
        .filter(user_id__in=agent_ids, organization_id__in=org_ids, status='active')
        .values('user_id', 'organization_id', 'organization__name')
    )
    best: dict[UUID, tuple[int, UUID, str]] = {}
    for row in memberships:
        rank = depth.get(row['organization_id'], len(depth))
        current = best.get(row['user_id'])
        if current is None or rank < current[0]:
            best[row['user_id']] = (rank, row['organization_id'], row['organization__name'] or '')
    return {user_id: (org_id, name) for user_id, (_, org_id, name) in best.items()}


def _agency_names(agent_ids, org_ids: list[UUID]) -> dict[UUID, str]:
    """Map each agent to the name of their shallowest active org in scope."""
    return {
        user_id: name
        for user_id, (_, name) in _agency_assignments(agent_ids, org_ids).items()
    }


def _sort_key(name: str) -> str:
    return (name or '').casefold()


# =============================================================================
# Production
# =============================================================================

def get_production_report(
    org_id: UUID,
    year: int,
    sub_org_id: UUID | None = None,
) -> list[ProductionRow]:
    """
    Count policies per agent per calendar month of the year, by effective date.

    Agents are the active members of every org in the scope, producing or
    not; each appears even with no production. Coverages with an excluded
    status (replaced, canceled, ...) do not count.
    """
    agent_ids = scope_agent_ids(org_id, sub_org_id)
    if not agent_ids:
        return []

    profiles = _profiles_by_id(agent_ids)
    rows = {
        agent_id: ProductionRow(agent_id=agent_id, agent_name=display_name_for(profiles.get(agent_id)))
        for agent_id in agent_ids
    }

    monthly = (
        ClientCoverage.objects
        .filter(
            client__agent_id__in=list(rows),
            effective_date__gte=date(year, 1, 1),
            effective_date__lte=date(year, 12, 31),
        )
        .exclude(status__in=EXCLUDED_COVERAGE_STATUSES)
        .annotate(month=ExtractMonth('effective_date'))
        .values('client__agent_id', 'month')
        .annotate(policies=Count('id'))
        .order_by()
    )
    for bucket in monthly:
        row = rows.get(bucket['client__agent_id'])
        month = bucket['month']
        if row is None or not month or not 1 <= month <= 12:
            continue
        key = MONTH_KEYS[month - 1]
        setattr(row, key, getattr(row, key) + bucket['policies'])
        row.year_total += bucket['policies']

    return sorted(rows.values(), key=lambda row: (_sort_key(row.agent_name), str(row.agent_id)))


# =============================================================================
# Roster
# =============================================================================

def get_roster_report(
    org_id: UUID,
    sub_org_id: UUID | None = None,
    status: str | None = None,
) -> list[RosterRow]:
    """
    One row per producing agent (plus org owners) in the scope.

    An agent with memberships in several scoped orgs is listed under the
    shallowest one, preferring active memberships. Client and policy counts
    are separate grouped counts. The status filter is applied last.
    """
    org_ids = scope_org_ids(org_id, sub_org_id)
    if not org_ids:
        return []

    owner_ids = list(
        Organization.objects
        .filter(id__in=org_ids, owner_id__isnull=False)
        .values_list('owner_id', flat=True)
    )
    memberships = (
        OrganizationMember.objects
        .filter(organization_id__in=org_ids)
        .filter(Q(is_producing=True) | Q(user_id__in=owner_ids))
        .values('user_id', 'organization_id', 'role', 'status', 'accepted_at')
    )

    depth = {scoped_id: index for index, scoped_id in enumerate(org_ids)}
    chosen: dict[UUID, dict] = {}
    for membership in memberships:
        rank = (membership['status'] != 'active', depth.get(membership['organization_id'], len(depth)))
        current = chosen.get(membership['user_id'])
        if current is None or rank < current['rank']:
            chosen[membership['user_id']] = {**membership, 'rank': rank}

    if not chosen:
        return []

    user_ids = list(chosen)
    profiles = _profiles_by_id(user_ids)
    org_names = dict(Organization.objects.filter(id__in=org_ids).values_list('id', 'name'))

    client_counts = dict(
        Client.objects
        .filter(agent_id__in=user_ids)
        .values('agent_id')
        .annotate(total=Count('id'))
        .order_by()
        .values_list('agent_id', 'total')
    )
    policy_counts = dict(
        ClientCoverage.objects
        .filter(client__agent_id__in=user_ids)
        .values('client__agent_id')
        .annotate(total=Count('id'))
        .order_by()
        .values_list('client__agent_id', 'total')
    )

    rows = []
    for user_id, membership in chosen.items():
        if status and membership['status'] != status:
            continue
        profile = profiles.get(user_id) or {}
        rows.append(RosterRow(
            user_id=user_id,
            display_name=display_name_for(profile),
            email=profile.get('email') or '',
            phone=profile.get('phone') or '',
            role=membership['role'],
            organization_id=membership['organization_id'],
            organization_name=org_names.get(membership['organization_id'], ''),
            client_count=client_counts.get(user_id, 0),
            policy_count=policy_counts.get(user_id, 0),
            accepted_at=membership['accepted_at'],
            status=membership['status'],
            npn=profile.get('npn') or '',
        ))

    return sorted(rows, key=lambda row: (_sort_key(row.display_name), str(row.user_id)))


# =============================================================================
# Client Status
# =============================================================================

def get_clients_report(
    org_id: UUID,
    window: DateWindow,
    sub_org_id: UUID | None = None,
) -> list[ClientStatusRow]:
    """
    Count each agent's clients by status bucket.

    A null or blank status counts as active; anything other than active or
    lead counts as inactive. "new" counts clients created inside the window.
    Agents without clients are omitted.
    """
    agent_ids = scope_agent_ids(org_id, sub_org_id)
    if not agent_ids:
        return []

    active_q = Q(status='active') | Q(status__isnull=True) | Q(status='')
    counts = (
        Client.objects
        .filter(agent_id__in=agent_ids)
        .values('agent_id')
        .annotate(
            total=Count('id'),
            new=Count('id', filter=Q(created_at__gte=window.start_ts, created_at__lte=window.end_ts)),
            active=Count('id', filter=active_q),
            lead=Count('id', filter=Q(status='lead')),
        )
        .order_by()
    )
    counts = list(counts)
    if not counts:
        return []

    seen_agents = [row['agent_id'] for row in counts]
    profiles = _profiles_by_id(seen_agents)
    agencies = _agency_names(seen_agents, scope_org_ids(org_id, sub_org_id))

    rows = [
        ClientStatusRow(
            agent_id=row['agent_id'],
            agent_name=display_name_for(profiles.get(row['agent_id'])),
            agency_name=agencies.get(row['agent_id'], ''),
            total=row['total'],
            new=row['new'],
            active=row['active'],
            lead=row['lead'],
            inactive=row['total'] - row['active'] - row['lead'],
        )
        for row in counts
    ]
    return sorted(rows, key=lambda row: (_sort_key(row.agent_name), str(row.agent_id)))


# =============================================================================
# Renewals
# =============================================================================

def add_years(value: date, years: int) -> date:
    """Shift a date by whole years; Feb 29 becomes Feb 28 in non-leap years."""
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, day=28)


def get_renewals_report(
    org_id: UUID,
    window: DateWindow,
    sub_org_id: UUID | None = None,
    plan_type: str | None = None,
) -> list[RenewalRow]:
    """Coverages whose first anniversary falls inside the window, soonest first."""
    agent_ids = scope_agent_ids(org_id, sub_org_id)
    if not agent_ids:
        return []

    coverages = (
        ClientCoverage.objects
        .filter(
            client__agent_id__in=agent_ids,
            effective_date__gte=add_years(window.start_date, -1),
            # Feb 29 effective dates renew on Feb 28
            effective_date__lte=add_years(window.end_date, -1) + timedelta(days=1),
        )
        .select_related('client')
    )
    if plan_type:
        coverages = coverages.filter(plan_type=plan_type)

    rows = []
    for coverage in coverages:
        renewal_date = add_years(coverage.effective_date, 1)
        if not window.contains_date(renewal_date):
            continue
        client = coverage.client
        rows.append(RenewalRow(
            coverage_id=coverage.id,
            client_id=client.id,
            client_name=format_full_name(client.first_name, client.last_name),
            agent_id=client.agent_id,
            agent_name='',
            agency_name='',
            plan_name=coverage.plan_name or '',
            carrier=coverage.carrier or '',
            plan_type=coverage.plan_type or '',
            effective_date=coverage.effective_date,
            renewal_date=renewal_date,
        ))

    if not rows:
        return []

    row_agents = {row.agent_id for row in rows if row.agent_id}
    profiles = _profiles_by_id(row_agents)
    agencies = _agency_names(row_agents, scope_org_ids(org_id, sub_org_id))
    for row in rows:
        row.agent_name = display_name_for(profiles.get(row.agent_id))
        row.agency_name = agencies.get(row.agent_id, '')

    return sorted(rows, key=lambda row: (row.renewal_date, _sort_key(row.client_name)))


# =============================================================================
# Policy Sales
# =============================================================================

def client_status_label(status: str | None) -> str:
    return CLIENT_STATUS_LABELS.get((status or '').strip().lower(), ACTIVE_CLIENT_LABEL)


def get_policy_sales_report(
    org_id: UUID,
    filters: PolicySalesFilters,
    sub_org_id: UUID | None = None,
) -> list[PolicySalesRow]:
    """
    One row per policy written by the scope's agents, newest effective date first.

    Policies without an effective date or with an excluded status never
    appear. The agency filter matches the agent's shallowest active org in
    scope.
    """
    agent_ids = scope_agent_ids(org_id, sub_org_id)
    if not agent_ids:
        return []

    agencies = _agency_assignments(agent_ids, scope_org_ids(org_id, sub_org_id))
    if filters.agency_ids:
        agent_ids = [
            agent_id for agent_id in agent_ids
            if agent_id in agencies and agencies[agent_id][0] in filters.agency_ids
        ]
        if not agent_ids:
            return []

    coverages = (
        ClientCoverage.objects
        .filter(client__agent_id__in=agent_ids, effective_date__isnull=False)
        .exclude(status__in=EXCLUDED_COVERAGE_STATUSES)
        .select_related('client')
    )
    if filters.effective_from:
        coverages = coverages.filter(effective_date__gte=filters.effective_from)
    if filters.effective_to:
        coverages = coverages.filter(effective_date__lte=filters.effective_to)
    if filters.carriers:
        coverages = coverages.filter(carrier__in=filters.carriers)
    if filters.plan_names:
        coverages = coverages.filter(plan_name__in=filters.plan_names)
    if filters.statuses:
        coverages = coverages.filter(status__in=filters.statuses)
    if filters.sources:
        coverages = coverages.filter(client__source__in=filters.sources)

    coverages = list(coverages)
    if not coverages:
        return []

    profiles = _profiles_by_id({coverage.client.agent_id for coverage in coverages})
    rows = []
    for coverage in coverages:
        client = coverage.client
        profile = profiles.get(client.agent_id) or {}
        rows.append(PolicySalesRow(
            coverage_id=coverage.id,
            client_id=client.id,
            agent_id=client.agent_id,
            agent_first=profile.get('first_name') or '',
            agent_last=profile.get('last_name') or '',
            agency_name=agencies.get(client.agent_id, (None, ''))[1],
            client_status=client_status_label(client.status),
            source=client.source or '',
            member_first=client.first_name or '',
            member_last=client.last_name or '',
            policy_type=coverage.plan_type or '',
            policy_status=coverage.status or '',
            policy_company=coverage.carrier or '',
            policy_plan_name=coverage.plan_name or '',
            policy_number=coverage.member_policy_number or '',
            policy_effective_date=coverage.effective_date,
            policy_application_date=coverage.application_date,
        ))

    rows.sort(key=lambda row: (_sort_key(row.member_last), _sort_key(row.member_first), str(row.coverage_id)))
    rows.sort(key=lambda row: row.policy_effective_date, reverse=True)
    return rows


# =============================================================================
# Audit Log
# =============================================================================

def summarize_audit_details(details: dict | None) -> str:
    if not details:
        return ''
    parts = []
    if details.get('old_role') and details.get('new_role'):
        parts.append(f"Role: {details['old_role']} → {details['new_role']}")
    if details.get('role'):
        parts.append(f"Role: {details['role']}")
    if details.get('org_name'):
        parts.append(f"Org: {details['org_name']}")
    if details.get('sub_agency_name'):
        parts.append(f"Sub-agency: {details['sub_agency_name']}")
    return '. '.join(parts)


def get_audit_log(org_id: UUID, window: DateWindow, page: PageWindow) -> AuditLogPage:
    """
    One page of an organization's audit log, newest first.

    Scoped to the organization itself (no downline expansion). Performer
    and target ids are resolved to display names in a single lookup; ids
    without a profile render as "Unknown".
    """
    entries = (
        OrganizationAuditLog.objects
        .filter(
            organization_id=org_id,
            created_at__gte=window.start_ts,
            created_at__lte=window.end_ts,
        )
        .order_by('-created_at', '-id')
    )
    total_count = entries.count()
    result = AuditLogPage(
        page=page.page,
        page_size=page.limit,
        total_pages=math.ceil(total_count / page.limit) if total_count else 0,
        total_count=total_count,
    )
    if not total_count:
        return result

    page_entries = list(entries[page.offset:page.offset + page.limit])
    profiles = _profiles_by_id(
        {entry.performed_by for entry in page_entries}
        | {entry.target_user_id for entry in page_entries}
    )

    for entry in page_entries:
        target_name = None
        if entry.target_user_id:
            target_name = display_name_for(profiles.get(entry.target_user_id))
        result.entries.append(AuditLogEntry(
            id=entry.id,
            action=entry.action,
            action_label=AUDIT_ACTION_LABELS.get(entry.action, entry.action),
            performed_by=entry.performed_by,
            performed_by_name=display_name_for(profiles.get(entry.performed_by)),
            target_user_id=entry.target_user_id,
            target_user_name=target_name,
            details=entry.details,
            details_summary=summarize_audit_details(entry.details),
            created_at=entry.created_at,
        ))
    return result


# =============================================================================
# Agency Overview
# =============================================================================

def get_agency_overview(org_id: UUID, today: date) -> dict:
    """Headline counts for an agency plus each sub-agency's agent count."""
    agent_ids = resolve_downline_agent_ids(org_id)
    month_start = today.replace(day=1)
    month_start_ts = datetime.combine(month_start, time(0, 0, 0), tzinfo=dt_timezone.utc)

    metrics = {
        'total_agents': len(agent_ids),
        'total_clients': 0,
        'total_active_policies': 0,
        'new_clients_this_month': 0,
        'policies_written_this_month': 0,
    }
    if agent_ids:
        clients = Client.objects.filter(agent_id__in=agent_ids)
        coverages = ClientCoverage.objects.filter(client__agent_id__in=agent_ids)
        metrics.update(
            total_clients=clients.count(),
            new_clients_this_month=clients.filter(created_at__gte=month_start_ts).count(),
            total_active_policies=coverages.filter(status__in=ACTIVE_COVERAGE_STATUSES).count(),
            policies_written_this_month=coverages.filter(
                Q(effective_date__gte=month_start)
                | Q(effective_date__isnull=True, created_at__gte=month_start_ts)
            ).count(),
        )

    org_ids = resolve_downline_org_ids(org_id)
    names = dict(Organization.objects.filter(id__in=org_ids).values_list('id', 'name'))
    sub_agencies = [
        {
            'id': sub_id,
            'name': names.get(sub_id, UNKNOWN_DISPLAY_NAME),
            'agent_count': len(resolve_downline_agent_ids(sub_id)),
        }
        for sub_id in org_ids[1:]
    ]

    return {
        'organization_id': org_id,
        'metrics': metrics,
        'sub_agencies': sub_agencies,
    }
