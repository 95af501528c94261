"""
Agency Report API Views

Endpoints:
- GET /api/reports/production - Policies by agent and month for a year
- GET /api/reports/roster - Agents with client and policy counts
- GET /api/reports/clients - Client status counts by agent
- GET /api/reports/renewals - Upcoming policy anniversaries
- GET /api/reports/policy-sales - Policies written, filterable by carrier, plan, status, source and agency
- GET /api/reports/audit-log - Paginated organization audit log

Each endpoint has an /export variant returning the same rows as CSV. Exports
that name clients (renewals, policy sales) are written to phi_access_log
before the file is returned.

Common query params: org, sub_org, start, end, page, year, status, plan_type.
The org param is honored only when the caller has dashboard access to it.
"""
import logging
from dataclasses import asdict

from django.http import HttpResponse
from rest_framework.views import APIView

from apps.core.constants import EXPORT
from apps.core.hierarchy import get_sub_orgs
from apps.core.mixins import AuthenticatedAPIView
from apps.core.permissions import HasDashboardAccess, IsAuthenticated
from apps.organizations.selectors import resolve_effective_org_id

from .columns import (
    AUDIT_LOG_COLUMNS,
    CLIENTS_COLUMNS,
    POLICY_SALES_COLUMNS,
    PRODUCTION_COLUMNS,
    RENEWALS_COLUMNS,
    ROSTER_COLUMNS,
)
from .export import project, to_csv
from .params import (
    normalize_date_range,
    normalize_page,
    normalize_plan_type,
    normalize_policy_sales_filters,
    normalize_status_filter,
    normalize_uuid,
    normalize_year,
    renewal_window,
)
from .selectors import (
    get_audit_log,
    get_clients_report,
    get_policy_sales_report,
    get_production_report,
    get_renewals_report,
    get_roster_report,
)
from .services import client_ip, record_phi_access

logger = logging.getLogger(__name__)


def csv_response(content: str, filename: str) -> HttpResponse:
    response = HttpResponse(content, content_type=EXPORT['csv_content_type'])
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


class ReportAPIView(AuthenticatedAPIView, APIView):
    """
    Base view for agency reports.

    Subclasses set `columns` and implement build_report(), returning the
    report rows and the normalized filters that produced them. Reports whose
    rows name clients set `phi_client_field` so exports are access-logged.
    """
    permission_classes = [IsAuthenticated, HasDashboardAccess]
    columns = []
    export = False
    phi_client_field = None

    def build_report(self, request, org_id) -> tuple[list, dict]:
        raise NotImplementedError

    def get_filename(self, filters: dict) -> str:
        raise NotImplementedError

    def get_effective_org(self, request):
        user = self.get_user(request)
        requested = normalize_uuid(request.query_params.get('org'))
        return resolve_effective_org_id(user.id, requested)

    def get(self, request):
        org_id = self.get_effective_org(request)
        rows, filters = self.build_report(request, org_id)

        if self.export:
            if self.phi_client_field:
                self.record_export(request, rows)
            logger.info(f'{self.__class__.__name__} export for {org_id}: {len(rows)} rows')
            return csv_response(to_csv(self.columns, rows), self.get_filename(filters))

        return self.success_response(self.render_payload(org_id, rows, filters))

    def record_export(self, request, rows: list) -> None:
        record_phi_access(
            user_id=self.get_user(request).id,
            client_ids=[getattr(row, self.phi_client_field) for row in rows],
            ip_address=client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT'),
        )

    def render_payload(self, org_id, rows: list, filters: dict) -> dict:
        return {
            'organization_id': org_id,
            'rows': [asdict(row) for row in rows],
            'table': project(self.columns, rows).as_dict(),
            'sub_orgs': get_sub_orgs(org_id),
            'filters': filters,
        }


class ProductionReportView(ReportAPIView):
    """GET /api/reports/production?org=&year=&sub_org="""
    columns = PRODUCTION_COLUMNS

    def build_report(self, request, org_id):
        year = normalize_year(request.query_params.get('year'))
        sub_org_id = normalize_uuid(request.query_params.get('sub_org'))
        rows = get_production_report(org_id, year, sub_org_id=sub_org_id)
        return rows, {'year': year, 'sub_org': sub_org_id}

    def get_filename(self, filters):
        return f"production-report-{filters['year']}.csv"


class RosterReportView(ReportAPIView):
    """GET /api/reports/roster?org=&sub_org=&status="""
    columns = ROSTER_COLUMNS

    def build_report(self, request, org_id):
        sub_org_id = normalize_uuid(request.query_params.get('sub_org'))
        status = normalize_status_filter(request.query_params.get('status'))
        rows = get_roster_report(org_id, sub_org_id=sub_org_id, status=status)
        return rows, {'sub_org': sub_org_id, 'status': status}

    def get_filename(self, filters):
        return 'agent-roster.csv'


class ClientsReportView(ReportAPIView):
    """GET /api/reports/clients?org=&start=&end=&sub_org="""
    columns = CLIENTS_COLUMNS

    def build_report(self, request, org_id):
        window = normalize_date_range(
            request.query_params.get('start'),
            request.query_params.get('end'),
        )
        sub_org_id = normalize_uuid(request.query_params.get('sub_org'))
        rows = get_clients_report(org_id, window, sub_org_id=sub_org_id)
        return rows, {'start': window.start, 'end': window.end, 'sub_org': sub_org_id}

    def get_filename(self, filters):
        return f"client-summary-{filters['start']}-{filters['end']}.csv"


class RenewalsReportView(ReportAPIView):
    """GET /api/reports/renewals?org=&start=&end=&sub_org=&plan_type="""
    columns = RENEWALS_COLUMNS
    phi_client_field = 'client_id'

    def build_report(self, request, org_id):
        window = renewal_window(
            request.query_params.get('start'),
            request.query_params.get('end'),
        )
        sub_org_id = normalize_uuid(request.query_params.get('sub_org'))
        plan_type = normalize_plan_type(request.query_params.get('plan_type'))
        rows = get_renewals_report(org_id, window, sub_org_id=sub_org_id, plan_type=plan_type)
        return rows, {
            'start': window.start,
            'end': window.end,
            'sub_org': sub_org_id,
            'plan_type': plan_type or 'all',
        }

    def get_filename(self, filters):
        return f"renewals-{filters['start']}-{filters['end']}.csv"


class PolicySalesReportView(ReportAPIView):
    """
    GET /api/reports/policy-sales?org=&sub_org=&start=&end=

    Repeatable filters: carrier, plan_name, policy_status, source, agency.
    start/end bound the policy effective date and have no default.
    """
    columns = POLICY_SALES_COLUMNS
    phi_client_field = 'client_id'

    def build_report(self, request, org_id):
        params = request.query_params
        filters = normalize_policy_sales_filters(
            start=params.get('start'),
            end=params.get('end'),
            carriers=params.getlist('carrier'),
            plan_names=params.getlist('plan_name'),
            statuses=params.getlist('policy_status'),
            sources=params.getlist('source'),
            agencies=params.getlist('agency'),
        )
        sub_org_id = normalize_uuid(params.get('sub_org'))
        rows = get_policy_sales_report(org_id, filters, sub_org_id=sub_org_id)
        return rows, {**filters.as_dict(), 'sub_org': sub_org_id}

    def get_filename(self, filters):
        if filters['start'] or filters['end']:
            return f"policy-sales-{filters['start'] or 'start'}-{filters['end'] or 'end'}.csv"
        return 'policy-sales.csv'


class AuditLogView(ReportAPIView):
    """
    GET /api/reports/audit-log?org=&start=&end=&page=

    Scoped to the effective organization only; sub-agency activity is not
    included.
    """
    columns = AUDIT_LOG_COLUMNS

    def build_report(self, request, org_id):
        window = normalize_date_range(
            request.query_params.get('start'),
            request.query_params.get('end'),
        )
        page = normalize_page(request.query_params.get('page'))
        result = get_audit_log(org_id, window, page)
        self.audit_page = result
        return result.entries, {'start': window.start, 'end': window.end, 'page': result.page}

    def get_filename(self, filters):
        return f"audit-log-{filters['start']}-{filters['end']}-page-{filters['page']}.csv"

    def render_payload(self, org_id, rows, filters):
        return {
            'organization_id': org_id,
            'entries': [asdict(row) for row in rows],
            'table': project(self.columns, rows).as_dict(),
            'page': self.audit_page.page,
            'page_size': self.audit_page.page_size,
            'total_pages': self.audit_page.total_pages,
            'total_count': self.audit_page.total_count,
            'filters': filters,
        }
