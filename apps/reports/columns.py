"""
Column sets for each agency report.

Keys match the report row dataclasses in selectors.py.
"""
from apps.core.constants import MONTH_HEADERS, MONTH_KEYS

from .export import Column


def _date_only(value, row) -> str:
    return value.strftime('%Y-%m-%d') if hasattr(value, 'strftime') else str(value)[:10]


def _timestamp(value, row) -> str:
    return value.strftime('%Y-%m-%d %H:%M') if hasattr(value, 'strftime') else str(value)


def _title(value, row) -> str:
    return str(value).replace('_', ' ').title()


PRODUCTION_COLUMNS = [
    Column('agent_name', 'Agent'),
    *[Column(key, header, align='right') for key, header in zip(MONTH_KEYS, MONTH_HEADERS)],
    Column('year_total', 'Year', align='right'),
]

ROSTER_COLUMNS = [
    Column('display_name', 'Agent'),
    Column('email', 'Email'),
    Column('phone', 'Phone'),
    Column('role', 'Role', render=_title),
    Column('organization_name', 'Agency'),
    Column('client_count', 'Clients', align='right'),
    Column('policy_count', 'Policies', align='right'),
    Column('npn', 'NPN'),
    Column('status', 'Status', render=_title),
]

CLIENTS_COLUMNS = [
    Column('agent_name', 'Agent'),
    Column('agency_name', 'Agency'),
    Column('total', 'Total', align='right'),
    Column('new', 'New', align='right'),
    Column('active', 'Active', align='right'),
    Column('lead', 'Lead', align='right'),
    Column('inactive', 'Inactive', align='right'),
]

RENEWALS_COLUMNS = [
    Column('client_name', 'Client'),
    Column('agent_name', 'Agent'),
    Column('agency_name', 'Agency'),
    Column('plan_name', 'Plan'),
    Column('carrier', 'Carrier'),
    Column('plan_type', 'Plan Type'),
    Column('effective_date', 'Effective Date', render=_date_only),
    Column('renewal_date', 'Renewal Date', render=_date_only),
]

AUDIT_LOG_COLUMNS = [
    Column('created_at', 'Date', render=_timestamp),
    Column('action_label', 'Action'),
    Column('performed_by_name', 'Performed By'),
    Column('target_user_name', 'Member'),
    Column('details_summary', 'Details'),
]

POLICY_SALES_COLUMNS = [
    Column('agent_first', 'Agent First'),
    Column('agent_last', 'Agent Last'),
    Column('agency_name', 'Agency'),
    Column('client_status', 'Status'),
    Column('source', 'Source'),
    Column('member_first', 'Member First'),
    Column('member_last', 'Member Last'),
    Column('policy_type', 'Policy Type'),
    Column('policy_status', 'Policy Status'),
    Column('policy_company', 'Policy Company'),
    Column('policy_plan_name', 'Policy Plan Name'),
    Column('policy_number', 'Policy Number'),
    Column('policy_effective_date', 'Policy Effective Date', render=_date_only),
    Column('policy_application_date', 'Policy Application Date', render=_date_only),
]
