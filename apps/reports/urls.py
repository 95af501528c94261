"""
Report API URLs

All routes are relative to /api/reports/
"""
from django.urls import path

from .views import (
    AuditLogView,
    ClientsReportView,
    PolicySalesReportView,
    ProductionReportView,
    RenewalsReportView,
    RosterReportView,
)

urlpatterns = [
    path('production', ProductionReportView.as_view(), name='report_production'),
    path('production/export', ProductionReportView.as_view(export=True), name='report_production_export'),

    path('roster', RosterReportView.as_view(), name='report_roster'),
    path('roster/export', RosterReportView.as_view(export=True), name='report_roster_export'),

    path('clients', ClientsReportView.as_view(), name='report_clients'),
    path('clients/export', ClientsReportView.as_view(export=True), name='report_clients_export'),

    path('renewals', RenewalsReportView.as_view(), name='report_renewals'),
    path('renewals/export', RenewalsReportView.as_view(export=True), name='report_renewals_export'),

    path('policy-sales', PolicySalesReportView.as_view(), name='report_policy_sales'),
    path('policy-sales/export', PolicySalesReportView.as_view(export=True), name='report_policy_sales_export'),

    # Current page only
    path('audit-log', AuditLogView.as_view(), name='report_audit_log'),
    path('audit-log/export', AuditLogView.as_view(export=True), name='report_audit_log_export'),
]
