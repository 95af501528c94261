"""
Core Constants

Centralized configuration values for the application.
"""

# Organization types
ORGANIZATION_TYPES = ["agency", "sub_agency"]

# Organization member roles
MEMBER_ROLES = ["owner", "agency", "agent", "loa_agent", "community_agent", "staff"]

# Roles that may create or request an agency
ROLES_CAN_CREATE_AGENCY = ["owner", "agency"]

# Roles an owner may assign to a member (ownership itself is never reassigned here)
ASSIGNABLE_ROLES = ["agent", "loa_agent", "community_agent", "agency", "staff"]

# Membership flags implied by each assignable role
ROLE_PERMISSIONS = {
    "staff": {
        "has_dashboard_access": True,
        "can_view_agency_book": True,
        "is_producing": False,
    },
    "agent": {
        "has_dashboard_access": False,
        "can_view_agency_book": False,
        "is_producing": True,
    },
    "loa_agent": {
        "has_dashboard_access": False,
        "can_view_agency_book": False,
        "is_producing": True,
    },
    "community_agent": {
        "has_dashboard_access": False,
        "can_view_agency_book": True,
        "is_producing": True,
    },
    "agency": {
        "has_dashboard_access": False,
        "can_view_agency_book": False,
        "is_producing": True,
    },
}

# Organization member statuses
MEMBER_STATUSES = ["active", "inactive", "removed", "pending"]

# Roster report status filter values
ROSTER_STATUS_FILTERS = ["active", "inactive"]

# Client statuses (null is treated as active)
CLIENT_STATUSES = ["active", "lead", "inactive"]

# Coverage plan types broken out by the reports
PLAN_TYPES = ["MAPD", "PDP", "Med Supp", "DSNP"]

# Coverage statuses (general + pre-submission)
COVERAGE_STATUSES = [
    "Active",
    "Active (not agent of record)",
    "Pending/Submitted",
    "Pending (not agent of record)",
    "Replaced",
    "Canceled",
    "Disenrolled",
    "Declined",
    "Withdrawn",
    "Terminated",
    "Active (non-commissionable)",
    # Pre-submission
    "Kit Mailed",
    "Kit Emailed",
    "eSign Sent",
]

# Statuses that count as an in-force policy
ACTIVE_COVERAGE_STATUSES = [
    "Active",
    "Active (not agent of record)",
    "Active (non-commissionable)",
]

# Statuses that exclude a policy from production figures
EXCLUDED_COVERAGE_STATUSES = [
    "Replaced",
    "Canceled",
    "Disenrolled",
    "Declined",
    "Withdrawn",
    "Terminated",
]

# Organization audit log actions and their display labels
AUDIT_ACTION_LABELS = {
    "member_invited": "Member Invited",
    "member_accepted": "Member Accepted",
    "member_removed": "Member Removed",
    "member_reactivated": "Member Reactivated",
    "member_role_changed": "Member Role Changed",
    "dashboard_access_granted": "Dashboard Access Granted",
    "dashboard_access_revoked": "Dashboard Access Revoked",
    "sub_agency_created": "Sub-Agency Created",
    "organization_created": "Organization Created",
    "invite_created": "Invite Created",
    "invite_revoked": "Invite Revoked",
    "member_transferred": "Member Transferred",
    "member_transferred_in": "Member Transferred In",
}

AUDIT_ACTIONS = list(AUDIT_ACTION_LABELS)

# Display name used when a profile cannot be resolved
UNKNOWN_DISPLAY_NAME = "Unknown"

# Month keys used by the production report grid
MONTH_KEYS = ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]
MONTH_HEADERS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

# Export settings
EXPORT = {
    "csv_content_type": "text/csv; charset=utf-8",
    "empty_cell": "—",
}

# Client status labels on policy-level report rows (anything else is an active client)
CLIENT_STATUS_LABELS = {
    "lead": "Lead",
    "inactive": "Inactive",
}
ACTIVE_CLIENT_LABEL = "Active Client"

# PHI access log
PHI_ACCESS_TYPES = ["view", "export", "update"]
PHI_FIELD_REPORT_EXPORT = "report_export"
