# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics, single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "secons_requests_total",
    "Total HTTP requests to the SECONS API",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "secons_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "secons_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
ANNOUNCEMENTS_CREATED = Counter(
    "secons_announcements_created_total",
    "Total announcements published",
)
MEETINGS_CREATED = Counter(
    "secons_meetings_created_total",
    "Total meetings scheduled",
)
NOTIFICATIONS_CREATED = Counter(
    "secons_notifications_created_total",
    "Total in-app notifications written",
    ["type"],
)
INVITATIONS_CREATED = Counter(
    "secons_invitations_created_total",
    "Total access codes generated",
    ["role"],
)
ACCESS_CODES_REDEEMED = Counter(
    "secons_access_codes_redeemed_total",
    "Total access codes redeemed",
    ["role"],
)
INVITATION_EMAILS = Counter(
    "secons_invitation_emails_total",
    "Invitation emails dispatched",
    ["status"],
)
POINTS_AWARDED = Counter(
    "secons_points_awarded_total",
    "Total points awarded to teams",
    ["team"],
)
FINANCE_SUBMISSIONS = Counter(
    "secons_finance_submissions_total",
    "Total finance transactions submitted",
    ["type"],
)
AUDIT_EVENTS = Counter(
    "secons_audit_events_total",
    "Audit trail entries written",
    ["action"],
)
EVENTS_CREATED = Counter(
    "secons_events_created_total",
    "Catalogue events created",
    ["category"],
)
MATCHES_COMPLETED = Counter(
    "secons_matches_completed_total",
    "Sports matches finalised",
    ["outcome"],
)
CHAT_MESSAGES = Counter(
    "secons_chat_messages_total",
    "Chat messages posted",
    ["thread_type"],
)
