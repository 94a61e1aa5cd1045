# User value: This file keeps job statuses and dashboard buckets consistent across every portal screen.
CONTRACT_VERSION = "2026-10-18-portal-01"

JOB_STATUS_REQUESTED = "requested"
JOB_STATUS_FINDING_INTERPRETER = "finding_interpreter"
JOB_STATUS_ASSIGNED = "assigned"
JOB_STATUS_REMINDERS_SENT = "reminders_sent"
JOB_STATUS_IN_PROGRESS = "in_progress"
JOB_STATUS_COMPLETED = "completed"
JOB_STATUS_PAID = "paid"
JOB_STATUS_COMPLETION_REPORT = "completion_report"
JOB_STATUS_BILLED = "billed"
JOB_STATUS_CLOSED = "closed"
JOB_STATUS_INTERPRETER_PAID = "interpreter_paid"
JOB_STATUS_CANCELLED = "cancelled"
JOB_STATUS_NO_SHOW = "no_show"
JOB_STATUS_REJECTED = "rejected"

JOB_STATUSES = (
    JOB_STATUS_REQUESTED,
    JOB_STATUS_FINDING_INTERPRETER,
    JOB_STATUS_ASSIGNED,
    JOB_STATUS_REMINDERS_SENT,
    JOB_STATUS_IN_PROGRESS,
    JOB_STATUS_COMPLETED,
    JOB_STATUS_PAID,
    JOB_STATUS_COMPLETION_REPORT,
    JOB_STATUS_BILLED,
    JOB_STATUS_CLOSED,
    JOB_STATUS_INTERPRETER_PAID,
    JOB_STATUS_CANCELLED,
    JOB_STATUS_NO_SHOW,
    JOB_STATUS_REJECTED,
)

ASSIGNMENT_STATUS_AVAILABLE = "available"
ASSIGNMENT_STATUS_PENDING = "pending"
ASSIGNMENT_STATUS_PENDING_CONFIRMATION = "pending_confirmation"
ASSIGNMENT_STATUS_ACCEPTED = "accepted"
ASSIGNMENT_STATUS_DECLINED = "declined"
ASSIGNMENT_STATUS_EXPIRED = "expired"
ASSIGNMENT_STATUS_PENDING_MILEAGE_APPROVAL = "pending_mileage_approval"

ASSIGNMENT_STATUSES = (
    ASSIGNMENT_STATUS_AVAILABLE,
    ASSIGNMENT_STATUS_PENDING,
    ASSIGNMENT_STATUS_PENDING_CONFIRMATION,
    ASSIGNMENT_STATUS_ACCEPTED,
    ASSIGNMENT_STATUS_DECLINED,
    ASSIGNMENT_STATUS_EXPIRED,
    ASSIGNMENT_STATUS_PENDING_MILEAGE_APPROVAL,
)

ACTIVE_JOB_STATUSES = (
    JOB_STATUS_REQUESTED,
    JOB_STATUS_FINDING_INTERPRETER,
    JOB_STATUS_ASSIGNED,
    JOB_STATUS_REMINDERS_SENT,
    JOB_STATUS_IN_PROGRESS,
)

# Statuses shown in completed history / excluded from "today" and "upcoming".
COMPLETED_HISTORY_STATUSES = (
    JOB_STATUS_COMPLETED,
    JOB_STATUS_COMPLETION_REPORT,
    JOB_STATUS_BILLED,
    JOB_STATUS_CLOSED,
    JOB_STATUS_INTERPRETER_PAID,
)

FINISHED_JOB_STATUSES = (
    *COMPLETED_HISTORY_STATUSES,
    JOB_STATUS_PAID,
    JOB_STATUS_CANCELLED,
    JOB_STATUS_NO_SHOW,
    JOB_STATUS_REJECTED,
)

UNASSIGNABLE_STATUSES = (
    JOB_STATUS_ASSIGNED,
    JOB_STATUS_REMINDERS_SENT,
)

JOB_STATUS_LABELS = {
    JOB_STATUS_REQUESTED: "Requested",
    JOB_STATUS_FINDING_INTERPRETER: "Finding Interpreter",
    JOB_STATUS_ASSIGNED: "Assigned",
    JOB_STATUS_REMINDERS_SENT: "Reminders Sent",
    JOB_STATUS_IN_PROGRESS: "In Progress",
    JOB_STATUS_COMPLETED: "Completed",
    JOB_STATUS_PAID: "Paid",
    JOB_STATUS_COMPLETION_REPORT: "Completion Report",
    JOB_STATUS_BILLED: "Billed",
    JOB_STATUS_CLOSED: "Closed",
    JOB_STATUS_INTERPRETER_PAID: "Interpreter Paid",
    JOB_STATUS_CANCELLED: "Cancelled",
    JOB_STATUS_NO_SHOW: "No Show",
    JOB_STATUS_REJECTED: "Rejected",
}

ASSIGNMENT_STATUS_LABELS = {
    ASSIGNMENT_STATUS_AVAILABLE: "Available",
    ASSIGNMENT_STATUS_PENDING: "Pending",
    ASSIGNMENT_STATUS_PENDING_CONFIRMATION: "Pending Confirmation",
    ASSIGNMENT_STATUS_ACCEPTED: "Accepted",
    ASSIGNMENT_STATUS_DECLINED: "Declined",
    ASSIGNMENT_STATUS_EXPIRED: "Expired",
    ASSIGNMENT_STATUS_PENDING_MILEAGE_APPROVAL: "Pending Mileage Approval",
}

BUCKET_OVERDUE_REPORT = "overdue_report"
BUCKET_REPORT_DUE = "report_due"
BUCKET_NEEDS_CONFIRMATION = "needs_confirmation"
BUCKET_UPCOMING_CONFIRMATION = "upcoming_confirmation"
BUCKET_STARTING_SOON = "starting_soon"
BUCKET_IN_PROGRESS = "in_progress"
BUCKET_AVAILABLE = "available"
BUCKET_COMPLETED_HISTORY = "completed_history"
BUCKET_TODAY = "today"
BUCKET_UPCOMING = "upcoming"
BUCKET_UNCLASSIFIED = "unclassified"

BUCKETS = (
    BUCKET_OVERDUE_REPORT,
    BUCKET_REPORT_DUE,
    BUCKET_NEEDS_CONFIRMATION,
    BUCKET_UPCOMING_CONFIRMATION,
    BUCKET_STARTING_SOON,
    BUCKET_IN_PROGRESS,
    BUCKET_AVAILABLE,
    BUCKET_COMPLETED_HISTORY,
    BUCKET_TODAY,
    BUCKET_UPCOMING,
    BUCKET_UNCLASSIFIED,
)

SMART_ACTION_START_JOB = "start_job"
SMART_ACTION_JOB_IN_PROGRESS = "job_in_progress"
SMART_ACTION_OVERDUE_REPORT = "overdue_report"
SMART_ACTION_REPORT_DUE = "report_due"
SMART_ACTION_NEEDS_CONFIRMATION = "needs_confirmation"
SMART_ACTION_FIND_JOBS = "find_jobs"

SMART_ACTIONS = (
    SMART_ACTION_START_JOB,
    SMART_ACTION_JOB_IN_PROGRESS,
    SMART_ACTION_OVERDUE_REPORT,
    SMART_ACTION_REPORT_DUE,
    SMART_ACTION_NEEDS_CONFIRMATION,
    SMART_ACTION_FIND_JOBS,
)

NOTICE_OVERDUE_REPORT = "overdue_report"
NOTICE_PENDING_CONFIRMATION = "pending_confirmation"

UNASSIGN_REASON_OK = "ok"
UNASSIGN_REASON_TOO_CLOSE = "too-close"
UNASSIGN_REASON_WRONG_STATUS = "not-in-correct-status"
UNASSIGN_REASON_NO_SCHEDULE = "no-schedule"

# Job-list tabs rendered by the portal.
JOB_TABS = ("upcoming", "completion_reports", "past", "all")

EARNINGS_PERIODS = ("week", "month", "year", "all")

TIMESTAMP_FIELDS = (
    "completed_at",
    "confirmed_at",
    "job_started_at",
    "job_ended_at",
    "created_at",
    "updated_at",
)
