# User value: This file fixes the shape of every portal screen payload so the UI never guesses.
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional


class EarningsEstimate(BaseModel):
    # User value: one figure per job with where it came from, so estimates are never mistaken for payments.
    amount: float = 0.0
    display_amount: str = "$0.00"
    hours: float = 0.0
    source: Literal["interpreter_paid", "paid_amount", "backend", "computed", "rate_not_set"]
    is_actual_payment: bool = False
    billable_minutes: Optional[int] = None
    rate: Optional[float] = None
    mileage: Optional[float] = None
    note: Optional[str] = None


class UnassignEligibility(BaseModel):
    eligible: bool
    reason: Literal["ok", "too-close", "not-in-correct-status", "no-schedule"]


class JobView(BaseModel):
    # User value: the raw job plus everything derived from it, computed once.
    job: Dict[str, Any]
    buckets: List[str] = Field(default_factory=list)
    earnings: EarningsEstimate
    starts_in: Optional[str] = None
    completed_ago: Optional[str] = None
    scheduled_time_display: str = "N/A"
    allowed_actions: List[str] = Field(default_factory=list)


class JobDetailResponse(JobView):
    unassign: UnassignEligibility


class SmartAction(BaseModel):
    type: Literal["start_job", "job_in_progress", "overdue_report", "report_due", "needs_confirmation", "find_jobs"]
    urgency: Literal["critical", "high", "medium", "low"]
    job: Optional[Dict[str, Any]] = None


class BlockingNotice(BaseModel):
    # User value: explains why accepting new work is paused; interpreters can still close it.
    type: Literal["overdue_report", "pending_confirmation"]
    title: str
    subtitle: str
    message: str
    dismissible: bool = True
    job_ids: List[Any] = Field(default_factory=list)


class DashboardResponse(BaseModel):
    generated_at: str
    smart_action: SmartAction
    critical_items: List[JobView] = Field(default_factory=list)
    today: List[JobView] = Field(default_factory=list)
    counts: Dict[str, int] = Field(default_factory=dict)
    monthly_earnings: Optional[Dict[str, Any]] = None
    blocking_notices: List[BlockingNotice] = Field(default_factory=list)
    can_accept_jobs: bool = True


class PendingActionsResponse(BaseModel):
    generated_at: str
    overdue_reports: List[JobView] = Field(default_factory=list)
    due_reports: List[JobView] = Field(default_factory=list)
    needs_confirmation: List[JobView] = Field(default_factory=list)
    upcoming_confirmations: List[JobView] = Field(default_factory=list)
    total: int = 0


class JobListResponse(BaseModel):
    generated_at: str
    tab: Optional[str] = None
    jobs: List[JobView] = Field(default_factory=list)
    tab_counts: Dict[str, int] = Field(default_factory=dict)
    pagination: Dict[str, Any] = Field(default_factory=dict)
    can_accept_jobs: bool = True


class EarningsResponse(BaseModel):
    period: str
    summary: Dict[str, Any] = Field(default_factory=dict)
    breakdown: List[Dict[str, Any]] = Field(default_factory=list)


class ElapsedTimeResponse(BaseModel):
    # User value: the live timer value shown while an interpreter is on a job.
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    elapsed_seconds: int = 0
    elapsed_display: str = "0:00"
    running: bool = False


class SessionResponse(BaseModel):
    user: Dict[str, Any] = Field(default_factory=dict)
    profile: Dict[str, Any] = Field(default_factory=dict)
    current_route: Optional[str] = None
    last_list_route: Optional[str] = None
    restore_route: Optional[str] = None


class LoginResponse(SessionResponse):
    token: str
