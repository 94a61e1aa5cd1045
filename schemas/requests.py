# User value: This file validates what the portal sends in before any remote call is made.
from pydantic import BaseModel, Field
from typing import Optional


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = ""
    confirm_password: str = ""


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = ""
    confirm_password: str = ""


class SignupTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class CompleteSignupRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = ""
    confirm_password: str = ""


class FeedbackRequest(BaseModel):
    category: Optional[str] = None
    rating: int = 0
    comment: Optional[str] = Field(default=None, max_length=5000)


class RouteUpdateRequest(BaseModel):
    # User value: remembers the last screen so interpreters resume where they left off.
    route: str = Field(..., min_length=1, max_length=2048)


class AcceptJobRequest(BaseModel):
    # User value: lets interpreters ask for mileage when accepting, within the federal cap.
    mileage_requested: Optional[float] = Field(default=None, ge=0)
    mileage_rate: Optional[float] = Field(default=None, ge=0)


class DeclineJobRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class UnassignRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class UpdateDurationRequest(BaseModel):
    actual_duration_minutes: int = Field(..., ge=0)


class TransportationReportRequest(BaseModel):
    actual_pickup_time: Optional[str] = None
    actual_dropoff_time: Optional[str] = None
    actual_wait_time: Optional[str | int] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
