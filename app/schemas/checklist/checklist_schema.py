from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import date, datetime

from app.models.shared.enums import OverallStatus, SlotStatus
from app.utils.date_utils import local_timezone

class OutletConfig(BaseModel):
    code: str
    name: str
    type: str = "Restaurant"

class SubmissionRecord(BaseModel):
    """One checklist submission row; immutable, append-only upstream"""
    submission_id: Optional[str] = Field(None, alias="submissionId")
    outlet: str
    time_slot: str = Field(..., alias="timeSlot")
    submitted_by: str = Field("", alias="submittedBy")
    timestamp: Optional[datetime] = None
    submission_date: Optional[date] = Field(None, alias="date")

    @validator("timestamp")
    def localize_timestamp(cls, v):
        """Naive timestamps are read as local time"""
        if v is not None and v.tzinfo is None:
            return local_timezone().localize(v)
        return v

    class Config:
        populate_by_name = True
        frozen = True

class ChecklistResponseItem(BaseModel):
    submission_id: str = Field(..., alias="submissionId")
    question: str = ""
    answer: str = ""
    image: str = ""
    image_code: str = Field("", alias="imageCode")

    class Config:
        populate_by_name = True

class ScheduledEmployee(BaseModel):
    """Roster entry for one outlet / slot on a given date"""
    outlet: str
    time_slot: str = Field(..., alias="timeSlot")
    employee_id: str = Field(..., alias="employeeId")
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")
    roster_date: Optional[date] = Field(None, alias="date")

    class Config:
        populate_by_name = True
        frozen = True

class TimeSlotStatus(BaseModel):
    time_slot: str
    status: SlotStatus
    submitted_by: Optional[str] = None
    formatted_time: Optional[str] = None
    submission_count: int = 0
    scheduled_employees: List[ScheduledEmployee] = []

class OutletCompletionView(BaseModel):
    outlet: str
    outlet_code: str
    outlet_type: str
    time_slots: List[TimeSlotStatus]
    overall_status: OverallStatus
    completion_percentage: float
    last_submission_time: Optional[datetime] = None

class CompletionSummary(BaseModel):
    total_outlets: int = 0
    completed: int = 0
    partial: int = 0
    pending: int = 0
    overall_completion_rate: float = 0.0
    average_completion_percentage: float = 0.0
    total_submissions: int = 0

class ChecklistCompletionResult(BaseModel):
    """Completion views for one date; error is set whenever upstream data failed"""
    success: bool
    report_date: date
    outlets: List[OutletCompletionView] = []
    summary: CompletionSummary = CompletionSummary()
    error: Optional[str] = None
    stale: bool = False
    cached_at: Optional[datetime] = None

class ChecklistStats(BaseModel):
    total_submissions: int
    today_submissions: int
    unique_outlets: int
    outlets: List[str]
    employees: List[str]

class SubmissionDetail(BaseModel):
    submission: SubmissionRecord
    responses: List[ChecklistResponseItem] = []
