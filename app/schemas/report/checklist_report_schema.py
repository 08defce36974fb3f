from pydantic import BaseModel
from typing import Optional, List
from datetime import date

from app.schemas.checklist.checklist_schema import OutletCompletionView

class OutletReportEntry(BaseModel):
    outlet: str
    outlet_code: str
    completion_percentage: float

class MissingEmployee(BaseModel):
    employee_id: str
    outlet: str
    time_slot: str

class DailyReport(BaseModel):
    report_date: date
    total_outlets: int
    completed: List[OutletReportEntry] = []
    partial: List[OutletReportEntry] = []
    pending: List[OutletReportEntry] = []
    overall_completion_rate: float = 0.0
    average_completion_percentage: float = 0.0
    employees_submitted: List[str] = []
    employees_missing: List[MissingEmployee] = []
    outlets: List[OutletCompletionView] = []
    error: Optional[str] = None
    stale: bool = False

class DailyRate(BaseModel):
    report_date: date
    completion_percentage: float

class OutletWeeklyStats(BaseModel):
    outlet: str
    outlet_code: str
    weekly_completion_rate: float
    consistency_score: float
    best_day: Optional[DailyRate] = None
    worst_day: Optional[DailyRate] = None
    days_fully_completed: int = 0
    daily_rates: List[DailyRate] = []

class EmployeeWeeklyStats(BaseModel):
    employee: str
    total_submissions: int
    average_daily_submissions: float
    active_days: int
    outlets: List[str] = []

class DailyAverage(BaseModel):
    report_date: date
    average_completion_percentage: float
    completed_outlets: int
    total_outlets: int

class WeeklyReport(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days: int = 0
    outlets: List[OutletWeeklyStats] = []
    top_performers: List[OutletWeeklyStats] = []
    bottom_performers: List[OutletWeeklyStats] = []
    employees: List[EmployeeWeeklyStats] = []
    daily_averages: List[DailyAverage] = []
    overall_weekly_rate: float = 0.0
    error: Optional[str] = None
    stale: bool = False
