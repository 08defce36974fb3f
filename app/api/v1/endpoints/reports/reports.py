from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_checklist_service
from app.core.config import settings
from app.schemas.report.checklist_report_schema import DailyReport, WeeklyReport
from app.services.checklist.checklist_service import ChecklistService

router = APIRouter()

# =================== CHECKLIST REPORTS ===================

@router.get("/daily", response_model=DailyReport, response_model_by_alias=False)
async def get_daily_report(
    report_date: Optional[date] = Query(None, alias="date", description="Defaults to today"),
    service: ChecklistService = Depends(get_checklist_service),
):
    """
    Daily checklist report
    Outlets grouped by completion, employees who submitted and rostered employees who did not
    """
    return await service.get_daily_report(report_date)

@router.get("/weekly", response_model=WeeklyReport, response_model_by_alias=False)
async def get_weekly_report(
    end_date: Optional[date] = Query(None, description="Last day of the range, defaults to today"),
    days: int = Query(settings.WEEKLY_REPORT_DAYS, ge=1, le=31),
    service: ChecklistService = Depends(get_checklist_service),
):
    """
    Weekly checklist report
    Per-outlet weekly rate, consistency, best/worst day, top/bottom performers and employee totals
    """
    return await service.get_weekly_report(end_date, days)
