from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_checklist_service
from app.core.exceptions import ServiceUnavailableError, UpstreamFetchError
from app.schemas.checklist.checklist_schema import ChecklistCompletionResult, ChecklistStats, SubmissionDetail
from app.services.checklist.checklist_service import ChecklistService

router = APIRouter()

@router.get("/completion", response_model=ChecklistCompletionResult, response_model_by_alias=False)
async def get_completion(
    report_date: Optional[date] = Query(None, alias="date", description="Defaults to today"),
    service: ChecklistService = Depends(get_checklist_service),
):
    """
    Per-outlet completion for a day, worst first.
    Upstream failures come back with success=false and an error marker,
    possibly with the last cached snapshot (stale=true).
    """
    return await service.get_completion(report_date)

@router.get("/stats", response_model=ChecklistStats)
async def get_checklist_stats(service: ChecklistService = Depends(get_checklist_service)):
    try:
        return await service.get_stats()
    except UpstreamFetchError as e:
        raise ServiceUnavailableError(str(e))

@router.get("/submissions", response_model=List[SubmissionDetail], response_model_by_alias=False)
async def get_submissions(
    submission_date: Optional[date] = Query(None, alias="date"),
    outlet: Optional[str] = Query(None),
    time_slot: Optional[str] = Query(None, alias="timeSlot"),
    employee: Optional[str] = Query(None),
    service: ChecklistService = Depends(get_checklist_service),
):
    """Submissions with their answers, newest first"""
    try:
        return await service.filter_submissions(submission_date, outlet, time_slot, employee)
    except UpstreamFetchError as e:
        raise ServiceUnavailableError(str(e))
