import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from app.core.exceptions import UpstreamFetchError
from app.core.redis import SnapshotCache
from app.schemas.checklist.checklist_schema import (
    ChecklistCompletionResult, ChecklistResponseItem, ChecklistStats, OutletCompletionView, ScheduledEmployee,
    SubmissionDetail, SubmissionRecord
)
from app.schemas.report.checklist_report_schema import DailyReport, WeeklyReport
from app.services.checklist.completion_engine import (
    OutletDirectory, compute_completion, rank_outlets, submission_date, summarize_completion
)
from app.services.integrations.sheets_client import SheetsDataClient
from app.services.reports.checklist_report_engine import build_daily_report, build_weekly_report
from app.utils.date_utils import today_local

logger = logging.getLogger(__name__)

class ChecklistService:
    """
    Glue between the data API, the completion engine and the snapshot cache.
    Upstream failures never raise out of the completion and report calls;
    they come back as degraded results carrying an error marker.
    """

    def __init__(
        self,
        data_client: SheetsDataClient,
        directory: OutletDirectory,
        time_slots: Sequence[str],
        cache: Optional[SnapshotCache] = None,
        performer_count: int = 3,
    ):
        self.data_client = data_client
        self.directory = directory
        self.time_slots = list(time_slots)
        self.cache = cache
        self.performer_count = performer_count

    async def _fetch_roster(self, report_date: date) -> Tuple[List[ScheduledEmployee], Optional[str]]:
        try:
            return await self.data_client.fetch_roster(report_date), None
        except UpstreamFetchError as e:
            logger.warning(f"Roster unavailable for {report_date}, continuing without schedules: {str(e)}")
            return [], str(e)

    def _build_result(
        self,
        report_date: date,
        submissions: List[SubmissionRecord],
        roster: List[ScheduledEmployee],
    ) -> ChecklistCompletionResult:
        views = compute_completion(report_date, submissions, roster, self.time_slots, self.directory)
        return ChecklistCompletionResult(
            success=True,
            report_date=report_date,
            outlets=rank_outlets(views, self.directory),
            summary=summarize_completion(views),
        )

    async def _fallback(self, report_date: date, error: UpstreamFetchError) -> ChecklistCompletionResult:
        cached = await self.cache.load(report_date) if self.cache else None
        if cached:
            logger.warning(f"Serving cached checklist snapshot for {report_date} from {cached.cached_at}")
            return cached.model_copy(update={"success": False, "stale": True, "error": str(error)})

        logger.error(f"No checklist data for {report_date}: {str(error)}")
        return ChecklistCompletionResult(success=False, report_date=report_date, error=str(error))

    async def _completion_with_submissions(
        self, report_date: date
    ) -> Tuple[ChecklistCompletionResult, Optional[List[SubmissionRecord]]]:
        try:
            submissions = await self.data_client.fetch_submissions()
        except UpstreamFetchError as e:
            return await self._fallback(report_date, e), None

        roster, roster_error = await self._fetch_roster(report_date)
        result = self._build_result(report_date, submissions, roster)
        if roster_error:
            result.error = roster_error
        elif self.cache:
            await self.cache.save(result)
        return result, submissions

    async def get_completion(self, report_date: Optional[date] = None) -> ChecklistCompletionResult:
        """Completion views for every whitelisted outlet, worst first"""
        report_date = report_date or today_local()
        result, _ = await self._completion_with_submissions(report_date)
        logger.info(
            f"Checklist completion for {report_date}: {result.summary.completed}/{result.summary.total_outlets} "
            f"outlets complete{' (stale)' if result.stale else ''}"
        )
        return result

    async def get_daily_report(self, report_date: Optional[date] = None) -> DailyReport:
        report_date = report_date or today_local()
        result, submissions = await self._completion_with_submissions(report_date)
        # Views come back ranked; the report lists them in whitelist order
        views = sorted(result.outlets, key=lambda v: self.directory.position(v.outlet_code))

        report = build_daily_report(views, report_date, submissions, self.directory)
        report.error = result.error
        report.stale = result.stale
        return report

    async def get_weekly_report(self, end_date: Optional[date] = None, days: int = 7) -> WeeklyReport:
        """N-day roll-up ending on end_date inclusive"""
        end_date = end_date or today_local()
        days = max(1, days)
        dates = [end_date - timedelta(days=offset) for offset in range(days - 1, -1, -1)]

        try:
            submissions = await self.data_client.fetch_submissions()
        except UpstreamFetchError as e:
            return await self._weekly_from_cache(dates, e)

        views_by_date: Dict[date, List[OutletCompletionView]] = {
            day: compute_completion(day, submissions, [], self.time_slots, self.directory)
            for day in dates
        }
        return build_weekly_report(views_by_date, submissions, self.directory, self.performer_count)

    async def _weekly_from_cache(self, dates: List[date], error: UpstreamFetchError) -> WeeklyReport:
        views_by_date: Dict[date, List[OutletCompletionView]] = {}
        if self.cache:
            for day in dates:
                cached = await self.cache.load(day)
                if cached:
                    views_by_date[day] = cached.outlets

        if not views_by_date:
            logger.error(f"No data for weekly report ending {dates[-1]}: {str(error)}")
            return WeeklyReport(error=str(error))

        logger.warning(f"Weekly report built from {len(views_by_date)}/{len(dates)} cached snapshots")
        report = build_weekly_report(views_by_date, None, self.directory, self.performer_count)
        report.error = str(error)
        report.stale = True
        return report

    async def get_stats(self, today: Optional[date] = None) -> ChecklistStats:
        """Raises UpstreamFetchError when the feed is down"""
        today = today or today_local()
        submissions = await self.data_client.fetch_submissions()

        outlets = sorted({s.outlet for s in submissions if s.outlet})
        employees = sorted({s.submitted_by for s in submissions if s.submitted_by})
        return ChecklistStats(
            total_submissions=len(submissions),
            today_submissions=sum(1 for s in submissions if submission_date(s) == today),
            unique_outlets=len(outlets),
            outlets=outlets,
            employees=employees,
        )

    async def filter_submissions(
        self,
        submission_day: Optional[date] = None,
        outlet: Optional[str] = None,
        time_slot: Optional[str] = None,
        employee: Optional[str] = None,
    ) -> List[SubmissionDetail]:
        """Case-insensitive substring filters, newest first; raises UpstreamFetchError"""
        submissions, responses = await self.data_client.fetch_checklist_data()

        def contains(value: Optional[str], needle: Optional[str]) -> bool:
            if not needle or not needle.strip():
                return True
            return bool(value) and needle.strip().lower() in value.lower()

        matched = [
            s for s in submissions
            if (submission_day is None or submission_date(s) == submission_day)
            and contains(s.outlet, outlet)
            and contains(s.time_slot, time_slot)
            and contains(s.submitted_by, employee)
        ]
        matched.sort(key=lambda s: s.timestamp.timestamp() if s.timestamp else float("-inf"), reverse=True)

        by_submission: Dict[str, List[ChecklistResponseItem]] = {}
        for item in responses:
            by_submission.setdefault(item.submission_id, []).append(item)

        return [
            SubmissionDetail(submission=s, responses=by_submission.get(s.submission_id, []))
            for s in matched
        ]
