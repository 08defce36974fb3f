"""
Daily and weekly roll-ups over checklist completion views.

1. Daily: partition outlets by completion, compare who submitted against who was rostered
2. Weekly: per-outlet average of daily percentages, consistency, best/worst day
3. Weekly: top/bottom performers and per-employee submission totals
"""
import logging
import statistics
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from app.models.shared.enums import OverallStatus
from app.schemas.checklist.checklist_schema import OutletCompletionView, SubmissionRecord
from app.schemas.report.checklist_report_schema import (
    DailyAverage, DailyRate, DailyReport, EmployeeWeeklyStats, MissingEmployee, OutletReportEntry,
    OutletWeeklyStats, WeeklyReport
)
from app.services.checklist.completion_engine import OutletDirectory, submission_date

logger = logging.getLogger(__name__)


def _name_key(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _entry(view: OutletCompletionView) -> OutletReportEntry:
    return OutletReportEntry(
        outlet=view.outlet,
        outlet_code=view.outlet_code,
        completion_percentage=view.completion_percentage,
    )


def _submitters_from_views(views: Iterable[OutletCompletionView]) -> List[str]:
    names = []
    for view in views:
        for slot in view.time_slots:
            if slot.submitted_by:
                names.append(slot.submitted_by.strip())
    return names


def _distinct(names: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for name in names:
        key = _name_key(name)
        if key and key not in seen:
            seen.add(key)
            result.append(name.strip())
    return result


def build_daily_report(
    views: Sequence[OutletCompletionView],
    report_date: date,
    submissions: Optional[Iterable[SubmissionRecord]] = None,
    directory: Optional[OutletDirectory] = None,
) -> DailyReport:
    """Partition one day's views and reconcile submitters against the roster.

    When raw submissions are given every submitter counts, not only the
    latest one per slot.
    """
    completed = [_entry(v) for v in views if v.completion_percentage >= 100]
    pending = [_entry(v) for v in views if v.completion_percentage <= 0]
    partial = [_entry(v) for v in views if 0 < v.completion_percentage < 100]

    if submissions is not None:
        day_rows = [s for s in submissions if submission_date(s) == report_date]
        if directory is not None:
            day_rows = [s for s in day_rows if directory.resolve(s.outlet) is not None]
        submitted = _distinct(s.submitted_by for s in day_rows)
    else:
        submitted = _distinct(_submitters_from_views(views))
    submitted_keys = {_name_key(name) for name in submitted}

    missing: List[MissingEmployee] = []
    seen_missing = set()
    for view in views:
        for slot in view.time_slots:
            for employee in slot.scheduled_employees:
                key = _name_key(employee.employee_id)
                # Submitting at any outlet that day counts
                if not key or key in submitted_keys:
                    continue
                marker = (key, view.outlet_code, slot.time_slot)
                if marker in seen_missing:
                    continue
                seen_missing.add(marker)
                missing.append(MissingEmployee(
                    employee_id=employee.employee_id,
                    outlet=view.outlet,
                    time_slot=slot.time_slot,
                ))

    total = len(views)
    return DailyReport(
        report_date=report_date,
        total_outlets=total,
        completed=completed,
        partial=partial,
        pending=pending,
        overall_completion_rate=round(len(completed) / total * 100, 1) if total else 0.0,
        average_completion_percentage=round(sum(v.completion_percentage for v in views) / total, 1) if total else 0.0,
        employees_submitted=submitted,
        employees_missing=missing,
        outlets=list(views),
    )


def consistency_score(rates: Sequence[float]) -> float:
    """Weekly average penalised by the spread of daily rates"""
    if not rates:
        return 0.0
    mean = sum(rates) / len(rates)
    spread = statistics.pstdev(rates) if len(rates) > 1 else 0.0
    return round(max(0.0, mean - spread), 1)


def _outlet_weekly_stats(outlet: str, outlet_code: str, daily_rates: List[DailyRate],
                         completed_days: int) -> OutletWeeklyStats:
    rates = [r.completion_percentage for r in daily_rates]
    weekly_rate = round(sum(rates) / len(rates), 1) if rates else 0.0

    # Ties resolve to the earliest day
    best = max(daily_rates, key=lambda r: (r.completion_percentage, -r.report_date.toordinal()), default=None)
    worst = min(daily_rates, key=lambda r: (r.completion_percentage, r.report_date.toordinal()), default=None)

    return OutletWeeklyStats(
        outlet=outlet,
        outlet_code=outlet_code,
        weekly_completion_rate=weekly_rate,
        consistency_score=consistency_score(rates),
        best_day=best,
        worst_day=worst,
        days_fully_completed=completed_days,
        daily_rates=daily_rates,
    )


def _employee_stats(
    daily_views_by_date: Mapping[date, Sequence[OutletCompletionView]],
    submissions: Optional[Iterable[SubmissionRecord]],
    directory: Optional[OutletDirectory],
    day_count: int,
) -> List[EmployeeWeeklyStats]:
    totals: Dict[str, int] = defaultdict(int)
    display: Dict[str, str] = {}
    active: Dict[str, set] = defaultdict(set)
    outlets: Dict[str, List[str]] = defaultdict(list)

    def record(name: Optional[str], day: date, outlet: str, count: int = 1):
        key = _name_key(name)
        if not key:
            return
        display.setdefault(key, name.strip())
        totals[key] += count
        active[key].add(day)
        if outlet not in outlets[key]:
            outlets[key].append(outlet)

    if submissions is not None:
        in_range = set(daily_views_by_date)
        for s in submissions:
            day = submission_date(s)
            if day not in in_range:
                continue
            outlet = s.outlet
            if directory is not None:
                resolved = directory.resolve(s.outlet)
                if resolved is None:
                    continue
                outlet = resolved.name
            record(s.submitted_by, day, outlet)
    else:
        for day, views in daily_views_by_date.items():
            for view in views:
                for slot in view.time_slots:
                    record(slot.submitted_by, day, view.outlet)

    stats = [
        EmployeeWeeklyStats(
            employee=display[key],
            total_submissions=totals[key],
            average_daily_submissions=round(totals[key] / day_count, 1) if day_count else 0.0,
            active_days=len(active[key]),
            outlets=outlets[key],
        )
        for key in totals
    ]
    stats.sort(key=lambda e: (-e.total_submissions, _name_key(e.employee)))
    return stats


def build_weekly_report(
    daily_views_by_date: Mapping[date, Sequence[OutletCompletionView]],
    submissions: Optional[Iterable[SubmissionRecord]] = None,
    directory: Optional[OutletDirectory] = None,
    performer_count: int = 3,
) -> WeeklyReport:
    """Roll N days of completion views into per-outlet and per-employee stats"""
    days = sorted(daily_views_by_date)
    if not days:
        return WeeklyReport()

    order: List[str] = []
    names: Dict[str, str] = {}
    rates: Dict[str, List[DailyRate]] = defaultdict(list)
    completed_days: Dict[str, int] = defaultdict(int)
    daily_averages: List[DailyAverage] = []

    for day in days:
        views = daily_views_by_date[day]
        for view in views:
            if view.outlet_code not in names:
                names[view.outlet_code] = view.outlet
                order.append(view.outlet_code)
            rates[view.outlet_code].append(DailyRate(report_date=day, completion_percentage=view.completion_percentage))
            if view.overall_status == OverallStatus.COMPLETED:
                completed_days[view.outlet_code] += 1

        total = len(views)
        daily_averages.append(DailyAverage(
            report_date=day,
            average_completion_percentage=round(sum(v.completion_percentage for v in views) / total, 1) if total else 0.0,
            completed_outlets=sum(1 for v in views if v.overall_status == OverallStatus.COMPLETED),
            total_outlets=total,
        ))

    if directory is not None:
        order.sort(key=directory.position)
    position = {code: index for index, code in enumerate(order)}

    outlet_stats = [
        _outlet_weekly_stats(names[code], code, rates[code], completed_days[code])
        for code in order
    ]

    top = sorted(outlet_stats, key=lambda s: (-s.weekly_completion_rate, position[s.outlet_code]))
    bottom = sorted(outlet_stats, key=lambda s: (s.weekly_completion_rate, position[s.outlet_code]))

    overall = round(sum(s.weekly_completion_rate for s in outlet_stats) / len(outlet_stats), 1) if outlet_stats else 0.0
    logger.debug(f"Weekly report {days[0]}..{days[-1]}: {len(outlet_stats)} outlets, overall {overall}%")

    return WeeklyReport(
        start_date=days[0],
        end_date=days[-1],
        days=len(days),
        outlets=outlet_stats,
        top_performers=top[:performer_count],
        bottom_performers=bottom[:performer_count],
        employees=_employee_stats(daily_views_by_date, submissions, directory, len(days)),
        daily_averages=daily_averages,
        overall_weekly_rate=overall,
    )
