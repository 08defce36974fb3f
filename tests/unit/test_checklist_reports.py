from datetime import date, timedelta

from app.models.shared.enums import OverallStatus, SlotStatus
from app.schemas.checklist.checklist_schema import OutletCompletionView, ScheduledEmployee, TimeSlotStatus
from app.services.checklist.completion_engine import compute_completion
from app.services.reports.checklist_report_engine import (
    build_daily_report, build_weekly_report, consistency_score
)
from tests.conftest import SLOTS, ist, submission

START = date(2026, 10, 5)


def make_view(code: str, name: str, percentage: float, submitter: str = "Kim") -> OutletCompletionView:
    completed = round(percentage / 100 * 3)
    slots = [
        TimeSlotStatus(
            time_slot=slot,
            status=SlotStatus.COMPLETED if index < completed else SlotStatus.NOT_SUBMITTED,
            submitted_by=submitter if index < completed else None,
            submission_count=1 if index < completed else 0,
        )
        for index, slot in enumerate(SLOTS)
    ]
    if percentage >= 100:
        overall = OverallStatus.COMPLETED
    elif percentage <= 0:
        overall = OverallStatus.PENDING
    else:
        overall = OverallStatus.PARTIAL
    return OutletCompletionView(
        outlet=name,
        outlet_code=code,
        outlet_type="Restaurant",
        time_slots=slots,
        overall_status=overall,
        completion_percentage=percentage,
    )


class TestDailyReport:
    def test_partitions_outlets_by_completion(self):
        views = [
            make_view("BLN", "Bellandur", 100.0),
            make_view("HSR", "HSR Layout", 33.3),
            make_view("RR", "Residency Road", 0.0),
            make_view("IND", "Indiranagar", 100.0),
        ]

        report = build_daily_report(views, START)

        assert [e.outlet_code for e in report.completed] == ["BLN", "IND"]
        assert [e.outlet_code for e in report.partial] == ["HSR"]
        assert [e.outlet_code for e in report.pending] == ["RR"]
        assert report.overall_completion_rate == 50.0
        assert report.total_outlets == 4

    def test_missing_employees_are_rostered_non_submitters(self, directory):
        roster = [
            ScheduledEmployee(outlet="BLN", time_slot="Morning", employee_id="Kim", roster_date=START),
            ScheduledEmployee(outlet="BLN", time_slot="Closing", employee_id="Ajay", roster_date=START),
            ScheduledEmployee(outlet="HSR", time_slot="Mid Day", employee_id="Sharon", roster_date=START),
            ScheduledEmployee(outlet="HSR", time_slot="Closing", employee_id="jatin", roster_date=START),
        ]
        records = [
            submission("BLN", "Morning", "Kim", ist(2026, 10, 5, 9, 0)),
            # Submitting at another outlet still counts for the day
            submission("IND", "Morning", "Jatin", ist(2026, 10, 5, 9, 30)),
        ]
        views = compute_completion(START, records, roster, SLOTS, directory)

        report = build_daily_report(views, START, records, directory)

        assert sorted(report.employees_submitted) == ["Jatin", "Kim"]
        missing = {(m.employee_id, m.time_slot) for m in report.employees_missing}
        assert missing == {("Ajay", "Closing"), ("Sharon", "Mid Day")}

    def test_empty_day(self):
        report = build_daily_report([], START)
        assert report.total_outlets == 0
        assert report.overall_completion_rate == 0.0


class TestWeeklyReport:
    def _week(self, rates_by_outlet):
        views_by_date = {}
        for offset in range(7):
            day = START + timedelta(days=offset)
            views_by_date[day] = [
                make_view(code, name, rates[offset]) for (code, name), rates in rates_by_outlet.items()
            ]
        return views_by_date

    def test_outlet_weekly_rate_and_worst_day(self, directory):
        """IND at 100,100,50,100,100,0,100 over seven days"""
        views_by_date = self._week({
            ("IND", "Indiranagar"): [100, 100, 50, 100, 100, 0, 100],
        })

        report = build_weekly_report(views_by_date, directory=directory)

        ind = report.outlets[0]
        assert ind.weekly_completion_rate == 78.6
        assert ind.worst_day.report_date == START + timedelta(days=5)
        assert ind.worst_day.completion_percentage == 0
        assert ind.best_day.report_date == START
        assert ind.days_fully_completed == 5
        assert report.days == 7
        assert report.start_date == START
        assert report.end_date == START + timedelta(days=6)

    def test_consistency_rewards_stable_outlets(self):
        steady = consistency_score([80, 80, 80, 80])
        erratic = consistency_score([100, 60, 100, 60])
        assert steady > erratic
        assert consistency_score([100, 100]) == 100.0
        assert consistency_score([]) == 0.0

    def test_top_and_bottom_performers(self, directory):
        views_by_date = self._week({
            ("BLN", "Bellandur"): [100] * 7,
            ("HSR", "HSR Layout"): [0] * 7,
            ("RR", "Residency Road"): [66.7] * 7,
            ("WF", "Whitefield"): [33.3] * 7,
            ("IND", "Indiranagar"): [100] * 7,
        })

        report = build_weekly_report(views_by_date, directory=directory, performer_count=3)

        assert [s.outlet_code for s in report.top_performers] == ["BLN", "IND", "RR"]
        assert [s.outlet_code for s in report.bottom_performers] == ["HSR", "WF", "RR"]
        assert [s.outlet_code for s in report.outlets] == ["BLN", "HSR", "RR", "WF", "IND"]

    def test_employee_totals_from_raw_submissions(self, directory):
        days = [START + timedelta(days=offset) for offset in range(7)]
        records = [
            submission("BLN", "Morning", "Kim", ist(2026, 10, 5, 9, 0)),
            submission("BLN", "Closing", "Kim", ist(2026, 10, 5, 23, 0)),
            submission("HSR", "Morning", "kim", ist(2026, 10, 7, 9, 0)),
            submission("IND", "Morning", "Ajay", ist(2026, 10, 8, 9, 0)),
            # Outside the range and outside the whitelist
            submission("BLN", "Morning", "Kim", ist(2026, 10, 20, 9, 0)),
            submission("Test Kitchen", "Morning", "Ajay", ist(2026, 10, 8, 9, 0)),
        ]
        views_by_date = {day: compute_completion(day, records, [], SLOTS, directory) for day in days}

        report = build_weekly_report(views_by_date, records, directory)

        kim, ajay = report.employees
        assert kim.employee == "Kim"
        assert kim.total_submissions == 3
        assert kim.active_days == 2
        assert kim.average_daily_submissions == round(3 / 7, 1)
        assert kim.outlets == ["Bellandur", "HSR Layout"]
        assert ajay.total_submissions == 1

    def test_daily_averages(self, directory):
        views_by_date = self._week({
            ("BLN", "Bellandur"): [100, 0, 0, 0, 0, 0, 0],
            ("HSR", "HSR Layout"): [0, 0, 0, 0, 0, 0, 0],
        })

        report = build_weekly_report(views_by_date, directory=directory)

        first = report.daily_averages[0]
        assert first.average_completion_percentage == 50.0
        assert first.completed_outlets == 1
        assert first.total_outlets == 2

    def test_empty_range(self):
        report = build_weekly_report({})
        assert report.days == 0
        assert report.outlets == []
