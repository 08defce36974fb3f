from datetime import date, datetime

import pytest

from app.core.exceptions import ConfigurationError
from app.models.shared.enums import OverallStatus, SlotStatus
from app.schemas.checklist.checklist_schema import OutletConfig, ScheduledEmployee
from app.services.checklist.completion_engine import (
    OutletDirectory, compute_completion, compute_outlet_completion, normalize_time_slot, rank_outlets,
    summarize_completion
)
from tests.conftest import SLOTS, ist, submission

DAY = date(2026, 10, 12)


def view_for(views, code):
    return next(v for v in views if v.outlet_code == code)


class TestNormalizeTimeSlot:
    @pytest.mark.parametrize("raw, expected", [
        ("Morning", "Morning"),
        ("midday", "Mid Day"),
        ("MID-DAY", "Mid Day"),
        (" Mid  Day ", "Mid Day"),
        ("closing", "Closing"),
        ("Night", None),
        ("", None),
        (None, None),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_time_slot(raw, SLOTS) == expected


class TestOutletDirectory:
    def test_resolves_code_or_name(self, directory):
        assert directory.resolve("bln").code == "BLN"
        assert directory.resolve("Indiranagar").code == "IND"
        assert directory.resolve("Unknown") is None

    def test_empty_whitelist_rejected(self):
        with pytest.raises(ConfigurationError):
            OutletDirectory([])

    def test_duplicate_codes_rejected(self):
        with pytest.raises(ConfigurationError):
            OutletDirectory([OutletConfig(code="A", name="A1"), OutletConfig(code="a", name="A2")])


class TestOutletCompletion:
    def test_single_morning_submission_is_partial(self, directory):
        """BLN with only a 09:10 Morning checklist by Kim"""
        outlet = directory.resolve("BLN")
        records = [submission("BLN", "Morning", "Kim", ist(2026, 10, 12, 9, 10))]

        view = compute_outlet_completion(outlet, DAY, records, [], SLOTS, directory)

        assert view.overall_status == OverallStatus.PARTIAL
        assert view.completion_percentage == 33.3
        morning, midday, closing = view.time_slots
        assert morning.status == SlotStatus.COMPLETED
        assert morning.submitted_by == "Kim"
        assert morning.formatted_time == "09:10"
        assert midday.status == SlotStatus.NOT_SUBMITTED
        assert closing.status == SlotStatus.NOT_SUBMITTED
        assert view.last_submission_time == ist(2026, 10, 12, 9, 10)

    def test_latest_submission_wins_within_slot(self, directory):
        outlet = directory.resolve("HSR")
        records = [
            submission("HSR", "Morning", "Kim", ist(2026, 10, 12, 8, 0)),
            submission("HSR", "morning", "Ajay", ist(2026, 10, 12, 10, 30)),
            submission("HSR", "Morning", "Jatin", ist(2026, 10, 12, 9, 0)),
        ]

        view = compute_outlet_completion(outlet, DAY, records, [], SLOTS, directory)

        morning = view.time_slots[0]
        assert morning.submitted_by == "Ajay"
        assert morning.formatted_time == "10:30"
        assert morning.submission_count == 3

    def test_all_slots_completed(self, directory):
        outlet = directory.resolve("RR")
        records = [
            submission("RR", "Morning", "Kim", ist(2026, 10, 12, 9, 0)),
            submission("Residency Road", "Mid Day", "Kim", ist(2026, 10, 12, 14, 0)),
            submission("rr", "Closing", "Ajay", ist(2026, 10, 12, 23, 0)),
        ]

        view = compute_outlet_completion(outlet, DAY, records, [], SLOTS, directory)

        assert view.overall_status == OverallStatus.COMPLETED
        assert view.completion_percentage == 100.0

    def test_naive_and_aware_timestamps_mix(self, directory):
        """Naive timestamps are taken as local time"""
        outlet = directory.resolve("BLN")
        records = [
            submission("BLN", "Morning", "Kim", ist(2026, 10, 12, 9, 10)),
            submission("BLN", "Closing", "Ajay", datetime(2026, 10, 12, 22, 0)),
        ]

        view = compute_outlet_completion(outlet, DAY, records, [], SLOTS, directory)

        assert view.last_submission_time == ist(2026, 10, 12, 22, 0)
        assert view.time_slots[2].formatted_time == "22:00"
        assert records[1].timestamp.tzinfo is not None

    def test_other_days_are_ignored(self, directory):
        outlet = directory.resolve("WF")
        records = [submission("WF", "Morning", "Kim", ist(2026, 10, 11, 9, 0))]

        view = compute_outlet_completion(outlet, DAY, records, [], SLOTS, directory)

        assert view.overall_status == OverallStatus.PENDING
        assert view.completion_percentage == 0.0
        assert view.last_submission_time is None

    def test_roster_attached_regardless_of_submission(self, directory):
        outlet = directory.resolve("KOR")
        roster = [
            ScheduledEmployee(outlet="KOR", time_slot="Morning", employee_id="E1", roster_date=DAY),
            ScheduledEmployee(outlet="KOR", time_slot="Closing", employee_id="E2", roster_date=DAY),
            ScheduledEmployee(outlet="KOR", time_slot="Closing", employee_id="E3", roster_date=date(2026, 10, 13)),
            ScheduledEmployee(outlet="HSR", time_slot="Closing", employee_id="E4", roster_date=DAY),
        ]
        records = [submission("KOR", "Morning", "E1", ist(2026, 10, 12, 9, 0))]

        view = compute_outlet_completion(outlet, DAY, records, roster, SLOTS, directory)

        assert [e.employee_id for e in view.time_slots[0].scheduled_employees] == ["E1"]
        assert view.time_slots[1].scheduled_employees == []
        assert [e.employee_id for e in view.time_slots[2].scheduled_employees] == ["E2"]
        assert view.time_slots[2].status == SlotStatus.NOT_SUBMITTED


class TestCompletion:
    def _records(self):
        return [
            submission("BLN", "Morning", "Kim", ist(2026, 10, 12, 9, 10)),
            submission("IND", "Morning", "Ajay", ist(2026, 10, 12, 9, 0)),
            submission("IND", "Mid Day", "Ajay", ist(2026, 10, 12, 13, 0)),
            submission("IND", "Closing", "Ajay", ist(2026, 10, 12, 23, 0)),
            submission("Test Kitchen", "Morning", "Sharon", ist(2026, 10, 12, 9, 0)),
        ]

    def test_one_view_per_whitelisted_outlet(self, directory):
        views = compute_completion(DAY, self._records(), [], SLOTS, directory)

        assert [v.outlet_code for v in views] == directory.codes()
        assert view_for(views, "IND").overall_status == OverallStatus.COMPLETED
        assert view_for(views, "BLN").overall_status == OverallStatus.PARTIAL

    def test_summary_counts_only_whitelisted_outlets(self, directory):
        views = compute_completion(DAY, self._records(), [], SLOTS, directory)
        summary = summarize_completion(views)

        assert summary.total_outlets == len(directory.outlets)
        assert summary.completed == 1
        assert summary.partial == 1
        assert summary.pending == len(directory.outlets) - 2
        assert summary.total_submissions == 4
        assert summary.overall_completion_rate == round(1 / len(directory.outlets) * 100, 1)

    def test_recomputation_is_stable(self, directory):
        first = summarize_completion(compute_completion(DAY, self._records(), [], SLOTS, directory))
        second = summarize_completion(compute_completion(DAY, self._records(), [], SLOTS, directory))
        assert first == second

    def test_status_and_percentage_agree(self, directory):
        views = compute_completion(DAY, self._records(), [], SLOTS, directory)
        for view in views:
            statuses = {slot.status for slot in view.time_slots}
            assert 0 <= view.completion_percentage <= 100
            assert (view.overall_status == OverallStatus.COMPLETED) == (statuses == {SlotStatus.COMPLETED})
            assert (view.overall_status == OverallStatus.PENDING) == (statuses == {SlotStatus.NOT_SUBMITTED})
            assert (view.completion_percentage == 100) == (view.overall_status == OverallStatus.COMPLETED)


class TestRankOutlets:
    def test_worst_first_then_whitelist_order(self, directory):
        views = compute_completion(DAY, [
            submission("BLN", "Morning", "Kim", ist(2026, 10, 12, 9, 10)),
            submission("HSR", "Morning", "Kim", ist(2026, 10, 12, 9, 10)),
            submission("HSR", "Mid Day", "Kim", ist(2026, 10, 12, 13, 10)),
            submission("HSR", "Closing", "Kim", ist(2026, 10, 12, 23, 10)),
            submission("JAY", "Morning", "Kim", ist(2026, 10, 12, 9, 10)),
        ], [], SLOTS, directory)

        ranked = rank_outlets(views, directory)
        codes = [v.outlet_code for v in ranked]

        pending = [c for c in directory.codes() if c not in ("BLN", "HSR", "JAY")]
        assert codes == pending + ["BLN", "JAY", "HSR"]
