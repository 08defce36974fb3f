"""
Checklist completion aggregation.

Pure functions over in-memory records. For a date, every whitelisted outlet
gets one view with a status per time slot, an overall status and a
completion percentage. Outlets outside the whitelist are dropped before any
counting happens.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from app.core.exceptions import ConfigurationError
from app.models.shared.enums import OverallStatus, SlotStatus, OVERALL_STATUS_PRIORITY
from app.schemas.checklist.checklist_schema import (
    CompletionSummary, OutletCompletionView, OutletConfig, ScheduledEmployee, SubmissionRecord, TimeSlotStatus
)
from app.utils.date_utils import format_time

logger = logging.getLogger(__name__)


def _slot_key(value: Optional[str]) -> str:
    if not value:
        return ""
    return "".join(ch for ch in value.lower() if ch.isalnum())


def normalize_time_slot(value: Optional[str], slot_order: Sequence[str]) -> Optional[str]:
    """Map 'midday', 'MID-DAY', ' Mid  Day ' onto the configured 'Mid Day'"""
    key = _slot_key(value)
    if not key:
        return None
    for slot in slot_order:
        if _slot_key(slot) == key:
            return slot
    return None


class OutletDirectory:
    """Ordered outlet whitelist; submissions may name an outlet by code or by name"""

    def __init__(self, outlets: Iterable[OutletConfig]):
        self.outlets: List[OutletConfig] = list(outlets)
        if not self.outlets:
            raise ConfigurationError("Outlet whitelist is empty")

        self._index: Dict[str, int] = {}
        self._lookup: Dict[str, OutletConfig] = {}
        for position, outlet in enumerate(self.outlets):
            code_key = outlet.code.strip().lower()
            if code_key in self._index:
                raise ConfigurationError(f"Duplicate outlet code in whitelist: {outlet.code}")
            self._index[code_key] = position
            self._lookup[code_key] = outlet
            self._lookup.setdefault(outlet.name.strip().lower(), outlet)

    @classmethod
    def from_settings(cls, raw_outlets: Iterable[dict]) -> "OutletDirectory":
        return cls(OutletConfig(**o) for o in raw_outlets)

    def resolve(self, value: Optional[str]) -> Optional[OutletConfig]:
        if not value:
            return None
        return self._lookup.get(value.strip().lower())

    def position(self, code: str) -> int:
        return self._index.get(code.strip().lower(), len(self.outlets))

    def codes(self) -> List[str]:
        return [o.code for o in self.outlets]


def submission_date(record: SubmissionRecord) -> Optional[date]:
    if record.submission_date:
        return record.submission_date
    if record.timestamp:
        return record.timestamp.date()
    return None


def _belongs_to(value: Optional[str], outlet: OutletConfig, directory: OutletDirectory) -> bool:
    resolved = directory.resolve(value)
    return resolved is not None and resolved.code == outlet.code


def _roster_matches(entry: ScheduledEmployee, outlet: OutletConfig, slot: str,
                    report_date: date, directory: OutletDirectory, slot_order: Sequence[str]) -> bool:
    if not _belongs_to(entry.outlet, outlet, directory):
        return False
    if normalize_time_slot(entry.time_slot, slot_order) != slot:
        return False
    return entry.roster_date is None or entry.roster_date == report_date


def compute_outlet_completion(
    outlet: OutletConfig,
    report_date: date,
    submissions: Iterable[SubmissionRecord],
    roster: Iterable[ScheduledEmployee],
    slot_order: Sequence[str],
    directory: OutletDirectory,
) -> OutletCompletionView:
    """Per-slot completion for one outlet on one date"""
    outlet_submissions = [
        s for s in submissions
        if submission_date(s) == report_date and _belongs_to(s.outlet, outlet, directory)
    ]
    roster = list(roster)

    slot_statuses: List[TimeSlotStatus] = []
    completed_count = 0
    for slot in slot_order:
        in_slot = [s for s in outlet_submissions if normalize_time_slot(s.time_slot, slot_order) == slot]
        scheduled = [e for e in roster if _roster_matches(e, outlet, slot, report_date, directory, slot_order)]

        if in_slot:
            completed_count += 1
            # Latest submission wins; untimed rows sort first
            latest = max(in_slot, key=lambda s: s.timestamp.timestamp() if s.timestamp else float("-inf"))
            slot_statuses.append(TimeSlotStatus(
                time_slot=slot,
                status=SlotStatus.COMPLETED,
                submitted_by=latest.submitted_by or None,
                formatted_time=format_time(latest.timestamp),
                submission_count=len(in_slot),
                scheduled_employees=scheduled,
            ))
        else:
            slot_statuses.append(TimeSlotStatus(
                time_slot=slot,
                status=SlotStatus.NOT_SUBMITTED,
                scheduled_employees=scheduled,
            ))

    total_slots = len(slot_order)
    if total_slots and completed_count == total_slots:
        overall = OverallStatus.COMPLETED
    elif completed_count == 0:
        overall = OverallStatus.PENDING
    else:
        overall = OverallStatus.PARTIAL

    percentage = round(completed_count / total_slots * 100, 1) if total_slots else 0.0
    timestamps = [s.timestamp for s in outlet_submissions if s.timestamp is not None]

    return OutletCompletionView(
        outlet=outlet.name,
        outlet_code=outlet.code,
        outlet_type=outlet.type,
        time_slots=slot_statuses,
        overall_status=overall,
        completion_percentage=percentage,
        last_submission_time=max(timestamps) if timestamps else None,
    )


def compute_completion(
    report_date: date,
    submissions: Iterable[SubmissionRecord],
    roster: Iterable[ScheduledEmployee],
    slot_order: Sequence[str],
    directory: OutletDirectory,
) -> List[OutletCompletionView]:
    """Views for every whitelisted outlet; non-whitelisted rows are discarded first"""
    submissions = list(submissions)
    whitelisted = [s for s in submissions if directory.resolve(s.outlet) is not None]
    dropped = len(submissions) - len(whitelisted)
    if dropped:
        logger.debug(f"Ignored {dropped} submissions from outlets outside the whitelist")

    roster = [e for e in roster if directory.resolve(e.outlet) is not None]
    return [
        compute_outlet_completion(outlet, report_date, whitelisted, roster, slot_order, directory)
        for outlet in directory.outlets
    ]


def rank_outlets(views: Iterable[OutletCompletionView], directory: OutletDirectory) -> List[OutletCompletionView]:
    """Worst status first, then whitelist order"""
    return sorted(
        views,
        key=lambda v: (OVERALL_STATUS_PRIORITY[v.overall_status], directory.position(v.outlet_code)),
    )


def summarize_completion(views: Sequence[OutletCompletionView]) -> CompletionSummary:
    total = len(views)
    completed = sum(1 for v in views if v.overall_status == OverallStatus.COMPLETED)
    partial = sum(1 for v in views if v.overall_status == OverallStatus.PARTIAL)
    pending = sum(1 for v in views if v.overall_status == OverallStatus.PENDING)
    submissions = sum(slot.submission_count for v in views for slot in v.time_slots)

    return CompletionSummary(
        total_outlets=total,
        completed=completed,
        partial=partial,
        pending=pending,
        overall_completion_rate=round(completed / total * 100, 1) if total else 0.0,
        average_completion_percentage=round(sum(v.completion_percentage for v in views) / total, 1) if total else 0.0,
        total_submissions=submissions,
    )
