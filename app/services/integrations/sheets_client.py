"""
Client for the Sheets-backed data API that serves checklist and roster feeds.

Rows are parsed defensively: cells are trimmed, dates normalised, duplicate
submissions collapsed and orphaned responses dropped. Any transport or
payload problem surfaces as UpstreamFetchError so callers can degrade.
"""
import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import httpx

from app.core.config import settings
from app.core.exceptions import UpstreamFetchError
from app.schemas.checklist.checklist_schema import ChecklistResponseItem, ScheduledEmployee, SubmissionRecord
from app.utils.date_utils import parse_sheet_date, parse_sheet_timestamp

logger = logging.getLogger(__name__)


def _cell(row: Dict[str, Any], key: str) -> str:
    value = row.get(key)
    if value is None:
        return ""
    return str(value).strip()


def parse_submissions(rows: List[Dict[str, Any]]) -> List[SubmissionRecord]:
    """First occurrence of a submissionId wins; rows without an outlet are dropped"""
    seen = set()
    records = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        outlet = _cell(row, "outlet")
        if not outlet:
            continue

        submission_id = _cell(row, "submissionId") or None
        if submission_id:
            if submission_id in seen:
                continue
            seen.add(submission_id)

        timestamp = parse_sheet_timestamp(_cell(row, "timestamp"))
        records.append(SubmissionRecord(
            submission_id=submission_id,
            outlet=outlet,
            time_slot=_cell(row, "timeSlot"),
            submitted_by=_cell(row, "submittedBy"),
            timestamp=timestamp,
            submission_date=parse_sheet_date(_cell(row, "date")) or (timestamp.date() if timestamp else None),
        ))
    return records


def parse_responses(rows: List[Dict[str, Any]], submission_ids: set) -> List[ChecklistResponseItem]:
    """Responses whose submission is unknown are dropped"""
    items = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        submission_id = _cell(row, "submissionId")
        if not submission_id or submission_id not in submission_ids:
            continue
        items.append(ChecklistResponseItem(
            submission_id=submission_id,
            question=_cell(row, "question"),
            answer=_cell(row, "answer"),
            image=_cell(row, "image"),
            image_code=_cell(row, "imageCode"),
        ))
    return items


def parse_roster(rows: List[Dict[str, Any]], roster_date: Optional[date] = None) -> List[ScheduledEmployee]:
    entries = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        outlet = _cell(row, "outlet")
        employee_id = _cell(row, "employeeId")
        if not outlet or not employee_id:
            continue
        entries.append(ScheduledEmployee(
            outlet=outlet,
            time_slot=_cell(row, "timeSlot"),
            employee_id=employee_id,
            start_time=_cell(row, "startTime") or None,
            end_time=_cell(row, "endTime") or None,
            roster_date=parse_sheet_date(_cell(row, "date")) or roster_date,
        ))
    return entries


class SheetsDataClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.SHEETS_API_BASE_URL).rstrip("/")
        self.transport = transport
        self.timeout = timeout if timeout is not None else settings.SHEETS_API_TIMEOUT_SECONDS
        self.retries = max(1, retries if retries is not None else settings.SHEETS_API_RETRIES)
        self.retry_delay = retry_delay if retry_delay is not None else settings.SHEETS_API_RETRY_DELAY_SECONDS

    async def _get_json(self, source: str, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        last_error: Optional[UpstreamFetchError] = None

        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=self.transport) as client:
            for attempt in range(1, self.retries + 1):
                try:
                    response = await client.get(url, params=params)
                    if not response.is_success:
                        raise UpstreamFetchError(source, f"HTTP {response.status_code}", response.status_code)
                    try:
                        data = response.json()
                    except ValueError:
                        raise UpstreamFetchError(source, "Response is not valid JSON", response.status_code)
                    if not isinstance(data, dict) or not data.get("success", False):
                        message = data.get("error") if isinstance(data, dict) else None
                        raise UpstreamFetchError(source, message or "Upstream reported failure", response.status_code)
                    return data
                except UpstreamFetchError as e:
                    last_error = e
                except httpx.HTTPError as e:
                    last_error = UpstreamFetchError(source, f"{type(e).__name__}: {e}")

                logger.warning(f"{source} fetch attempt {attempt}/{self.retries} failed: {last_error.detail}")
                if attempt < self.retries and self.retry_delay > 0:
                    await asyncio.sleep(self.retry_delay)

        logger.error(f"{source} fetch failed after {self.retries} attempts: {last_error.detail}")
        raise last_error

    async def fetch_checklist_data(self) -> Tuple[List[SubmissionRecord], List[ChecklistResponseItem]]:
        """Submissions and their question responses"""
        data = await self._get_json("checklist", settings.CHECKLIST_DATA_PATH)
        submissions = parse_submissions(data.get("submissions") or [])
        known_ids = {s.submission_id for s in submissions if s.submission_id}
        responses = parse_responses(data.get("responses") or [], known_ids)
        logger.info(f"Fetched {len(submissions)} checklist submissions and {len(responses)} responses")
        return submissions, responses

    async def fetch_submissions(self) -> List[SubmissionRecord]:
        submissions, _ = await self.fetch_checklist_data()
        return submissions

    async def fetch_roster(self, roster_date: date) -> List[ScheduledEmployee]:
        data = await self._get_json("roster", settings.ROSTER_DATA_PATH, params={"date": roster_date.isoformat()})
        roster = parse_roster(data.get("roster") or [], roster_date)
        logger.info(f"Fetched {len(roster)} roster entries for {roster_date}")
        return roster
