import logging
import random
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_async_session
from app.core.redis import SnapshotCache, redis_client
from app.services.checklist.checklist_service import ChecklistService
from app.services.checklist.completion_engine import OutletDirectory
from app.services.communication.telegram_service import TelegramClient
from app.services.integrations.sheets_client import SheetsDataClient
from app.services.notification.notification_service import NotificationService
from app.services.ticket.assignment_engine import AssignmentRules
from app.services.ticket.ticket_service import TicketService

logger = logging.getLogger(__name__)

# One process-wide random source; each draw is persisted on the ticket
_assignment_rng = random.Random()

@lru_cache
def get_assignment_rules() -> AssignmentRules:
    """Validated once; a malformed table raises ConfigurationError"""
    return AssignmentRules.from_mapping(settings.ASSIGNMENT_RULES)

@lru_cache
def get_outlet_directory() -> OutletDirectory:
    return OutletDirectory.from_settings(settings.OUTLETS)

def get_assignment_rng() -> random.Random:
    return _assignment_rng

def get_notification_service() -> NotificationService:
    return NotificationService(TelegramClient(), settings.NOTIFICATION_CHAT_IDS)

def get_ticket_service(
    session: AsyncSession = Depends(get_async_session),
    notification_service: NotificationService = Depends(get_notification_service),
    rules: AssignmentRules = Depends(get_assignment_rules),
    rng: random.Random = Depends(get_assignment_rng),
) -> TicketService:
    return TicketService(session, notification_service, rules, rng)

def get_snapshot_cache() -> SnapshotCache:
    return SnapshotCache(redis_client)

def get_checklist_service(
    directory: OutletDirectory = Depends(get_outlet_directory),
    cache: SnapshotCache = Depends(get_snapshot_cache),
) -> ChecklistService:
    return ChecklistService(
        data_client=SheetsDataClient(),
        directory=directory,
        time_slots=settings.TIME_SLOTS,
        cache=cache,
        performer_count=settings.PERFORMER_COUNT,
    )
