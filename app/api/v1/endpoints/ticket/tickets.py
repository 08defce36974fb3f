from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_assignment_rules, get_ticket_service
from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models.shared.enums import TicketStatus, TicketType
from app.schemas.common.pagination import PaginatedResponse, paginate
from app.schemas.ticket.ticket_schema import (
    ManualAssignRequest, ReclassifyRequest, StatusUpdateRequest, TicketActionResult, TicketFilters,
    TicketIntake, TicketResponse, TicketStats
)
from app.services.ticket.assignment_engine import AssignmentRules
from app.services.ticket.ticket_service import NOT_FOUND, TicketService

router = APIRouter()

def _unwrap(result: TicketActionResult) -> TicketActionResult:
    """Typed failures become HTTP errors at the edge"""
    if result.success:
        return result
    if result.error_code == NOT_FOUND:
        raise NotFoundError(result.message)
    raise ValidationError(result.message)

@router.post("/", response_model=TicketActionResult)
async def create_ticket(
    intake: TicketIntake,
    service: TicketService = Depends(get_ticket_service),
):
    """Intake a ticket: classify, auto-assign and notify the assignee"""
    return _unwrap(await service.create_ticket(intake))

@router.get("/", response_model=PaginatedResponse[TicketResponse])
async def get_tickets(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    ticket_type: Optional[TicketType] = Query(None, alias="type", description="Type tab"),
    ticket_date: Optional[date] = Query(None, alias="date"),
    outlet: Optional[str] = Query(None),
    status: Optional[TicketStatus] = Query(None),
    assignee: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Search ticket id, description or submitter"),
    sort_field: str = Query("date", description="date, daysPending, status, outlet, ticketId, assignedTo"),
    sort_direction: str = Query("desc", pattern="^(asc|desc)$"),
    service: TicketService = Depends(get_ticket_service),
):
    """Active tickets; closed tickets are listed separately"""
    filters = TicketFilters(ticket_date=ticket_date, outlet=outlet, status=status, assignee=assignee, search=search)
    tickets = await service.list_tickets(
        ticket_type=ticket_type,
        closed=False,
        filters=filters,
        sort_field=sort_field,
        sort_direction=sort_direction,
    )
    return paginate(tickets, page_index, page_size)

@router.get("/closed", response_model=PaginatedResponse[TicketResponse])
async def get_closed_tickets(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    ticket_date: Optional[date] = Query(None, alias="date"),
    outlet: Optional[str] = Query(None),
    assignee: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    sort_field: str = Query("date"),
    sort_direction: str = Query("desc", pattern="^(asc|desc)$"),
    service: TicketService = Depends(get_ticket_service),
):
    filters = TicketFilters(ticket_date=ticket_date, outlet=outlet, assignee=assignee, search=search)
    tickets = await service.list_tickets(
        closed=True,
        filters=filters,
        sort_field=sort_field,
        sort_direction=sort_direction,
    )
    return paginate(tickets, page_index, page_size)

@router.get("/stats", response_model=TicketStats)
async def get_ticket_stats(service: TicketService = Depends(get_ticket_service)):
    return await service.get_ticket_stats()

@router.get("/assignees")
async def get_assignees(rules: AssignmentRules = Depends(get_assignment_rules)):
    """Names offered for manual assignment plus the auto-assignment table"""
    return {
        "assignees": list(settings.ASSIGNEE_OPTIONS),
        "rules": rules.as_dict(),
    }

@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: str,
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.get_ticket(ticket_id)
    if not ticket:
        raise NotFoundError(f"Ticket {ticket_id} not found")
    return ticket

@router.post("/{ticket_id}/reclassify", response_model=TicketActionResult)
async def reclassify_ticket(
    ticket_id: str,
    payload: ReclassifyRequest,
    service: TicketService = Depends(get_ticket_service),
):
    """Change the type and re-run auto-assignment for the new type"""
    return _unwrap(await service.reclassify(ticket_id, payload.type))

@router.post("/{ticket_id}/assign", response_model=TicketActionResult)
async def assign_ticket(
    ticket_id: str,
    payload: ManualAssignRequest,
    service: TicketService = Depends(get_ticket_service),
):
    return _unwrap(await service.manual_assign(ticket_id, payload.assigned_to))

@router.post("/{ticket_id}/status", response_model=TicketActionResult)
async def update_ticket_status(
    ticket_id: str,
    payload: StatusUpdateRequest,
    service: TicketService = Depends(get_ticket_service),
):
    """Resolving a ticket asks the submitter to approve the fix"""
    return _unwrap(await service.update_status(ticket_id, payload.status, payload.action_taken))
