import logging
import random
from typing import Optional, List
from datetime import date, datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select, or_

from app.models.ticket.ticket import Ticket
from app.models.shared.enums import NotificationKind, TicketStatus, TicketType, TICKET_STATUS_ORDER
from app.schemas.ticket.ticket_schema import (
    NotificationRequest, TicketActionResult, TicketFilters, TicketIntake, TicketResponse, TicketStats
)
from app.services.notification.notification_service import NotificationService
from app.services.ticket.assignment_engine import AssignmentRules, assign, classify
from app.utils.date_utils import calculate_days_pending, today_local

logger = logging.getLogger(__name__)

VALIDATION_ERROR = "validation_error"
NOT_FOUND = "not_found"

SORT_FIELDS = {"date", "daysPending", "status", "outlet", "ticketId", "assignedTo"}

class TicketService:
    def __init__(
        self,
        session: AsyncSession,
        notification_service: NotificationService,
        rules: AssignmentRules,
        rng: Optional[random.Random] = None,
    ):
        self.session = session
        self.notification_service = notification_service
        self.rules = rules
        self.rng = rng or random.Random()

    # region Helpers
    def to_response(self, ticket: Ticket, today: Optional[date] = None) -> TicketResponse:
        response = TicketResponse.model_validate(ticket)
        return response.model_copy(update={"days_pending": calculate_days_pending(ticket.date, today)})

    def _failure(self, error_code: str, message: str, ticket: Optional[Ticket] = None) -> TicketActionResult:
        logger.info(f"Ticket operation rejected ({error_code}): {message}")
        return TicketActionResult(
            success=False,
            ticket=self.to_response(ticket) if ticket is not None else None,
            error_code=error_code,
            message=message,
        )

    async def _get_by_ticket_id(self, ticket_id: str) -> Optional[Ticket]:
        result = await self.session.execute(select(Ticket).where(Ticket.ticket_id == ticket_id))
        return result.scalar_one_or_none()

    async def _notify(self, request: NotificationRequest) -> bool:
        """Delivery problems never undo the ticket change that triggered them"""
        try:
            return await self.notification_service.send(request)
        except Exception as e:
            logger.error(f"Notification for ticket {request.ticket_id} failed: {e}")
            return False

    async def _notify_assignee(self, ticket: Ticket) -> bool:
        if not ticket.assigned_to:
            return False
        return await self._notify(NotificationRequest(
            recipient=ticket.assigned_to,
            message_kind=NotificationKind.ASSIGNMENT_NOTICE,
            ticket_id=ticket.ticket_id,
            context={
                "outlet": ticket.outlet,
                "type": ticket.type.value,
                "issue_description": ticket.issue_description,
            },
        ))

    async def generate_ticket_id(self, on_date: Optional[date] = None) -> str:
        """Generate unique ticket id in format: TKT-YYYYMMDD-NNNN"""
        day = (on_date or today_local()).strftime("%Y%m%d")
        prefix = f"TKT-{day}-"

        result = await self.session.execute(
            select(Ticket.ticket_id).where(Ticket.ticket_id.like(f"{prefix}%"))
        )
        # Intake may supply its own ids under the same prefix; only numeric suffixes count
        suffixes = [tid[len(prefix):] for tid in result.scalars().all()]
        seq = max((int(s) for s in suffixes if s.isdigit()), default=0) + 1

        return f"{prefix}{seq:04d}"
    # endregion

    # region Lifecycle
    async def create_ticket(self, data: TicketIntake) -> TicketActionResult:
        """Create a ticket from intake, classify it and run auto-assignment once"""
        ticket_id = (data.ticket_id or "").strip()
        if ticket_id:
            if await self._get_by_ticket_id(ticket_id):
                return self._failure(VALIDATION_ERROR, f"Ticket {ticket_id} already exists")
        else:
            ticket_id = await self.generate_ticket_id()

        ticket_type = classify(data.category, data.subcategory)
        decision = assign(ticket_type, self.rules, self.rng)

        try:
            ticket = Ticket(
                ticket_id=ticket_id,
                date=data.date,
                submitted_by=data.submitted_by,
                submitter_chat_id=data.submitter_chat_id,
                outlet=data.outlet,
                issue_description=data.issue_description or "",
                image_link=data.image_link,
                image_hash=data.image_hash,
                category=data.category,
                subcategory=data.subcategory,
                type=ticket_type,
                assigned_to=decision.assigned_to,
                auto_assigned=decision.auto_assigned,
                status=TicketStatus.OPEN,
                action_taken="",
            )
            self.session.add(ticket)
            await self.session.commit()
            await self.session.refresh(ticket)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating ticket {ticket_id}: {e}")
            raise

        logger.info(
            f"Ticket created: {ticket_id} at {ticket.outlet} - Type: {ticket_type.value}, "
            f"Assigned to: {ticket.assigned_to or 'nobody'}"
        )

        sent = await self._notify_assignee(ticket)
        return TicketActionResult(
            success=True,
            ticket=self.to_response(ticket),
            notification_sent=sent,
            notification_recipient=ticket.assigned_to,
            message=f"Ticket {ticket_id} created",
        )

    async def reclassify(self, ticket_id: str, new_type: TicketType) -> TicketActionResult:
        """Change the ticket type and re-run auto-assignment for the new type"""
        ticket = await self._get_by_ticket_id(ticket_id)
        if not ticket:
            return self._failure(NOT_FOUND, f"Ticket {ticket_id} not found")
        if ticket.status == TicketStatus.CLOSED:
            return self._failure(VALIDATION_ERROR, f"Ticket {ticket_id} is closed", ticket)
        if ticket.type == new_type:
            return self._failure(VALIDATION_ERROR, f"Ticket {ticket_id} is already of type {new_type.value}", ticket)

        old_type = ticket.type
        decision = assign(new_type, self.rules, self.rng)

        try:
            ticket.type = new_type
            ticket.assigned_to = decision.assigned_to
            ticket.auto_assigned = decision.auto_assigned
            await self.session.commit()
            await self.session.refresh(ticket)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error reclassifying ticket {ticket_id}: {e}")
            raise

        logger.info(
            f"Ticket {ticket_id} reclassified {old_type.value} -> {new_type.value}, "
            f"assigned to {ticket.assigned_to or 'nobody'}"
        )

        sent = await self._notify_assignee(ticket)
        return TicketActionResult(
            success=True,
            ticket=self.to_response(ticket),
            notification_sent=sent,
            notification_recipient=ticket.assigned_to,
            message=f"Ticket {ticket_id} reclassified to {new_type.value}",
        )

    async def manual_assign(self, ticket_id: str, employee_name: str) -> TicketActionResult:
        """
        Assign by hand. Always moves the ticket to In Progress, including from
        Resolved; closed tickets are rejected.
        """
        name = (employee_name or "").strip()
        if not name:
            return self._failure(VALIDATION_ERROR, "Assignee name must not be empty")

        ticket = await self._get_by_ticket_id(ticket_id)
        if not ticket:
            return self._failure(NOT_FOUND, f"Ticket {ticket_id} not found")
        if ticket.status == TicketStatus.CLOSED:
            return self._failure(VALIDATION_ERROR, f"Ticket {ticket_id} is closed", ticket)

        try:
            ticket.assigned_to = name
            ticket.auto_assigned = False
            ticket.status = TicketStatus.IN_PROGRESS
            await self.session.commit()
            await self.session.refresh(ticket)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error assigning ticket {ticket_id}: {e}")
            raise

        logger.info(f"Ticket {ticket_id} manually assigned to {name}")
        return TicketActionResult(
            success=True,
            ticket=self.to_response(ticket),
            message=f"Ticket {ticket_id} has been assigned to {name}",
        )

    async def update_status(self, ticket_id: str, new_status: TicketStatus, action_taken: str = "") -> TicketActionResult:
        """Store status and action taken; Resolved asks the submitter for approval"""
        ticket = await self._get_by_ticket_id(ticket_id)
        if not ticket:
            return self._failure(NOT_FOUND, f"Ticket {ticket_id} not found")
        if ticket.status == TicketStatus.CLOSED:
            return self._failure(VALIDATION_ERROR, f"Ticket {ticket_id} is closed", ticket)

        now = datetime.now(timezone.utc)
        try:
            ticket.status = new_status
            ticket.action_taken = action_taken or ""
            if new_status == TicketStatus.RESOLVED:
                ticket.resolved_at = now
            elif new_status == TicketStatus.CLOSED:
                ticket.closed_at = now
            await self.session.commit()
            await self.session.refresh(ticket)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating ticket {ticket_id} status: {e}")
            raise

        logger.info(f"Ticket {ticket_id} status updated to {new_status.value}")

        sent = False
        recipient = None
        if new_status == TicketStatus.RESOLVED:
            recipient = ticket.submitted_by
            sent = await self._notify(NotificationRequest(
                recipient=ticket.submitted_by,
                chat_id=ticket.submitter_chat_id,
                message_kind=NotificationKind.APPROVAL_REQUEST,
                ticket_id=ticket.ticket_id,
                context={
                    "outlet": ticket.outlet,
                    "assigned_to": ticket.assigned_to,
                    "action_taken": ticket.action_taken,
                },
            ))

        return TicketActionResult(
            success=True,
            ticket=self.to_response(ticket),
            notification_sent=sent,
            notification_recipient=recipient,
            message=f"Ticket {ticket_id} status updated to {new_status.value}",
        )
    # endregion

    # region Queries
    async def get_ticket(self, ticket_id: str) -> Optional[TicketResponse]:
        ticket = await self._get_by_ticket_id(ticket_id)
        return self.to_response(ticket) if ticket else None

    async def list_tickets(
        self,
        ticket_type: Optional[TicketType] = None,
        closed: bool = False,
        filters: Optional[TicketFilters] = None,
        sort_field: str = "date",
        sort_direction: str = "desc",
    ) -> List[TicketResponse]:
        """
        Active queue (per type tab) or the closed list.
        Closed tickets never show up in a type tab.
        """
        filters = filters or TicketFilters()
        conditions = []

        if closed:
            conditions.append(Ticket.status == TicketStatus.CLOSED)
        else:
            conditions.append(Ticket.status != TicketStatus.CLOSED)
            if filters.status:
                conditions.append(Ticket.status == filters.status)

        if ticket_type:
            conditions.append(Ticket.type == ticket_type)
        if filters.ticket_date:
            conditions.append(Ticket.date == filters.ticket_date)
        if filters.outlet:
            conditions.append(Ticket.outlet == filters.outlet)
        if filters.assignee:
            conditions.append(Ticket.assigned_to == filters.assignee)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            conditions.append(
                or_(
                    Ticket.ticket_id.ilike(pattern),
                    Ticket.issue_description.ilike(pattern),
                    Ticket.submitted_by.ilike(pattern),
                )
            )

        result = await self.session.execute(select(Ticket).where(*conditions))
        today = today_local()
        tickets = [self.to_response(t, today) for t in result.scalars().all()]
        return self.sort_tickets(tickets, sort_field, sort_direction)

    @staticmethod
    def sort_tickets(tickets: List[TicketResponse], sort_field: str = "date", sort_direction: str = "desc") -> List[TicketResponse]:
        if sort_field not in SORT_FIELDS:
            sort_field = "date"

        def sort_key(ticket: TicketResponse):
            if sort_field == "daysPending":
                return (ticket.days_pending, ticket.ticket_id)
            if sort_field == "status":
                return (TICKET_STATUS_ORDER.get(ticket.status, 4), ticket.ticket_id)
            if sort_field == "outlet":
                return (ticket.outlet.lower(), ticket.ticket_id)
            if sort_field == "ticketId":
                return (ticket.ticket_id, ticket.ticket_id)
            if sort_field == "assignedTo":
                return ((ticket.assigned_to or "").lower(), ticket.ticket_id)
            return (ticket.date, ticket.ticket_id)

        return sorted(tickets, key=sort_key, reverse=(sort_direction == "desc"))

    async def get_ticket_stats(self) -> TicketStats:
        """Counts for the dashboard tabs"""
        by_type = {t.value: 0 for t in TicketType}
        type_rows = await self.session.execute(
            select(Ticket.type, func.count(Ticket.id))
            .where(Ticket.status != TicketStatus.CLOSED)
            .group_by(Ticket.type)
        )
        for ticket_type, count in type_rows.all():
            by_type[ticket_type.value] = count

        by_status = {s.value: 0 for s in TicketStatus}
        status_rows = await self.session.execute(
            select(Ticket.status, func.count(Ticket.id)).group_by(Ticket.status)
        )
        for status, count in status_rows.all():
            by_status[status.value] = count

        unassigned = await self.session.scalar(
            select(func.count(Ticket.id)).where(
                Ticket.status != TicketStatus.CLOSED,
                or_(Ticket.assigned_to.is_(None), Ticket.assigned_to == ""),
            )
        ) or 0

        closed = by_status[TicketStatus.CLOSED.value]
        return TicketStats(
            by_type=by_type,
            by_status=by_status,
            active=sum(by_status.values()) - closed,
            closed=closed,
            unassigned=unassigned,
        )
    # endregion
