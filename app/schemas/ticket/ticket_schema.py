from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict
from datetime import date, datetime

from app.models.shared.enums import NotificationKind, TicketStatus, TicketType

class TicketIntake(BaseModel):
    """Ticket as delivered by the intake bot / form"""
    ticket_id: Optional[str] = Field(None, alias="ticketId")
    date: date
    submitted_by: str = Field(..., alias="submittedBy")
    submitter_chat_id: Optional[str] = Field(None, alias="submitterChatId")
    outlet: str
    issue_description: str = Field("", alias="issueDescription")
    image_link: Optional[str] = Field(None, alias="imageLink")
    image_hash: Optional[str] = Field(None, alias="imageHash")
    category: Optional[str] = None
    subcategory: Optional[str] = None

    @validator("submitted_by", "outlet")
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    class Config:
        populate_by_name = True

class TicketResponse(BaseModel):
    ticket_id: str
    date: date
    submitted_by: str
    outlet: str
    issue_description: str
    image_link: Optional[str] = None
    image_hash: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    type: TicketType
    assigned_to: Optional[str] = None
    auto_assigned: bool = False
    status: TicketStatus
    action_taken: str = ""
    days_pending: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ReclassifyRequest(BaseModel):
    type: TicketType

class ManualAssignRequest(BaseModel):
    assigned_to: str = Field(..., alias="assignedTo")

    class Config:
        populate_by_name = True

class StatusUpdateRequest(BaseModel):
    status: TicketStatus
    action_taken: str = Field("", alias="actionTaken")

    class Config:
        populate_by_name = True

class NotificationRequest(BaseModel):
    """Request handed to the delivery layer; delivery may fail independently"""
    recipient: str
    chat_id: Optional[str] = None
    message_kind: NotificationKind
    ticket_id: str
    context: Dict[str, Optional[str]] = {}

class AssignmentDecision(BaseModel):
    """Outcome of running the rule table for one ticket type"""
    type: TicketType
    candidates: List[str] = []
    assigned_to: Optional[str] = None
    auto_assigned: bool = False

class TicketActionResult(BaseModel):
    """Typed result for ticket operations; callers branch on success / error_code"""
    success: bool
    ticket: Optional[TicketResponse] = None
    notification_sent: bool = False
    notification_recipient: Optional[str] = None
    error_code: Optional[str] = None  # "validation_error" | "not_found"
    message: str = ""

class TicketFilters(BaseModel):
    ticket_date: Optional[date] = None
    outlet: Optional[str] = None
    status: Optional[TicketStatus] = None
    assignee: Optional[str] = None
    search: Optional[str] = None

class TicketStats(BaseModel):
    by_type: Dict[str, int]
    by_status: Dict[str, int]
    active: int
    closed: int
    unassigned: int
