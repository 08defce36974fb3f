from sqlalchemy import Column, String, Text, Boolean, Date, DateTime, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import TicketStatus, TicketType

class Ticket(BaseModel):
    __tablename__ = 'tickets'

    ticket_id = Column(String(50), unique=True, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    submitted_by = Column(String(100), nullable=False)
    submitter_chat_id = Column(String(50))  # Telegram chat of the submitter, when known
    outlet = Column(String(100), nullable=False, index=True)
    issue_description = Column(Text, nullable=False, default="")
    image_link = Column(String(500))
    image_hash = Column(String(100))

    # Raw labels from the intake bot / form
    category = Column(String(100))
    subcategory = Column(String(100))

    type = Column(SQLEnum(TicketType), nullable=False, default=TicketType.OTHERS, index=True)
    assigned_to = Column(String(100), index=True)
    auto_assigned = Column(Boolean, nullable=False, default=False)
    status = Column(SQLEnum(TicketStatus), nullable=False, default=TicketStatus.OPEN, index=True)
    action_taken = Column(Text, nullable=False, default="")

    resolved_at = Column(DateTime(timezone=True))
    closed_at = Column(DateTime(timezone=True))
