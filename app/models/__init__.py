from app.models.ticket.ticket import Ticket
