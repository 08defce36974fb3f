from fastapi import APIRouter
from app.api.v1.endpoints.checklist import checklist
from app.api.v1.endpoints.reports import reports
from app.api.v1.endpoints.ticket import tickets

api_router = APIRouter()

# Ticket routes
api_router.include_router(tickets.router, prefix="/tickets", tags=["Tickets"])

# Checklist routes
api_router.include_router(checklist.router, prefix="/checklist", tags=["Checklist"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
