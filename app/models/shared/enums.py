from enum import Enum

# Enums
class TicketType(str, Enum):
    REPAIR_AND_MAINTENANCE = "RepairAndMaintenance"
    DIFFICULTY_IN_ORDER = "DifficultyInOrder"
    STOCK_ITEMS = "StockItems"
    HOUSEKEEPING = "Housekeeping"
    OTHERS = "Others"

class TicketStatus(str, Enum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"

class NotificationKind(str, Enum):
    ASSIGNMENT_NOTICE = "AssignmentNotice"
    APPROVAL_REQUEST = "ApprovalRequest"

class SlotStatus(str, Enum):
    COMPLETED = "Completed"
    NOT_SUBMITTED = "Not Submitted"

class OverallStatus(str, Enum):
    COMPLETED = "Completed"
    PARTIAL = "Partial"
    PENDING = "Pending"

# Worst first; used by outlet ranking
OVERALL_STATUS_PRIORITY = {
    OverallStatus.PENDING: 0,
    OverallStatus.PARTIAL: 1,
    OverallStatus.COMPLETED: 2,
}

# Ticket list ordering used by the dashboard sort
TICKET_STATUS_ORDER = {
    TicketStatus.OPEN: 0,
    TicketStatus.IN_PROGRESS: 1,
    TicketStatus.RESOLVED: 2,
    TicketStatus.CLOSED: 3,
}
