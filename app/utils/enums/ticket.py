from enum import Enum

class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    WAITING_USER = "waiting_user"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketType(str, Enum):
    PROBLEM = "problem"
    SUGGESTION = "suggestion"
    COMPLAINT = "complaint"
    QUESTION = "question"
    FINANCIAL = "financial"
    TECHNICAL = "technical"
    OTHER = "other"


class TicketPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


FINISHED_STATUSES = (TicketStatus.RESOLVED.value, TicketStatus.CLOSED.value)
