from pydantic import BaseModel, constr, conint
from typing import Optional
from app.utils.enums.ticket import TicketStatus, TicketType, TicketPriority


class TicketCreate(BaseModel):
    subject: constr(strip_whitespace=True, min_length=1, max_length=200)
    ticket_type: TicketType = TicketType.QUESTION
    priority: TicketPriority = TicketPriority.NORMAL
    message: Optional[str] = None


class MessageCreate(BaseModel):
    message: constr(strip_whitespace=True, min_length=1)


class TicketRating(BaseModel):
    rating: conint(ge=1, le=5)


class TicketStatusUpdate(BaseModel):
    status: TicketStatus
