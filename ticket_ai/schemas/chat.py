from typing import Optional

from pydantic import BaseModel

from ticket_ai.models import Message, TicketCategory, TicketPriority


class SessionCreateRequest(BaseModel):
    user_id: Optional[str] = None


class MessageRequest(BaseModel):
    content: str


class ChatTurnResponse(BaseModel):
    session_id: str
    message: Message
    confidence: float
    should_escalate: bool
    escalation_reason: Optional[str] = None
    suggested_category: Optional[TicketCategory] = None
    suggested_priority: Optional[TicketPriority] = None
    ticket_id: Optional[str] = None
