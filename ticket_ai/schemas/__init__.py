from ticket_ai.schemas.agent import AgentCreateRequest, AvailabilityRequest
from ticket_ai.schemas.chat import ChatTurnResponse, MessageRequest, SessionCreateRequest
from ticket_ai.schemas.ticket import AssignRequest, AssignResponse, TicketCreateRequest, TicketUpdateRequest

__all__ = [
    "AgentCreateRequest",
    "AvailabilityRequest",
    "ChatTurnResponse",
    "MessageRequest",
    "SessionCreateRequest",
    "AssignRequest",
    "AssignResponse",
    "TicketCreateRequest",
    "TicketUpdateRequest",
]
