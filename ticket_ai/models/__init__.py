from ticket_ai.models.agent import Agent, AgentStatus
from ticket_ai.models.chat_session import ChatSession, SessionStatus
from ticket_ai.models.message import Message, MessageMetadata, MessageRole
from ticket_ai.models.store_entry import StoreEntry
from ticket_ai.models.ticket import (
    CLOSED_STATUSES,
    CustomerInfo,
    Ticket,
    TicketCategory,
    TicketMetadata,
    TicketPriority,
    TicketStatus,
)

__all__ = [
    "Agent",
    "AgentStatus",
    "ChatSession",
    "SessionStatus",
    "Message",
    "MessageMetadata",
    "MessageRole",
    "StoreEntry",
    "Ticket",
    "TicketStatus",
    "TicketPriority",
    "TicketCategory",
    "TicketMetadata",
    "CustomerInfo",
    "CLOSED_STATUSES",
]
