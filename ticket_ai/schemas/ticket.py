from typing import List, Optional

from pydantic import BaseModel

from ticket_ai.models import Agent, Ticket, TicketCategory, TicketPriority, TicketStatus


class TicketCreateRequest(BaseModel):
    session_id: str
    title: str
    description: str


class TicketUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    category: Optional[TicketCategory] = None
    assigned_agent: Optional[str] = None
    escalation_reason: Optional[str] = None
    tags: Optional[List[str]] = None


class AssignRequest(BaseModel):
    agent_id: str


class AssignResponse(BaseModel):
    ticket: Ticket
    agent: Agent
