from typing import List, Optional

from fastapi import APIRouter, Depends

from ticket_ai.dependencies import get_support_service
from ticket_ai.models import Ticket, TicketCategory, TicketPriority, TicketStatus
from ticket_ai.schemas.ticket import AssignRequest, AssignResponse, TicketCreateRequest, TicketUpdateRequest
from ticket_ai.services.support_service import SupportService

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.get("", response_model=List[Ticket])
def list_tickets(
    status: Optional[TicketStatus] = None,
    priority: Optional[TicketPriority] = None,
    category: Optional[TicketCategory] = None,
    assigned_agent: Optional[str] = None,
    service: SupportService = Depends(get_support_service),
):
    return service.list_tickets(status, priority, category, assigned_agent)


@router.post("", response_model=Ticket)
def create_ticket(request: TicketCreateRequest, service: SupportService = Depends(get_support_service)):
    return service.create_ticket(request.session_id, request.title, request.description)


@router.get("/{ticket_id}", response_model=Ticket)
def get_ticket(ticket_id: str, service: SupportService = Depends(get_support_service)):
    return service.get_ticket(ticket_id)


@router.put("/{ticket_id}", response_model=Ticket)
def update_ticket(
    ticket_id: str,
    request: TicketUpdateRequest,
    service: SupportService = Depends(get_support_service),
):
    """Field edits, assignment and status in one step; a status in the same request wins."""
    return service.update_ticket(ticket_id, **request.model_dump(exclude_none=True))


@router.post("/{ticket_id}/assign", response_model=AssignResponse)
def assign_ticket(
    ticket_id: str,
    request: AssignRequest,
    service: SupportService = Depends(get_support_service),
):
    ticket, agent = service.assign_agent(ticket_id, request.agent_id)
    return AssignResponse(ticket=ticket, agent=agent)
