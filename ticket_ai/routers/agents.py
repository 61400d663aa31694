from typing import List, Optional

from fastapi import APIRouter, Depends

from ticket_ai.dependencies import get_support_service
from ticket_ai.models import Agent, AgentStatus
from ticket_ai.schemas.agent import AgentCreateRequest, AvailabilityRequest
from ticket_ai.services.support_service import SupportService

router = APIRouter(prefix="/agents", tags=["agents"])


@router.get("", response_model=List[Agent])
def list_agents(status: Optional[AgentStatus] = None, service: SupportService = Depends(get_support_service)):
    return service.list_agents(status)


@router.post("", response_model=Agent)
def register_agent(request: AgentCreateRequest, service: SupportService = Depends(get_support_service)):
    return service.register_agent(request.name, request.email, request.skill_tags)


@router.put("/{agent_id}/availability", response_model=Agent)
def set_availability(
    agent_id: str,
    request: AvailabilityRequest,
    service: SupportService = Depends(get_support_service),
):
    return service.set_agent_offline(agent_id, request.offline)
