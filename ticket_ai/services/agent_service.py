from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from ticket_ai.logging_config import get_logger
from ticket_ai.models import Agent, AgentStatus, Ticket
from ticket_ai.services import state_machine
from ticket_ai.services.errors import NotFoundError, ValidationError
from ticket_ai.services.result import Result
from ticket_ai.services.state_machine import Persist, Transition
from ticket_ai.services.store import STORAGE_KEYS, DurableStore, load_collection, write_through

if TYPE_CHECKING:
    from ticket_ai.services.ticket_service import TicketLifecycleManager

logger = get_logger("agent_service")


class AgentAssignmentCoordinator:
    """Owns agent records: availability and the set of tickets each agent is working."""

    def __init__(self, store: DurableStore, tickets: Optional["TicketLifecycleManager"] = None):
        self.store = store
        self.tickets = tickets
        self._agents: Dict[str, Agent] = load_collection(store, STORAGE_KEYS["agents"], Agent)

    def _commit(self, transition: Transition[Agent]) -> Agent:
        agent = transition.state
        self._agents[agent.id] = agent
        for effect in transition.effects:
            if isinstance(effect, Persist):
                write_through(self.store, STORAGE_KEYS["agents"], self._agents.values())
        return agent

    # === QUERIES ===

    def find_agent(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def get_agent(self, agent_id: str) -> Agent:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise NotFoundError("agent", agent_id)
        return agent

    def list_agents(self, status: Optional[AgentStatus] = None) -> List[Agent]:
        agents = list(self._agents.values())
        if status is not None:
            agents = [a for a in agents if a.status == status]
        return agents

    def holder_of(self, ticket_id: str) -> Optional[Agent]:
        for agent in self._agents.values():
            if ticket_id in agent.active_tickets:
                return agent
        return None

    # === ADMINISTRATION ===

    def register_agent(self, name: str, email: str, skill_tags: Optional[List[str]] = None) -> Agent:
        if not name or not name.strip():
            raise ValidationError("Agent name is required")
        if not email or not email.strip():
            raise ValidationError("Agent email is required")

        agent = Agent(name=name.strip(), email=email.strip(), skill_tags=list(skill_tags or []))
        agent = self._commit(Transition(agent, [Persist(state_machine.AGENTS)]))
        logger.info(f"Registered agent {agent.id}", extra={"context": {"agent_id": agent.id}})
        return agent

    def set_offline(self, agent_id: str, offline: bool) -> Agent:
        agent = self.get_agent(agent_id)
        return self._commit(state_machine.set_agent_offline(agent, offline))

    def replace_all(self, agents: List[Agent]) -> None:
        self._agents = {a.id: a for a in agents}
        write_through(self.store, STORAGE_KEYS["agents"], self._agents.values())

    # === ASSIGNMENT ===

    def assign(self, ticket_id: str, agent_id: str) -> Result[Tuple[Ticket, Agent]]:
        """Give a ticket to an agent. Unknown ticket or agent leaves everything untouched."""
        if self.tickets is None or self.tickets.find_ticket(ticket_id) is None:
            logger.warning(f"Assign skipped, unknown ticket {ticket_id}")
            return Result.not_found("ticket", ticket_id)
        if agent_id not in self._agents:
            logger.warning(f"Assign skipped, unknown agent {agent_id}")
            return Result.not_found("agent", agent_id)

        ticket = self.tickets.apply_assignment(ticket_id, agent_id)
        agent = self.attach(ticket_id, agent_id)

        logger.info(
            f"Assigned ticket {ticket_id} to agent {agent_id}",
            extra={"context": {"ticket_id": ticket_id, "agent_id": agent_id, "agent_status": agent.status.value}},
        )
        return Result.success((ticket, agent))

    def attach(self, ticket_id: str, agent_id: str) -> Optional[Agent]:
        agent = self._agents.get(agent_id)
        if agent is None:
            logger.warning(f"Cannot attach ticket {ticket_id}: agent {agent_id} is gone")
            return None
        return self._commit(state_machine.attach_ticket(agent, ticket_id))

    def release(self, ticket_id: str) -> Optional[Agent]:
        """Drop a ticket from whichever agent holds it and recompute that agent's status."""
        agent = self.holder_of(ticket_id)
        if agent is None:
            return None

        agent = self._commit(state_machine.detach_ticket(agent, ticket_id))
        logger.info(
            f"Released ticket {ticket_id} from agent {agent.id}",
            extra={"context": {"remaining": len(agent.active_tickets), "agent_status": agent.status.value}},
        )
        return agent
