"""Pure transition functions for sessions, tickets and agents.

Every function takes the current entity and an event and returns a Transition:
the new entity plus the side effects the owning manager must run after it
commits the new state. Nothing here touches the store or another manager.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, List, TypeVar

from ticket_ai.models import (
    Agent,
    AgentStatus,
    ChatSession,
    Message,
    SessionStatus,
    Ticket,
    TicketStatus,
)
from ticket_ai.services.errors import ValidationError

SESSIONS = "sessions"
TICKETS = "tickets"
AGENTS = "agents"

T = TypeVar("T")


@dataclass(frozen=True)
class Persist:
    collection: str


@dataclass(frozen=True)
class ReleaseAgent:
    ticket_id: str


@dataclass(frozen=True)
class AttachAgent:
    ticket_id: str
    agent_id: str


@dataclass
class Transition(Generic[T]):
    state: T
    effects: List[object] = field(default_factory=list)


# === SESSION ===


def append_message(session: ChatSession, message: Message, now: datetime) -> Transition[ChatSession]:
    updated = session.model_copy(update={"messages": [*session.messages, message], "updated_at": now})
    return Transition(updated, [Persist(SESSIONS)])


def escalate_session(session: ChatSession, ticket_id: str, now: datetime) -> Transition[ChatSession]:
    """active -> escalated, linking the ticket. Already linked sessions are left alone."""
    if session.ticket_id:
        return Transition(session)
    if session.status == SessionStatus.RESOLVED:
        raise ValidationError(f"Cannot escalate resolved session {session.id}")

    updated = session.model_copy(
        update={"status": SessionStatus.ESCALATED, "ticket_id": ticket_id, "updated_at": now}
    )
    return Transition(updated, [Persist(SESSIONS)])


def resolve_session(session: ChatSession, now: datetime) -> Transition[ChatSession]:
    if session.status == SessionStatus.RESOLVED:
        return Transition(session)
    updated = session.model_copy(update={"status": SessionStatus.RESOLVED, "updated_at": now})
    return Transition(updated, [Persist(SESSIONS)])


# === TICKET ===


def set_ticket_status(ticket: Ticket, status: TicketStatus, now: datetime) -> Transition[Ticket]:
    """Any status may follow any other; only the side effects depend on the pair."""
    was_closed = ticket.is_closed
    update = {"status": status, "updated_at": now}
    effects: List[object] = [Persist(TICKETS)]

    updated = ticket.model_copy(update=update)
    if updated.is_closed:
        # refreshed on every resolved/closed update
        updated = updated.model_copy(update={"resolved_at": now})
        if ticket.assigned_agent and not was_closed:
            effects.append(ReleaseAgent(ticket.id))
    else:
        updated = updated.model_copy(update={"resolved_at": None})
        if ticket.assigned_agent and was_closed:
            effects.append(AttachAgent(ticket.id, ticket.assigned_agent))

    return Transition(updated, effects)


def assign_ticket(ticket: Ticket, agent_id: str, now: datetime) -> Transition[Ticket]:
    effects: List[object] = [Persist(TICKETS)]
    if ticket.assigned_agent and ticket.assigned_agent != agent_id and not ticket.is_closed:
        effects.append(ReleaseAgent(ticket.id))

    updated = ticket.model_copy(
        update={
            "assigned_agent": agent_id,
            "status": TicketStatus.IN_PROGRESS,
            "resolved_at": None,
            "updated_at": now,
        }
    )
    return Transition(updated, effects)


def update_ticket_details(ticket: Ticket, changes: dict, now: datetime) -> Transition[Ticket]:
    updated = ticket.model_copy(update={**changes, "updated_at": now})
    return Transition(updated, [Persist(TICKETS)])


# === AGENT ===


def _derived_status(agent: Agent, active_tickets: List[str]) -> AgentStatus:
    if agent.status == AgentStatus.OFFLINE:
        return AgentStatus.OFFLINE
    return AgentStatus.BUSY if active_tickets else AgentStatus.AVAILABLE


def attach_ticket(agent: Agent, ticket_id: str) -> Transition[Agent]:
    if ticket_id in agent.active_tickets:
        active = list(agent.active_tickets)
    else:
        active = [*agent.active_tickets, ticket_id]
    updated = agent.model_copy(update={"active_tickets": active, "status": _derived_status(agent, active)})
    if updated == agent:
        return Transition(agent)
    return Transition(updated, [Persist(AGENTS)])


def detach_ticket(agent: Agent, ticket_id: str) -> Transition[Agent]:
    if ticket_id not in agent.active_tickets:
        return Transition(agent)
    active = [t for t in agent.active_tickets if t != ticket_id]
    updated = agent.model_copy(update={"active_tickets": active, "status": _derived_status(agent, active)})
    return Transition(updated, [Persist(AGENTS)])


def set_agent_offline(agent: Agent, offline: bool) -> Transition[Agent]:
    """Administrative switch. Coming back online derives busy/available from the active set."""
    if offline:
        status = AgentStatus.OFFLINE
    else:
        status = AgentStatus.BUSY if agent.active_tickets else AgentStatus.AVAILABLE

    if status == agent.status:
        return Transition(agent)
    return Transition(agent.model_copy(update={"status": status}), [Persist(AGENTS)])
