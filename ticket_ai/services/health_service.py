from typing import Iterable, List

from ticket_ai.logging_config import get_logger
from ticket_ai.models import Agent, AgentStatus, ChatSession, SessionStatus, Ticket

logger = get_logger("health_service")


def check_invariants(
    sessions: Iterable[ChatSession],
    tickets: Iterable[Ticket],
    agents: Iterable[Agent],
) -> List[str]:
    """Check cross-entity invariants. Returns a list of violations, empty when consistent."""
    sessions = {s.id: s for s in sessions}
    tickets = {t.id: t for t in tickets}
    agents = list(agents)
    violations = []

    for ticket in tickets.values():
        if ticket.chat_session_id not in sessions:
            violations.append(f"ticket_orphaned:{ticket.id}")
        if ticket.is_closed != (ticket.resolved_at is not None):
            violations.append(f"ticket_resolved_at_mismatch:{ticket.id}")

    for session in sessions.values():
        if session.status == SessionStatus.ESCALATED and not session.ticket_id:
            violations.append(f"escalated_without_ticket:{session.id}")
        if session.ticket_id:
            ticket = tickets.get(session.ticket_id)
            if ticket is None or ticket.chat_session_id != session.id:
                violations.append(f"session_ticket_link_broken:{session.id}")

    held = set()
    for agent in agents:
        for ticket_id in agent.active_tickets:
            held.add((agent.id, ticket_id))
            ticket = tickets.get(ticket_id)
            if ticket is None or ticket.assigned_agent != agent.id or ticket.is_closed:
                violations.append(f"agent_holds_inactive_ticket:{agent.id}:{ticket_id}")

        if agent.status != AgentStatus.OFFLINE:
            if (agent.status == AgentStatus.BUSY) != bool(agent.active_tickets):
                violations.append(f"agent_status_mismatch:{agent.id}")

    for ticket in tickets.values():
        if ticket.assigned_agent and not ticket.is_closed and (ticket.assigned_agent, ticket.id) not in held:
            violations.append(f"active_ticket_not_held:{ticket.id}")

    if violations:
        logger.warning("Invariant violations found", extra={"context": {"violations": violations}})

    return violations
