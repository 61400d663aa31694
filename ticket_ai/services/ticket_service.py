from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ticket_ai.logging_config import get_logger
from ticket_ai.models import (
    ChatSession,
    Ticket,
    TicketCategory,
    TicketMetadata,
    TicketPriority,
    TicketStatus,
)
from ticket_ai.services import state_machine
from ticket_ai.services.agent_service import AgentAssignmentCoordinator
from ticket_ai.services.errors import NotFoundError, ValidationError
from ticket_ai.services.escalation_engine import EscalationSignal
from ticket_ai.services.state_machine import AttachAgent, Persist, ReleaseAgent, Transition
from ticket_ai.services.store import STORAGE_KEYS, DurableStore, load_collection, write_through

logger = get_logger("ticket_service")

EDITABLE_FIELDS = {
    "title": str,
    "description": str,
    "priority": TicketPriority,
    "category": TicketCategory,
    "escalation_reason": Optional[str],
    "tags": List[str],
}


def parse_status(status: Union[str, TicketStatus]) -> TicketStatus:
    try:
        return TicketStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown ticket status: {status}") from None


def validate_details(fields: dict) -> dict:
    """Typed editable fields from fields. Unknown keys and None values are dropped."""
    changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}
    if not changes:
        raise ValidationError("No valid fields to update")

    try:
        changes = {k: TypeAdapter(EDITABLE_FIELDS[k]).validate_python(v) for k, v in changes.items()}
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid ticket fields: {e.errors()[0]['msg']}") from None
    for key in ("title", "description"):
        if key in changes and not changes[key].strip():
            raise ValidationError(f"Ticket {key} must not be empty")
    return changes


class TicketLifecycleManager:
    """Owns ticket records. Status is a free enum; transitions only decide side effects."""

    def __init__(self, store: DurableStore, agents: AgentAssignmentCoordinator):
        self.store = store
        self.agents = agents
        self._tickets: Dict[str, Ticket] = load_collection(store, STORAGE_KEYS["tickets"], Ticket)

    def _commit(self, transition: Transition[Ticket]) -> Ticket:
        ticket = transition.state
        self._tickets[ticket.id] = ticket
        for effect in transition.effects:
            if isinstance(effect, Persist):
                write_through(self.store, STORAGE_KEYS["tickets"], self._tickets.values())
            elif isinstance(effect, ReleaseAgent):
                self.agents.release(effect.ticket_id)
            elif isinstance(effect, AttachAgent):
                self.agents.attach(effect.ticket_id, effect.agent_id)
        return ticket

    # === QUERIES ===

    def find_ticket(self, ticket_id: str) -> Optional[Ticket]:
        return self._tickets.get(ticket_id)

    def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = self._tickets.get(ticket_id)
        if ticket is None:
            raise NotFoundError("ticket", ticket_id)
        return ticket

    def list_tickets(
        self,
        status: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        category: Optional[TicketCategory] = None,
        assigned_agent: Optional[str] = None,
    ) -> List[Ticket]:
        tickets = list(self._tickets.values())
        if status is not None:
            tickets = [t for t in tickets if t.status == status]
        if priority is not None:
            tickets = [t for t in tickets if t.priority == priority]
        if category is not None:
            tickets = [t for t in tickets if t.category == category]
        if assigned_agent is not None:
            tickets = [t for t in tickets if t.assigned_agent == assigned_agent]
        return tickets

    # === LIFECYCLE ===

    def create_from_session(
        self,
        session: ChatSession,
        title: str,
        description: str,
        *,
        reason: Optional[str] = None,
        signal: Optional[EscalationSignal] = None,
    ) -> Ticket:
        """New ticket in status created. Engine suggestions become the initial priority/category."""
        if not title or not title.strip():
            raise ValidationError("Ticket title is required")
        if not description or not description.strip():
            raise ValidationError("Ticket description is required")

        fields = {
            "title": title.strip(),
            "description": description.strip(),
            "chat_session_id": session.id,
            "escalation_reason": reason,
        }
        if signal is not None:
            if signal.suggested_priority:
                fields["priority"] = signal.suggested_priority
            if signal.suggested_category:
                fields["category"] = signal.suggested_category
            fields["metadata"] = TicketMetadata(
                escalation_triggers=[signal.reason] if signal.reason else [],
                ai_confidence_score=signal.confidence,
            )

        ticket = self._commit(Transition(Ticket(**fields), [Persist(state_machine.TICKETS)]))
        logger.info(
            f"Created ticket {ticket.id} from session {session.id}",
            extra={"context": {"priority": ticket.priority.value, "category": ticket.category.value}},
        )
        return ticket

    def update_status(self, ticket_id: str, new_status: Union[str, TicketStatus]) -> Ticket:
        status = parse_status(new_status)
        ticket = self.get_ticket(ticket_id)

        old_status = ticket.status
        ticket = self._commit(state_machine.set_ticket_status(ticket, status, datetime.now(timezone.utc)))
        logger.info(f"Ticket {ticket_id}: {old_status.value} -> {status.value}")
        return ticket

    def update_details(self, ticket_id: str, **fields) -> Ticket:
        """Edit descriptive fields. Status and assignment have their own operations."""
        changes = validate_details(fields)
        ticket = self.get_ticket(ticket_id)
        return self._commit(state_machine.update_ticket_details(ticket, changes, datetime.now(timezone.utc)))

    def apply_assignment(self, ticket_id: str, agent_id: str) -> Ticket:
        ticket = self.get_ticket(ticket_id)
        return self._commit(state_machine.assign_ticket(ticket, agent_id, datetime.now(timezone.utc)))

    def replace_all(self, tickets: List[Ticket]) -> None:
        self._tickets = {t.id: t for t in tickets}
        write_through(self.store, STORAGE_KEYS["tickets"], self._tickets.values())
