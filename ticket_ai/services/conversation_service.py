from datetime import datetime, timezone
from typing import Dict, List, Optional

from ticket_ai.logging_config import get_logger
from ticket_ai.models import ChatSession, Message, SessionStatus, Ticket
from ticket_ai.services import state_machine
from ticket_ai.services.errors import NotFoundError, ValidationError
from ticket_ai.services.escalation_engine import EscalationSignal
from ticket_ai.services.state_machine import Persist, Transition
from ticket_ai.services.store import STORAGE_KEYS, DurableStore, load_collection, write_through
from ticket_ai.services.ticket_service import TicketLifecycleManager

logger = get_logger("conversation_service")

TITLE_PREVIEW_LENGTH = 50
SUMMARY_TURNS = 3


def build_escalation_title(session: ChatSession) -> str:
    preview = session.messages[0].content[:TITLE_PREVIEW_LENGTH] if session.messages else ""
    return f"Escalated: {preview or 'Customer Inquiry'}..."


def build_escalation_description(session: ChatSession, reason: Optional[str]) -> str:
    summary = "\n".join(f"{m.role.value}: {m.content}" for m in session.messages[-SUMMARY_TURNS:])
    return f"Chat escalated. Reason: {reason or 'not specified'}\n\nConversation summary: {summary}"


class ConversationStateManager:
    """Owns chat sessions: the append-only message log and active -> escalated -> resolved."""

    def __init__(self, store: DurableStore, tickets: TicketLifecycleManager):
        self.store = store
        self.tickets = tickets
        self._sessions: Dict[str, ChatSession] = load_collection(store, STORAGE_KEYS["sessions"], ChatSession)

    def _commit(self, transition: Transition[ChatSession]) -> ChatSession:
        session = transition.state
        self._sessions[session.id] = session
        for effect in transition.effects:
            if isinstance(effect, Persist):
                write_through(self.store, STORAGE_KEYS["sessions"], self._sessions.values())
        return session

    def get_session(self, session_id: str) -> ChatSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError("session", session_id)
        return session

    def list_sessions(self, status: Optional[SessionStatus] = None) -> List[ChatSession]:
        sessions = list(self._sessions.values())
        if status is not None:
            sessions = [s for s in sessions if s.status == status]
        return sessions

    def create_session(self, user_id: Optional[str] = None) -> ChatSession:
        session = self._commit(Transition(ChatSession(user_id=user_id), [Persist(state_machine.SESSIONS)]))
        logger.info(f"Started session {session.id}")
        return session

    def append_message(self, session_id: str, message: Message) -> ChatSession:
        session = self.get_session(session_id)
        return self._commit(state_machine.append_message(session, message, datetime.now(timezone.utc)))

    def transition_to_escalated(
        self,
        session_id: str,
        reason: Optional[str],
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        signal: Optional[EscalationSignal] = None,
    ) -> Ticket:
        """Escalate once. A session that already has a ticket gets that ticket back."""
        session = self.get_session(session_id)

        if session.ticket_id:
            logger.info(f"Session {session_id} already linked to ticket {session.ticket_id}")
            return self.tickets.get_ticket(session.ticket_id)
        if session.status == SessionStatus.RESOLVED:
            raise ValidationError(f"Session {session_id} is resolved")

        ticket = self.tickets.create_from_session(
            session,
            title or build_escalation_title(session),
            description or build_escalation_description(session, reason),
            reason=reason,
            signal=signal,
        )
        self._commit(state_machine.escalate_session(session, ticket.id, datetime.now(timezone.utc)))

        logger.info(
            f"Escalated session {session_id}",
            extra={"context": {"ticket_id": ticket.id, "reason": reason}},
        )
        return ticket

    def resolve_session(self, session_id: str) -> ChatSession:
        session = self.get_session(session_id)
        return self._commit(state_machine.resolve_session(session, datetime.now(timezone.utc)))

    def replace_all(self, sessions: List[ChatSession]) -> None:
        self._sessions = {s.id: s for s in sessions}
        write_through(self.store, STORAGE_KEYS["sessions"], self._sessions.values())
