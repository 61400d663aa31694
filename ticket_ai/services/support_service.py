"""Single-writer entry point for the support core.

Every upward operation runs under one re-entrant lock, so session, ticket and
agent transitions form one serialized stream. The only call made outside the
lock is the completion request, which runs on a worker thread with a bounded
wait; its result is recorded by a second, separate transition.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Set, Tuple

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ticket_ai.logging_config import ContextAdapter, get_logger
from ticket_ai.models import (
    Agent,
    AgentStatus,
    ChatSession,
    Message,
    MessageMetadata,
    MessageRole,
    SessionStatus,
    Ticket,
    TicketCategory,
    TicketPriority,
    TicketStatus,
)
from ticket_ai.services.agent_service import AgentAssignmentCoordinator
from ticket_ai.services.conversation_service import ConversationStateManager
from ticket_ai.services.errors import ExternalServiceError, ValidationError
from ticket_ai.services.escalation_engine import (
    DEFAULT_SYSTEM_PROMPT,
    FALLBACK_MESSAGE,
    EscalationSignal,
    clean_reply,
    evaluate,
    fallback_signal,
)
from ticket_ai.services.health_service import check_invariants
from ticket_ai.services.llm.base import CompletionProvider
from ticket_ai.services.store import DurableStore, dump_collection
from ticket_ai.services.ticket_service import TicketLifecycleManager, parse_status, validate_details

logger = get_logger("support_service")


@dataclass
class ChatTurn:
    assistant_message: Message
    signal: EscalationSignal
    ticket: Optional[Ticket] = None


@dataclass
class DashboardStats:
    total_tickets: int
    escalated_tickets: int
    resolved_tickets: int
    active_tickets: int
    available_agents: int
    busy_agents: int
    offline_agents: int


class SupportService:
    def __init__(
        self,
        store: DurableStore,
        provider: CompletionProvider,
        *,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        completion_timeout_seconds: float = 30.0,
    ):
        self.store = store
        self.provider = provider
        self.system_prompt = system_prompt
        self.completion_timeout_seconds = completion_timeout_seconds

        self.agents = AgentAssignmentCoordinator(store)
        self.tickets = TicketLifecycleManager(store, self.agents)
        self.agents.tickets = self.tickets
        self.conversations = ConversationStateManager(store, self.tickets)

        self._lock = threading.RLock()
        self._pending_sessions: Set[str] = set()
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="completion")

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    # === CONVERSATION ===

    def start_session(self, user_id: Optional[str] = None) -> ChatSession:
        with self._lock:
            return self.conversations.create_session(user_id=user_id)

    def get_session(self, session_id: str) -> ChatSession:
        with self._lock:
            return self.conversations.get_session(session_id)

    def resolve_session(self, session_id: str) -> ChatSession:
        with self._lock:
            return self.conversations.resolve_session(session_id)

    def submit_user_message(self, session_id: str, text: str) -> ChatTurn:
        """Append the user's message, ask the provider for a reply and record the verdict."""
        if not text or not text.strip():
            raise ValidationError("Message content is required")

        log = ContextAdapter(logger, {"session_id": session_id})

        with self._lock:
            session = self.conversations.get_session(session_id)
            if session.status == SessionStatus.RESOLVED:
                raise ValidationError(f"Session {session_id} is resolved")
            if session_id in self._pending_sessions:
                raise ValidationError(f"Session {session_id} is still waiting for a reply")

            user_message = Message(role=MessageRole.USER, content=text.strip())
            session = self.conversations.append_message(session_id, user_message)
            history = list(session.messages)
            self._pending_sessions.add(session_id)

        try:
            reply = self._request_completion(history, log)
            with self._lock:
                return self._record_reply(session_id, history, reply, log)
        finally:
            with self._lock:
                self._pending_sessions.discard(session_id)

    def _request_completion(self, history: List[Message], log: ContextAdapter) -> Optional[str]:
        """Provider reply text, or None when the provider failed, timed out or returned nothing."""
        payload = [m.as_completion_input() for m in history]

        try:
            future = self._executor.submit(self.provider.complete, payload, self.system_prompt)
            reply = future.result(timeout=self.completion_timeout_seconds)
        except FuturesTimeoutError:
            future.cancel()
            log.error("Completion timed out", context={"timeout_seconds": self.completion_timeout_seconds})
            return None
        except ExternalServiceError as e:
            log.error(f"Completion provider error: {e}")
            return None
        except Exception as e:
            log.error(f"Unexpected completion failure: {e}", context={"error_type": type(e).__name__})
            return None

        if not clean_reply(reply or ""):
            log.warning("Completion returned empty reply")
            return None
        return reply

    def _record_reply(
        self,
        session_id: str,
        history: List[Message],
        reply: Optional[str],
        log: ContextAdapter,
    ) -> ChatTurn:
        if reply is None:
            signal = fallback_signal()
            content = FALLBACK_MESSAGE
        else:
            signal = evaluate(history, reply)
            content = clean_reply(reply)

        assistant_message = Message(
            role=MessageRole.ASSISTANT,
            content=content,
            metadata=MessageMetadata(confidence=signal.confidence, escalation_trigger=signal.should_escalate),
        )
        session = self.conversations.append_message(session_id, assistant_message)

        ticket = None
        if signal.should_escalate and session.status != SessionStatus.RESOLVED:
            ticket = self.conversations.transition_to_escalated(session_id, signal.reason, signal=signal)

        log.info(
            "Recorded assistant reply",
            context={
                "should_escalate": signal.should_escalate,
                "confidence": signal.confidence,
                "reason": signal.reason,
                "ticket_id": ticket.id if ticket else None,
            },
        )
        return ChatTurn(assistant_message=assistant_message, signal=signal, ticket=ticket)

    # === TICKETS ===

    def create_ticket(self, session_id: str, title: str, description: str) -> Ticket:
        """Open a ticket for a session by hand. A session keeps at most one ticket."""
        if not title or not title.strip():
            raise ValidationError("Ticket title is required")
        if not description or not description.strip():
            raise ValidationError("Ticket description is required")

        with self._lock:
            return self.conversations.transition_to_escalated(
                session_id, None, title=title, description=description
            )

    def get_ticket(self, ticket_id: str) -> Ticket:
        with self._lock:
            return self.tickets.get_ticket(ticket_id)

    def list_tickets(
        self,
        status: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        category: Optional[TicketCategory] = None,
        assigned_agent: Optional[str] = None,
    ) -> List[Ticket]:
        with self._lock:
            return self.tickets.list_tickets(status, priority, category, assigned_agent)

    def set_ticket_status(self, ticket_id: str, status) -> Ticket:
        with self._lock:
            return self.tickets.update_status(ticket_id, status)

    def update_ticket(
        self,
        ticket_id: str,
        *,
        status=None,
        assigned_agent: Optional[str] = None,
        **fields,
    ) -> Ticket:
        """Edit fields, then assign, then set status. Everything is checked before the first commit."""
        edits = {k: v for k, v in fields.items() if v is not None}

        with self._lock:
            ticket = self.tickets.get_ticket(ticket_id)
            if not edits and status is None and assigned_agent is None:
                raise ValidationError("No valid fields to update")
            changes = validate_details(edits) if edits else {}
            new_status = parse_status(status) if status is not None else None
            if assigned_agent is not None:
                self.agents.get_agent(assigned_agent)

            if changes:
                ticket = self.tickets.update_details(ticket_id, **changes)
            if assigned_agent is not None:
                ticket, _ = self.agents.assign(ticket_id, assigned_agent).unwrap()
            if new_status is not None:
                ticket = self.tickets.update_status(ticket_id, new_status)
            return ticket

    # === AGENTS ===

    def assign_agent(self, ticket_id: str, agent_id: str) -> Tuple[Ticket, Agent]:
        with self._lock:
            return self.agents.assign(ticket_id, agent_id).unwrap()

    def register_agent(self, name: str, email: str, skill_tags: Optional[List[str]] = None) -> Agent:
        with self._lock:
            return self.agents.register_agent(name, email, skill_tags)

    def list_agents(self, status: Optional[AgentStatus] = None) -> List[Agent]:
        with self._lock:
            return self.agents.list_agents(status)

    def set_agent_offline(self, agent_id: str, offline: bool) -> Agent:
        with self._lock:
            return self.agents.set_offline(agent_id, offline)

    # === ADMIN ===

    def dashboard_stats(self) -> DashboardStats:
        with self._lock:
            tickets = self.tickets.list_tickets()
            agents = self.agents.list_agents()

        return DashboardStats(
            total_tickets=len(tickets),
            escalated_tickets=sum(1 for t in tickets if t.status == TicketStatus.ESCALATED),
            resolved_tickets=sum(1 for t in tickets if t.is_closed),
            active_tickets=sum(1 for t in tickets if not t.is_closed),
            available_agents=sum(1 for a in agents if a.status == AgentStatus.AVAILABLE),
            busy_agents=sum(1 for a in agents if a.status == AgentStatus.BUSY),
            offline_agents=sum(1 for a in agents if a.status == AgentStatus.OFFLINE),
        )

    def check_invariants(self) -> List[str]:
        with self._lock:
            return check_invariants(
                self.conversations.list_sessions(),
                self.tickets.list_tickets(),
                self.agents.list_agents(),
            )

    def export_data(self) -> dict:
        with self._lock:
            return {
                "chat_sessions": dump_collection(self.conversations.list_sessions()),
                "tickets": dump_collection(self.tickets.list_tickets()),
                "agents": dump_collection(self.agents.list_agents()),
                "exported_at": datetime.now(timezone.utc).isoformat(),
            }

    def import_data(self, payload: dict) -> None:
        """Replace the collections present in payload.

        The result, imported collections merged with the ones kept, must pass
        check_invariants; otherwise nothing changes.
        """
        def decode(key, model):
            if key not in payload:
                return None
            return TypeAdapter(List[model]).validate_python(payload[key])

        try:
            sessions = decode("chat_sessions", ChatSession)
            tickets = decode("tickets", Ticket)
            agents = decode("agents", Agent)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid import payload: {e.error_count()} errors") from None

        with self._lock:
            merged_sessions = sessions if sessions is not None else self.conversations.list_sessions()
            merged_tickets = tickets if tickets is not None else self.tickets.list_tickets()
            merged_agents = agents if agents is not None else self.agents.list_agents()

            violations = check_invariants(merged_sessions, merged_tickets, merged_agents)
            if violations:
                raise ValidationError(f"Import would break consistency: {', '.join(violations[:5])}")

            if sessions is not None:
                self.conversations.replace_all(sessions)
            if tickets is not None:
                self.tickets.replace_all(tickets)
            if agents is not None:
                self.agents.replace_all(agents)

        logger.info(
            "Imported data",
            extra={
                "context": {
                    "sessions": len(sessions or []),
                    "tickets": len(tickets or []),
                    "agents": len(agents or []),
                }
            },
        )
