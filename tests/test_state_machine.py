from datetime import datetime, timezone

import pytest

from ticket_ai.models import Agent, AgentStatus, ChatSession, SessionStatus, Ticket, TicketStatus
from ticket_ai.services import state_machine
from ticket_ai.services.errors import ValidationError
from ticket_ai.services.state_machine import AGENTS, SESSIONS, TICKETS, AttachAgent, Persist, ReleaseAgent

from tests.conftest import user

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_ticket(**overrides) -> Ticket:
    fields = {"title": "Login broken", "description": "Cannot log in", "chat_session_id": "session-1"}
    fields.update(overrides)
    return Ticket(**fields)


class TestSessionTransitions:
    def test_append_returns_new_session(self):
        session = ChatSession()
        message = user("Hello")

        transition = state_machine.append_message(session, message, NOW)

        assert transition.state.messages == [message]
        assert transition.state.updated_at == NOW
        assert session.messages == []
        assert transition.effects == [Persist(SESSIONS)]

    def test_escalate_links_ticket(self):
        transition = state_machine.escalate_session(ChatSession(), "ticket-1", NOW)

        assert transition.state.status == SessionStatus.ESCALATED
        assert transition.state.ticket_id == "ticket-1"
        assert transition.effects == [Persist(SESSIONS)]

    def test_escalate_already_linked_is_noop(self):
        session = ChatSession(status=SessionStatus.ESCALATED, ticket_id="ticket-1")

        transition = state_machine.escalate_session(session, "ticket-2", NOW)

        assert transition.state is session
        assert transition.effects == []

    def test_escalate_resolved_session_fails(self):
        with pytest.raises(ValidationError):
            state_machine.escalate_session(ChatSession(status=SessionStatus.RESOLVED), "ticket-1", NOW)

    def test_resolve_is_terminal_and_idempotent(self):
        resolved = state_machine.resolve_session(ChatSession(), NOW).state
        assert resolved.status == SessionStatus.RESOLVED
        assert state_machine.resolve_session(resolved, NOW).effects == []


class TestTicketTransitions:
    def test_closing_assigned_ticket_releases_agent(self):
        ticket = make_ticket(status=TicketStatus.IN_PROGRESS, assigned_agent="agent-1")

        transition = state_machine.set_ticket_status(ticket, TicketStatus.CLOSED, NOW)

        assert transition.state.resolved_at == NOW
        assert ReleaseAgent(ticket.id) in transition.effects

    def test_closing_unassigned_ticket_only_persists(self):
        transition = state_machine.set_ticket_status(make_ticket(), TicketStatus.RESOLVED, NOW)
        assert transition.effects == [Persist(TICKETS)]

    def test_resolved_to_closed_does_not_release_twice(self):
        ticket = make_ticket(status=TicketStatus.RESOLVED, assigned_agent="agent-1", resolved_at=NOW)

        transition = state_machine.set_ticket_status(ticket, TicketStatus.CLOSED, NOW)

        assert not any(isinstance(e, ReleaseAgent) for e in transition.effects)

    def test_reopening_clears_resolved_at_and_reattaches(self):
        ticket = make_ticket(status=TicketStatus.CLOSED, assigned_agent="agent-1", resolved_at=NOW)

        transition = state_machine.set_ticket_status(ticket, TicketStatus.IN_PROGRESS, NOW)

        assert transition.state.resolved_at is None
        assert AttachAgent(ticket.id, "agent-1") in transition.effects

    def test_any_status_can_follow_any_other(self):
        ticket = make_ticket()
        for status in [TicketStatus.CLOSED, TicketStatus.AI_HANDLING, TicketStatus.CREATED, TicketStatus.ESCALATED]:
            ticket = state_machine.set_ticket_status(ticket, status, NOW).state
            assert ticket.status == status

    def test_assign_moves_to_in_progress(self):
        transition = state_machine.assign_ticket(make_ticket(), "agent-1", NOW)

        assert transition.state.assigned_agent == "agent-1"
        assert transition.state.status == TicketStatus.IN_PROGRESS
        assert transition.effects == [Persist(TICKETS)]

    def test_reassign_releases_previous_holder(self):
        ticket = make_ticket(status=TicketStatus.IN_PROGRESS, assigned_agent="agent-1")

        transition = state_machine.assign_ticket(ticket, "agent-2", NOW)

        assert ReleaseAgent(ticket.id) in transition.effects


class TestAgentTransitions:
    def test_attach_marks_busy(self):
        transition = state_machine.attach_ticket(Agent(name="Ana", email="ana@example.com"), "t1")

        assert transition.state.active_tickets == ["t1"]
        assert transition.state.status == AgentStatus.BUSY
        assert transition.effects == [Persist(AGENTS)]

    def test_attach_is_deduplicated(self):
        agent = Agent(name="Ana", email="ana@example.com", status=AgentStatus.BUSY, active_tickets=["t1"])

        transition = state_machine.attach_ticket(agent, "t1")

        assert transition.state.active_tickets == ["t1"]
        assert transition.effects == []

    def test_attach_keeps_offline(self):
        agent = Agent(name="Ana", email="ana@example.com", status=AgentStatus.OFFLINE)
        assert state_machine.attach_ticket(agent, "t1").state.status == AgentStatus.OFFLINE

    def test_detach_last_ticket_makes_available(self):
        agent = Agent(name="Ana", email="ana@example.com", status=AgentStatus.BUSY, active_tickets=["t1"])

        transition = state_machine.detach_ticket(agent, "t1")

        assert transition.state.active_tickets == []
        assert transition.state.status == AgentStatus.AVAILABLE

    def test_detach_keeps_busy_with_remaining_tickets(self):
        agent = Agent(name="Ana", email="ana@example.com", status=AgentStatus.BUSY, active_tickets=["t1", "t2"])
        assert state_machine.detach_ticket(agent, "t1").state.status == AgentStatus.BUSY

    def test_detach_unknown_ticket_is_noop(self):
        agent = Agent(name="Ana", email="ana@example.com")
        assert state_machine.detach_ticket(agent, "t9").effects == []

    def test_back_online_derives_status(self):
        agent = Agent(name="Ana", email="ana@example.com", status=AgentStatus.OFFLINE, active_tickets=["t1"])
        assert state_machine.set_agent_offline(agent, False).state.status == AgentStatus.BUSY
