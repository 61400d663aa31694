from unittest.mock import Mock

import pytest

from ticket_ai.models import Message, MessageRole
from ticket_ai.services.agent_service import AgentAssignmentCoordinator
from ticket_ai.services.store import InMemoryStore
from ticket_ai.services.support_service import SupportService
from ticket_ai.services.ticket_service import TicketLifecycleManager

HELPFUL_REPLY = "Thanks for reaching out! Open Settings, choose Security and press Reset password."


def user(text: str) -> Message:
    return Message(role=MessageRole.USER, content=text)


def assistant(text: str) -> Message:
    return Message(role=MessageRole.ASSISTANT, content=text)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def provider():
    """Completion provider double answering every turn with a long, confident reply."""
    provider = Mock()
    provider.complete.return_value = HELPFUL_REPLY
    return provider


@pytest.fixture
def service(store, provider):
    service = SupportService(store, provider, completion_timeout_seconds=2.0)
    yield service
    service.close()


@pytest.fixture
def managers(store):
    agents = AgentAssignmentCoordinator(store)
    tickets = TicketLifecycleManager(store, agents)
    agents.tickets = tickets
    return tickets, agents
