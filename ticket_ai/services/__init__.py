from ticket_ai.services.agent_service import AgentAssignmentCoordinator
from ticket_ai.services.conversation_service import ConversationStateManager
from ticket_ai.services.errors import (
    ExternalServiceError,
    NotFoundError,
    PersistenceError,
    SupportError,
    ValidationError,
)
from ticket_ai.services.escalation_engine import EscalationSignal, evaluate
from ticket_ai.services.support_service import ChatTurn, DashboardStats, SupportService
from ticket_ai.services.ticket_service import TicketLifecycleManager
