from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ticket_ai.dependencies import get_support_service
from ticket_ai.models import ChatSession
from ticket_ai.schemas.chat import ChatTurnResponse, MessageRequest, SessionCreateRequest
from ticket_ai.services.support_service import SupportService

router = APIRouter(tags=["chat"])


@router.post("/sessions", response_model=ChatSession)
def start_session(request: SessionCreateRequest, service: SupportService = Depends(get_support_service)):
    return service.start_session(user_id=request.user_id)


@router.get("/sessions/{session_id}", response_model=ChatSession)
def get_session(session_id: str, service: SupportService = Depends(get_support_service)):
    return service.get_session(session_id)


@router.post("/sessions/{session_id}/resolve", response_model=ChatSession)
def resolve_session(session_id: str, service: SupportService = Depends(get_support_service)):
    return service.resolve_session(session_id)


@router.post("/sessions/{session_id}/messages", response_model=ChatTurnResponse)
def submit_message(
    session_id: str,
    request: MessageRequest,
    service: SupportService = Depends(get_support_service),
):
    """Handle one user turn: reply from the assistant plus the escalation verdict."""
    turn = service.submit_user_message(session_id, request.content)
    return ChatTurnResponse(
        session_id=session_id,
        message=turn.assistant_message,
        confidence=turn.signal.confidence,
        should_escalate=turn.signal.should_escalate,
        escalation_reason=turn.signal.reason,
        suggested_category=turn.signal.suggested_category,
        suggested_priority=turn.signal.suggested_priority,
        ticket_id=turn.ticket.id if turn.ticket else None,
    )


@router.get("/chat/health")
def chat_health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat(), "service": "chat-api"}
