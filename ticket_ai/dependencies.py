from typing import Optional

from ticket_ai.config import settings
from ticket_ai.database import SessionLocal, init_db
from ticket_ai.logging_config import get_logger
from ticket_ai.services.llm import OpenAIProvider
from ticket_ai.services.store import SqlAlchemyStore
from ticket_ai.services.support_service import SupportService

logger = get_logger("dependencies")

_service: Optional[SupportService] = None


def build_support_service() -> SupportService:
    """Wire the service against the configured database and OpenAI account."""
    init_db()
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set, every chat turn will fall back to escalation")

    provider = OpenAIProvider(
        api_key=settings.openai_api_key or "",
        default_model=settings.openai_model,
        timeout_seconds=settings.completion_timeout_seconds,
    )
    return SupportService(
        SqlAlchemyStore(SessionLocal),
        provider,
        completion_timeout_seconds=settings.completion_timeout_seconds,
    )


def get_support_service() -> SupportService:
    global _service
    if _service is None:
        _service = build_support_service()
    return _service
