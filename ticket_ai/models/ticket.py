import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TicketStatus(str, Enum):
    CREATED = "created"
    AI_HANDLING = "ai_handling"
    ESCALATED = "escalated"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


CLOSED_STATUSES = frozenset({TicketStatus.RESOLVED, TicketStatus.CLOSED})


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketCategory(str, Enum):
    TECHNICAL = "technical"
    BILLING = "billing"
    GENERAL = "general"
    COMPLAINT = "complaint"
    FEATURE_REQUEST = "feature_request"


class CustomerInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: Optional[str] = None
    name: Optional[str] = None


class TicketMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    customer_info: Optional[CustomerInfo] = None
    escalation_triggers: List[str] = Field(default_factory=list)
    ai_confidence_score: Optional[float] = None


class Ticket(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    description: str
    status: TicketStatus = TicketStatus.CREATED
    priority: TicketPriority = TicketPriority.MEDIUM
    category: TicketCategory = TicketCategory.GENERAL
    chat_session_id: str
    assigned_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    resolved_at: Optional[datetime] = None
    escalation_reason: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    metadata: Optional[TicketMetadata] = None

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_STATUSES
