import uuid
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class AgentStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


class Agent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    email: str
    status: AgentStatus = AgentStatus.AVAILABLE
    active_tickets: List[str] = Field(default_factory=list)
    skill_tags: List[str] = Field(default_factory=list)
