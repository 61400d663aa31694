from typing import List

from pydantic import BaseModel, Field


class AgentCreateRequest(BaseModel):
    name: str
    email: str
    skill_tags: List[str] = Field(default_factory=list)


class AvailabilityRequest(BaseModel):
    offline: bool
