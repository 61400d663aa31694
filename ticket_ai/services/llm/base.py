from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class LLMResponse:
    content: str
    model: str
    usage: Optional[dict] = None


class CompletionProvider(ABC):
    """Text-completion backend. One request/response per user turn, no streaming."""

    @abstractmethod
    def generate(
        self,
        messages: List[dict],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> LLMResponse:
        """Generate a response for an already prepared message list.

        Implementations raise ExternalServiceError on transport, quota or
        timeout failures.
        """
        pass

    def complete(self, history: List[dict], system_prompt: str) -> str:
        """Reply text for a {role, content} history, with the system prompt prepended."""
        messages = [{"role": "system", "content": system_prompt}, *history]
        return self.generate(messages).content
